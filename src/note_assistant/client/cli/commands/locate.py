import asyncio

import click
from dependency_injector.wiring import Provide, inject

from note_assistant.core.containers import Container
from note_assistant.core.errors import ExecutableNotFoundError
from note_assistant.core.presentation.logging import AssistantFormatter, console


@click.command()
@inject
def locate(
    executable_cache: Container.executable_cache = Provide[Container.executable_cache],
):
    """Find the assistant CLI and print its path."""
    resolved = asyncio.run(executable_cache.refresh())
    if resolved is None:
        error = ExecutableNotFoundError(executable_cache.searched)
        console.print(AssistantFormatter.format_error(str(error)))
        raise click.exceptions.Exit(1)

    console.print(AssistantFormatter.format_resolved(resolved))
    click.echo(resolved.path)
