import click
from dependency_injector.wiring import Provide, inject

from note_assistant.core.containers import Container
from note_assistant.core.domain.models import DEFAULT_COMMAND
from note_assistant.core.errors import SettingsError
from note_assistant.core.presentation.logging import AssistantFormatter, console


@click.group()
def config():
    """Show or change the assistant executable path."""
    pass


@config.command()
@inject
def show(
    settings_service: Container.settings_service = Provide[Container.settings_service],
):
    """Print the current settings."""
    settings = settings_service.load()
    console.print(f"Settings file: [cyan]{settings_service.path}[/cyan]")
    click.echo(f"executablePath: {settings.executable_path}")
    if settings.uses_auto_discovery:
        console.print("[dim](auto-discover)[/dim]")
    for entry in settings.extra_candidates:
        click.echo(f"extraCandidate: {entry}")


@config.command(name="set")
@click.argument("path")
@inject
def set_path(
    path,
    assistant_service: Container.assistant_service = Provide[
        Container.assistant_service
    ],
):
    """Use the executable at PATH instead of searching for it."""
    _update(assistant_service, path)
    click.echo(f"executablePath set to {path}")


@config.command()
@inject
def reset(
    assistant_service: Container.assistant_service = Provide[
        Container.assistant_service
    ],
):
    """Go back to automatic discovery."""
    _update(assistant_service, DEFAULT_COMMAND)
    click.echo("executablePath reset to auto-discover")


def _update(assistant_service, path):
    try:
        assistant_service.update_executable_path(path)
    except SettingsError as e:
        console.print(AssistantFormatter.format_error(str(e)))
        raise click.exceptions.Exit(1)
