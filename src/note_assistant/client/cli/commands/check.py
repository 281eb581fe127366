import asyncio
import os

import click
from dependency_injector.wiring import Provide, inject
from rich.markup import escape

from note_assistant.core.containers import Container
from note_assistant.core.errors import AssistantError, AssistantRequestError
from note_assistant.core.presentation.logging import AssistantFormatter, console

TEST_QUESTION = "Hello"
RESPONSE_PREVIEW_LENGTH = 100


@click.command()
@click.option(
    "--request",
    "send_request",
    is_flag=True,
    help="Also send a short prompt through the assistant and show the reply",
)
@inject
def check(
    send_request,
    settings_service: Container.settings_service = Provide[Container.settings_service],
    executable_cache: Container.executable_cache = Provide[Container.executable_cache],
    liveness_checker: Container.liveness_checker = Provide[Container.liveness_checker],
    assistant_service: Container.assistant_service = Provide[
        Container.assistant_service
    ],
    extra_path_dirs: list = Provide[Container.config.extra_path_dirs],
):
    """Validate settings and the assistant CLI installation."""
    results = asyncio.run(
        check_prerequisites(
            settings_service,
            executable_cache,
            liveness_checker,
            extra_path_dirs or [],
            assistant_service=assistant_service if send_request else None,
        )
    )
    if not results["valid"]:
        raise click.exceptions.Exit(1)


async def check_prerequisites(
    settings_service,
    executable_cache,
    liveness_checker,
    extra_path_dirs,
    assistant_service=None,
):
    """
    Core logic to check settings and the executable.
    Returns: dict with check results
    """
    results = {"settings": "default", "executable": None, "valid": True}

    console.print("[bold blue]Running Prerequisite Checks...[/bold blue]")

    # 1. Settings
    settings = settings_service.load()
    if settings_service.path.exists():
        results["settings"] = "ok"
        console.print(
            AssistantFormatter.format_check("Settings", True, str(settings_service.path))
        )
    else:
        console.print(
            AssistantFormatter.format_check(
                "Settings (defaults)", True, f"{settings_service.path} not found"
            )
        )
    mode = "auto-discover" if settings.uses_auto_discovery else settings.executable_path
    console.print(f"    - Executable path: [cyan]{mode}[/cyan]")

    # 2. Executable resolution; a configured override is trusted, so verify it here
    resolved = await executable_cache.refresh()
    if resolved is None:
        console.print(AssistantFormatter.format_check("Assistant CLI not found", False))
        for entry in executable_cache.searched:
            console.print(f"    - [dim]{entry}[/dim]")
        results["valid"] = False
    else:
        alive = await liveness_checker.check(resolved.path)
        results["executable"] = resolved.path
        console.print(
            AssistantFormatter.format_check(
                f"Assistant CLI ({resolved.source})", alive, resolved.path
            )
        )
        if not alive:
            results["valid"] = False

    # 3. Search path directories prepended for the child process
    for directory in extra_path_dirs:
        present = os.path.isdir(directory)
        console.print(
            AssistantFormatter.format_check(
                f"PATH entry {directory}", present, None if present else "missing"
            )
        )

    # 4. Round trip through the assistant with a short prompt
    if assistant_service is not None and results["valid"]:
        results["request"] = await _send_test_request(assistant_service)
        if not results["request"]:
            results["valid"] = False

    if results["valid"]:
        console.print("\n[bold green]All checks passed![/bold green]")
    else:
        console.print("\n[bold red]Checks failed. Please review errors above.[/bold red]")

    return results


async def _send_test_request(assistant_service) -> bool:
    try:
        with console.status("Sending test request..."):
            response = await assistant_service.ask("", TEST_QUESTION)
    except AssistantRequestError as e:
        console.print(AssistantFormatter.format_check("Test request", False, e.kind.value))
        console.print(AssistantFormatter.format_failure(e.failure))
        return False
    except AssistantError as e:
        console.print(AssistantFormatter.format_check("Test request", False, str(e)))
        return False

    preview = response[:RESPONSE_PREVIEW_LENGTH]
    if len(response) > RESPONSE_PREVIEW_LENGTH:
        preview += "..."
    console.print(AssistantFormatter.format_check("Test request", True))
    console.print(f"    - Response: [dim]{escape(preview)}[/dim]")
    return True
