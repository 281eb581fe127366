from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from note_assistant.core.domain.models import Failure, ResolvedExecutable

console = Console(stderr=True)


class AssistantFormatter:
    """Message templates for console output."""

    @staticmethod
    def format_error(message: str) -> str:
        return f"[bold red]Error:[/bold red] {escape(message)}"

    @staticmethod
    def format_warning(message: str) -> str:
        return f"[yellow]Warning: {escape(message)}[/yellow]"

    @staticmethod
    def format_check(label: str, ok: bool, detail: Optional[str] = None) -> str:
        mark = "[green]✔[/green]" if ok else "[red]✖[/red]"
        msg = f"{mark} {label}"
        if detail:
            msg += f" [dim]{escape(detail)}[/dim]"
        return msg

    @staticmethod
    def format_resolved(executable: ResolvedExecutable) -> str:
        return (
            f"[green]✔ Assistant CLI:[/green] [cyan]{escape(executable.path)}[/cyan] "
            f"[dim]({executable.source})[/dim]"
        )

    @staticmethod
    def format_failure(failure: Failure) -> str:
        """Failure summary plus any output captured before the process ended."""
        msg = f"[bold red]{failure.kind.value}[/bold red]"
        if failure.exit_code is not None:
            msg += f" (exit code {failure.exit_code})"
        if failure.message.strip():
            msg += f": [red]{escape(failure.message.strip())}[/red]"
        if failure.partial_stdout.strip():
            msg += f"\n[dim]Partial output:[/dim]\n{escape(failure.partial_stdout.strip())}"
        return msg

    @staticmethod
    def get_request_panel(executable: str, document_length: int, question: str) -> Panel:
        preview = question if len(question) <= 60 else question[:57] + "..."
        msg = (
            f"[bold blue]Asking[/bold blue] [cyan]{escape(executable)}[/cyan] "
            f"({document_length} chars of context): {escape(preview)}"
        )
        return Panel(msg, expand=False)
