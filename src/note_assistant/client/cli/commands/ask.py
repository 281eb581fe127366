import asyncio

import click
from dependency_injector.wiring import Provide, inject

from note_assistant.core.containers import Container
from note_assistant.core.domain.events import JSONLinesTransport
from note_assistant.core.errors import AssistantError, AssistantRequestError
from note_assistant.core.presentation.logging import AssistantFormatter, console
from note_assistant.core.services.assistant_service import format_insertion


@click.command()
@click.argument("question")
@click.option(
    "--file",
    "-f",
    "document_file",
    type=click.Path(exists=True, dir_okay=False),
    help="Document to ask about. Reads standard input when omitted.",
)
@click.option("--timeout", type=float, help="Seconds before the assistant is stopped")
@click.option(
    "--trace", is_flag=True, help="Write process events as JSON lines to stderr"
)
@click.option(
    "--insert-block",
    is_flag=True,
    help="Print the response padded with blank lines, ready to insert into a note",
)
@inject
def ask(
    question,
    document_file,
    timeout,
    trace,
    insert_block,
    assistant_service: Container.assistant_service = Provide[
        Container.assistant_service
    ],
    event_emitter: Container.event_emitter = Provide[Container.event_emitter],
):
    """Ask the assistant QUESTION about a document."""
    if not question.strip():
        console.print(AssistantFormatter.format_error("Please enter a question"))
        raise click.exceptions.Exit(2)

    try:
        document = _read_document(document_file)
    except (UnicodeDecodeError, OSError) as e:
        source = document_file or "standard input"
        console.print(AssistantFormatter.format_error(f"Cannot read {source}: {e}"))
        raise click.exceptions.Exit(1)

    if timeout:
        assistant_service.timeout = timeout
    if trace:
        event_emitter.add_transport(JSONLinesTransport())

    try:
        response = asyncio.run(_ask(assistant_service, event_emitter, document, question))
    except AssistantRequestError as e:
        console.print(AssistantFormatter.format_failure(e.failure))
        raise click.exceptions.Exit(1)
    except AssistantError as e:
        console.print(AssistantFormatter.format_error(str(e)))
        raise click.exceptions.Exit(1)

    if insert_block:
        click.echo(format_insertion(response), nl=False)
    else:
        click.echo(response)


async def _ask(assistant_service, event_emitter, document, question):
    executable = await assistant_service.executable_cache.get()
    if executable:
        console.print(
            AssistantFormatter.get_request_panel(executable.path, len(document), question)
        )
    try:
        with console.status("Asking assistant..."):
            return await assistant_service.ask(document, question)
    finally:
        await event_emitter.flush()


def _read_document(document_file):
    if document_file:
        with open(document_file, "r", encoding="utf-8") as f:
            return f.read()
    stdin = click.get_text_stream("stdin", encoding="utf-8")
    if stdin.isatty():
        return ""
    return stdin.read()
