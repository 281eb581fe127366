import click
import logfire

from note_assistant.client.cli.commands.ask import ask
from note_assistant.client.cli.commands.check import check
from note_assistant.client.cli.commands.config import config
from note_assistant.client.cli.commands.locate import locate
from note_assistant.core.containers import Container

logfire.configure(send_to_logfire="if-token-present", console=False)

# Initialize container and wire to relevant modules
container = Container()
Container.load_defaults(container.config)
container.wire(
    modules=[
        "note_assistant.client.cli.commands.ask",
        "note_assistant.client.cli.commands.check",
        "note_assistant.client.cli.commands.config",
        "note_assistant.client.cli.commands.locate",
    ]
)


@click.group()
@click.version_option(version="0.1.0")
def cli():
    """Note Assistant: ask an AI CLI about a document."""
    pass


# Add subcommands
cli.add_command(ask)
cli.add_command(locate)
cli.add_command(check)
cli.add_command(config)


def main():
    cli()


if __name__ == "__main__":
    main()
