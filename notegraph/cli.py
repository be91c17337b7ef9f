"""CLI entrypoint for notegraph."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import load_settings
from .errors import ConfigError


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(__version__, prog_name="notegraph")
@click.option(
    "--dir",
    "-d",
    "directory",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Notes folder for this invocation (defaults to the folder remembered by `bind`)",
)
@click.option(
    "--home",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    envvar="NOTEGRAPH_HOME",
    default=None,
    help="State directory for history, config and the remembered folder",
)
@click.option("--verbose", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx: click.Context, directory: Path | None, home: Path | None, verbose: bool) -> None:
    """notegraph - plain-text notes with version history and a mention graph.

    Mention another note with [@name]; notegraph tracks who mentions whom.
    """
    ctx.ensure_object(dict)
    try:
        settings = load_settings(home)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    _setup_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj["settings"] = settings
    ctx.obj["dir"] = directory


@cli.command()
@click.argument(
    "path",
    required=False,
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
)
@click.pass_context
def bind(ctx: click.Context, path: Path | None) -> None:
    """Grant a notes folder and remember it.

    Without PATH you are prompted for one. The folder must be readable and
    writable; otherwise saves fall back to downloads.
    """
    from .commands.notes_cmd import run_bind

    sys.exit(run_bind(ctx.obj["settings"], path or ctx.obj["dir"]))


@cli.command()
@click.pass_context
def unbind(ctx: click.Context) -> None:
    """Forget the remembered folder. Note files are kept."""
    from .commands.notes_cmd import run_unbind

    sys.exit(run_unbind(ctx.obj["settings"]))


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the bound folder and what is loaded."""
    from .commands.notes_cmd import run_status

    sys.exit(run_status(ctx.obj["settings"], ctx.obj["dir"]))


@cli.command("list")
@click.pass_context
def list_notes(ctx: click.Context) -> None:
    """List notes with send/receive mention counts."""
    from .commands.notes_cmd import run_list

    sys.exit(run_list(ctx.obj["settings"], ctx.obj["dir"]))


@cli.command()
@click.option("--name", "-n", type=str, default=None, help="File name (prompted if missing or taken)")
@click.option("--text", "-t", type=str, default=None, help="Note text (opens $EDITOR if omitted)")
@click.pass_context
def new(ctx: click.Context, name: str | None, text: str | None) -> None:
    """Create and save a new note.

    Examples:

        notegraph new --name meeting --text "See [@alpha]"

        notegraph new
    """
    from .commands.notes_cmd import run_new

    sys.exit(run_new(ctx.obj["settings"], ctx.obj["dir"], name=name, text=text))


@cli.command()
@click.argument("name")
@click.option("--text", "-t", type=str, default=None, help="Replace the text instead of opening $EDITOR")
@click.pass_context
def edit(ctx: click.Context, name: str, text: str | None) -> None:
    """Edit a note and save it as a new version."""
    from .commands.notes_cmd import run_edit

    sys.exit(run_edit(ctx.obj["settings"], ctx.obj["dir"], name, text))


@cli.command()
@click.argument("name")
@click.pass_context
def show(ctx: click.Context, name: str) -> None:
    """Print a note's current text."""
    from .commands.notes_cmd import run_show

    sys.exit(run_show(ctx.obj["settings"], ctx.obj["dir"], name))


@cli.command()
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete(ctx: click.Context, name: str, yes: bool) -> None:
    """Delete a note and its file (history is kept)."""
    from .commands.notes_cmd import run_delete

    sys.exit(run_delete(ctx.obj["settings"], ctx.obj["dir"], name, yes=yes))


@cli.command()
@click.argument("name")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def history(ctx: click.Context, name: str, output_json: bool) -> None:
    """List saved versions of a note (#1 is the oldest)."""
    from .commands.history_cmd import run_history

    sys.exit(run_history(ctx.obj["settings"], ctx.obj["dir"], name, output_json=output_json))


@cli.command()
@click.argument("name")
@click.argument("version", type=click.IntRange(min=1))
@click.option("--print", "print_only", is_flag=True, help="Print the version instead of saving it")
@click.pass_context
def restore(ctx: click.Context, name: str, version: int, print_only: bool) -> None:
    """Bring back version #VERSION of a note and save it."""
    from .commands.history_cmd import run_restore

    sys.exit(run_restore(ctx.obj["settings"], ctx.obj["dir"], name, version, save=not print_only))


@cli.command()
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["json", "md", "rich", "dot"]),
    default="json",
    show_default=True,
    help="json is the node/link payload for visualizers",
)
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write output to a file")
@click.option("--top", type=int, default=25, show_default=True, help="How many notes to show in top lists")
@click.pass_context
def graph(ctx: click.Context, fmt: str, out: Path | None, top: int) -> None:
    """Export the mention graph."""
    from .commands.graph_cmd import run_graph

    sys.exit(run_graph(ctx.obj["settings"], ctx.obj["dir"], fmt=fmt, out=out, top=top))


@cli.command()
@click.argument("name")
@click.pass_context
def mentions(ctx: click.Context, name: str) -> None:
    """Show which notes a note mentions and is mentioned by."""
    from .commands.notes_cmd import run_mentions

    sys.exit(run_mentions(ctx.obj["settings"], ctx.obj["dir"], name))


@cli.command()
@click.argument("partial", default="")
@click.option("--limit", type=int, default=None, help="Max candidates (defaults to suggestion_limit)")
@click.pass_context
def suggest(ctx: click.Context, partial: str, limit: int | None) -> None:
    """Complete a note name for a [@mention."""
    from .commands.notes_cmd import run_suggest

    sys.exit(run_suggest(ctx.obj["settings"], ctx.obj["dir"], partial, limit))


@cli.command("lsp")
@click.option(
    "--transport",
    type=click.Choice(["stdio", "tcp"]),
    default="stdio",
    show_default=True,
    help="Transport method (stdio for editors, tcp for debugging)",
)
@click.pass_context
def lsp(ctx: click.Context, transport: str) -> None:
    """Start the language server for editing notes.

    The server provides:

    \b
    - Completion of note names after [@
    - Hover with send/receive counts for mentions
    - Diagnostics for mentions of notes that do not exist
    - A version history entry on every save

    Examples:

        notegraph -d ~/notes lsp

        notegraph lsp --transport tcp
    """
    from .lsp import start_server

    start_server(ctx.obj["settings"], ctx.obj["dir"], transport=transport)


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
