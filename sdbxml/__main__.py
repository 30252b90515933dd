"""Click-based command line entry point for sdbxml."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

import click

from . import __version__
from .edits import ApplyOptions, EditError, apply_edit_plan, load_edit_plan, write_export
from .errors import SdbError
from .logging_conf import configure_logging
from .serializer import SdbSerializer

log = logging.getLogger(__name__)

_INPUT = click.Path(path_type=Path, exists=True, dir_okay=False)


@click.group(help="Sony sdb.xml channel list toolkit")
@click.version_option(__version__)
@click.option("--verbose", is_flag=True, help="Enable verbose logging output.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Set up logging before any command runs."""

    configure_logging("DEBUG" if verbose else "INFO")
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command("info")
@click.argument("path", type=_INPUT)
def cli_info(path: Path) -> None:
    """Show format version and channel counts of an sdb.xml file."""

    serializer = _load(path)
    click.echo(f"format: {serializer.database.metadata['format_version']} ({serializer.database.metadata['newline']})")
    for channel_list in serializer.database.channel_lists.values():
        if not channel_list.channels:
            continue
        deleted = sum(1 for channel in channel_list.channels if channel.deleted)
        suffix = " read-only" if channel_list.read_only else ""
        click.echo(f"{channel_list.name}: {len(channel_list.channels)} channels, {deleted} deleted{suffix}")
    click.echo(f"total: {sum(1 for _ in serializer.database.iter_channels())} channels")


@cli.command("verify")
@click.argument("path", type=_INPUT)
def cli_verify(path: Path) -> None:
    """Load a file and verify its checksum."""

    _load(path)
    click.echo(f"{path}: ok")


@cli.command("export")
@click.argument("path", type=_INPUT)
@click.option("--output", "out", required=True, type=click.Path(path_type=Path, dir_okay=False))
def cli_export(path: Path, out: Path) -> None:
    """Export all channel lists as YAML."""

    serializer = _load(path)
    write_export(serializer.database, out)
    log.info("exported channel lists -> %s", out)


@cli.command("apply")
@click.argument("path", type=_INPUT)
@click.option("--plan", "plan_path", required=True, type=_INPUT, help="YAML or JSON edit plan.")
@click.option("--output", "out", default=None, type=click.Path(path_type=Path, dir_okay=False))
@click.option("--strict", is_flag=True, default=False, help="Fail on edits that match no channel.")
def cli_apply(path: Path, plan_path: Path, out: Optional[Path], strict: bool) -> None:
    """Apply an edit plan and save the result (in place unless --output is given)."""

    serializer = _load(path)
    try:
        plan = load_edit_plan(plan_path)
        report = apply_edit_plan(serializer.database, plan, ApplyOptions(strict=strict))
        target = serializer.save(out or path)
    except (EditError, SdbError) as exc:
        raise click.ClickException(str(exc)) from exc
    log.info("applied %d edits with %d warnings -> %s", report.applied, len(report.warnings), target)


def _load(path: Path) -> SdbSerializer:
    serializer = SdbSerializer(path)
    try:
        serializer.load()
    except SdbError as exc:
        raise click.ClickException(str(exc)) from exc
    return serializer


def main(argv: Optional[Iterable[str]] = None) -> int:
    """
    Console script ``sdbxml``. Load, checksum and edit failures end with status 1.

    Deutsch:
        Einstiegspunkt; Fehler beim Laden, Prüfen oder Bearbeiten ergeben Exit-Code 1.
    """

    args = list(sys.argv[1:] if argv is None else argv)
    try:
        status = cli.main(args=args, prog_name="sdbxml", standalone_mode=False)
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("aborted", err=True)
        return 1
    # --help and --version come back as an exit code
    return status if isinstance(status, int) else 0


if __name__ == "__main__":
    sys.exit(main())
