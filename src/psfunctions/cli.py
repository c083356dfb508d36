"""CLI entry point: ``psfn list``, ``psfn run`` and ``psfn reload``."""

from __future__ import annotations

import argparse
import asyncio
import sys

from psfunctions import __version__
from psfunctions.config import Settings
from psfunctions.constants import LocationState
from psfunctions.logging_config import setup_logging
from psfunctions.services.events import SessionEvent
from psfunctions.services.session import FunctionSession, open_session


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"psfn {__version__}")
        return

    if args.command is None:
        parser.print_help()
        return

    settings = Settings()
    setup_logging("INFO" if args.verbose else settings.log_level)
    script = args.script if args.script is not None else settings.script_path

    ok = asyncio.run(_dispatch(args, settings, script))
    if not ok:
        sys.exit(1)


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="psfn",
        description=(
            "List and run the parameter-less functions "
            "of a PowerShell script."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    parser.add_argument(
        "--script",
        "-s",
        default=None,
        help=(
            "Path to the .ps1 file; ~ is your home directory "
            "(default: PSFN_SCRIPT_PATH)"
        ),
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )

    sub = parser.add_subparsers(dest="command")

    list_parser = sub.add_parser(
        "list",
        help="List functions that take no arguments",
    )
    list_parser.add_argument(
        "--fresh",
        action="store_true",
        help="Ignore the cache and parse the script again",
    )
    list_parser.add_argument(
        "--filter",
        "-f",
        default="",
        help="Only show names containing this text",
    )

    run_parser = sub.add_parser(
        "run",
        help="Execute one function",
    )
    run_parser.add_argument(
        "function",
        help="Function name, as printed by 'psfn list'",
    )

    sub.add_parser(
        "reload",
        help="Drop the cached list and parse the script again",
    )

    return parser


async def _dispatch(
    args: argparse.Namespace,
    settings: Settings,
    script: str,
) -> bool:
    def on_progress(event: SessionEvent) -> None:
        if args.verbose:
            detail = f": {event.message}" if event.message else ""
            print(f"  {event.title}{detail}", file=sys.stderr)

    async with open_session(settings, on_progress=on_progress) as session:
        view = await session.configure(script)
        if view.location_state == LocationState.PATH_INVALID:
            title, description = view.empty_state()
            print(f"{title}: {description}", file=sys.stderr)
            return False

        if args.command == "list":
            return await _run_list(session, args.fresh, args.filter)
        if args.command == "run":
            return await _run_function(session, args.function)
        if args.command == "reload":
            return await _run_reload(session)
    return False


async def _run_list(
    session: FunctionSession, fresh: bool, query: str
) -> bool:
    if fresh:
        await session.load_names(force_fresh=True)
    view = session.view
    if view.error:
        print(view.error, file=sys.stderr)
        return False

    names = session.search(query)
    if not names:
        title, description = view.empty_state()
        print(f"{title}. {description}", file=sys.stderr)
        return True
    for name in names:
        print(name)
    return True


async def _run_function(session: FunctionSession, name: str) -> bool:
    outcome = await session.run_function(name)
    if outcome.ok:
        if outcome.stdout:
            print(outcome.stdout)
        return True
    print(
        f'Failed to Execute "{name}": {outcome.error}',
        file=sys.stderr,
    )
    return False


async def _run_reload(session: FunctionSession) -> bool:
    report = await session.reload()
    if report.ok:
        print(f"Reloaded {report.count} functions")
        return True
    print(f"Reload failed: {report.error}", file=sys.stderr)
    return False


if __name__ == "__main__":
    main()
