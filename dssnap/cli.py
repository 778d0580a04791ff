"""CLI entrypoints for dssnap commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .diff import render_text
from .logging import configure_logging
from .orchestrator import Orchestrator
from .stores import SnapshotFormatError, SnapshotNotFoundError, diff_to_dict

EXIT_OK = 0
EXIT_CHANGES = 1
EXIT_FAILURE = 2


def _add_common_options(parser: argparse.ArgumentParser, *, suppress_default: bool = False) -> None:
    verbose_kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    log_file_kwargs: dict[str, object] = {
        "type": Path,
        "metavar": "PATH",
        "help": "Also write log records to PATH.",
    }
    if suppress_default:
        verbose_kwargs["default"] = argparse.SUPPRESS
        log_file_kwargs["default"] = argparse.SUPPRESS
    else:
        verbose_kwargs["default"] = False
        log_file_kwargs["default"] = None
    parser.add_argument("-v", "--verbose", **verbose_kwargs)
    parser.add_argument("--log-file", **log_file_kwargs)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dssnap",
        description="Snapshot a design-system component library and diff snapshots over time.",
    )
    _add_common_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    snapshot_parser = subparsers.add_parser(
        "snapshot",
        help="Extract components and theme tokens and write a snapshot file.",
    )
    _add_common_options(snapshot_parser, suppress_default=True)
    snapshot_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )
    snapshot_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Where to write the snapshot (defaults to the configured output path).",
    )

    diff_parser = subparsers.add_parser(
        "diff",
        help="Compare two snapshot files.",
    )
    _add_common_options(diff_parser, suppress_default=True)
    diff_parser.add_argument("from_snapshot", metavar="FROM", help="Baseline snapshot file.")
    diff_parser.add_argument(
        "to_snapshot",
        metavar="TO",
        nargs="?",
        default=None,
        help="Snapshot to compare against (defaults to the project's current snapshot).",
    )
    diff_parser.add_argument(
        "--project",
        default=".",
        help="Project root used to locate the default TO snapshot.",
    )
    diff_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the diff as JSON instead of text.",
    )

    watch_parser = subparsers.add_parser(
        "watch",
        help="Keep the snapshot up to date as sources change.",
    )
    _add_common_options(watch_parser, suppress_default=True)
    watch_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint for dssnap commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    orchestrator = Orchestrator()

    if args.command == "snapshot":
        try:
            outcome = orchestrator.run_snapshot(args.path, output=args.output)
        except (FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(EXIT_FAILURE, f"{exc}\n")
        except Exception as exc:
            parser.exit(EXIT_FAILURE, f"dssnap snapshot failed: {exc}\nRun with --verbose for more details.\n")
        print(
            f"Snapshot with {len(outcome.snapshot.components)} components written to {_relativize(outcome.path)}"
        )
        return EXIT_OK

    if args.command == "diff":
        try:
            result = orchestrator.run_diff(args.from_snapshot, args.to_snapshot, project=args.project)
        except (SnapshotNotFoundError, SnapshotFormatError, FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(EXIT_FAILURE, f"{exc}\n")
        except Exception as exc:
            parser.exit(EXIT_FAILURE, f"dssnap diff failed: {exc}\nRun with --verbose for more details.\n")
        if args.json:
            print(json.dumps(diff_to_dict(result), indent=2, sort_keys=True))
        else:
            print(render_text(result))
        return EXIT_CHANGES if result.has_changes else EXIT_OK

    if args.command == "watch":
        try:
            orchestrator.run_watch(args.path)
        except (FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(EXIT_FAILURE, f"{exc}\n")
        except Exception as exc:
            parser.exit(EXIT_FAILURE, f"dssnap watch failed: {exc}\nRun with --verbose for more details.\n")
        return EXIT_OK

    parser.exit(EXIT_FAILURE, "Unknown command\n")  # pragma: no cover - argparse enforces choices
    return EXIT_FAILURE  # pragma: no cover


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
