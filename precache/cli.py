"""CLI entrypoints for precache commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import load_config
from .errors import PrecacheError
from .logging import configure_logging
from .manifest import get_manifest


def _add_verbosity_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Only log warnings and errors.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="precache",
        description="Build precache manifests for offline-capable web apps.",
    )
    _add_verbosity_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    manifest_parser = subparsers.add_parser(
        "manifest",
        help="Print the list of URLs and revisions to precache.",
    )
    _add_verbosity_options(manifest_parser, suppress_default=True)
    manifest_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory containing .precache.yml, or the config file itself.",
    )
    manifest_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Write the manifest JSON to this file instead of stdout.",
    )
    manifest_parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug logs to this file.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for precache commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(args.quiet),
        log_file=getattr(args, "log_file", None),
    )

    if args.command == "manifest":
        try:
            config = load_config(Path(args.path))
            result = get_manifest(config)
        except PrecacheError as exc:
            parser.exit(1, f"precache manifest failed [{exc.code}]: {exc}\n")

        payload = json.dumps(result.to_json_payload(), indent=2)
        if args.output is None:
            print(payload)
        else:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(payload + "\n", encoding="utf-8")
            print(f"Wrote {result.count} entries ({result.size} bytes) to {_relativize(args.output)}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
