"""CLI entrypoints for qdocgen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError, QDocConfig, load_config
from .diagnostics import ContractError
from .export import write_model
from .logging import configure_logging
from .models import DocEntry, DocumentModel, ResolutionState, segments_text
from .pipeline import build_project
from .symbols import SymbolTableError


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project root or .qdocgen.yml path (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qdocgen",
        description="Parse QDoc comments and build a cross-referenced documentation model.",
    )
    _add_verbose_option(parser)
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Build the documentation model and report diagnostics.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    _add_path_argument(build_parser)
    build_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Write the model as JSON (overrides `output` from .qdocgen.yml).",
    )
    build_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when any diagnostic is reported.",
    )

    show_parser = subparsers.add_parser(
        "show",
        help="Print the documentation bound to one symbol.",
    )
    _add_verbose_option(show_parser, suppress_default=True)
    show_parser.add_argument("symbol", help="Qualified symbol name, e.g. TestClass::testProperty.")
    _add_path_argument(show_parser)
    show_parser.add_argument(
        "--scope",
        default=None,
        help="Owning type used to resolve an unqualified symbol name.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Serve documentation lookups over HTTP.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    _add_path_argument(serve_parser)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for qdocgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = load_config(Path(args.path))
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "serve":
        from .service import run_service

        run_service(lambda: build_project(config), host=args.host, port=args.port)
        return

    try:
        model = build_project(config)
    except (ContractError, SymbolTableError) as exc:
        parser.exit(1, f"qdocgen {args.command} failed: {exc}\n")

    if args.command == "build":
        _run_build(parser, args, config, model)
    elif args.command == "show":
        entry = model.lookup(args.symbol, args.scope)
        if entry is None:
            parser.exit(1, f"No documentation for {args.symbol}\n")
        print(format_entry(entry))
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_build(
    parser: argparse.ArgumentParser,
    args: argparse.Namespace,
    config: QDocConfig,
    model: DocumentModel,
) -> None:
    for diagnostic in model.diagnostics:
        print(str(diagnostic), file=sys.stderr)
    output = args.output or config.output
    if output is not None:
        written = write_model(model, output)
        print(f"Model written to {_relativize(written)}")
    print(f"Documented {len(model)} symbols ({len(model.diagnostics)} diagnostics)")
    if args.strict and model.diagnostics:
        parser.exit(1, "Diagnostics reported in --strict mode\n")


def format_entry(entry: DocEntry) -> str:
    """Plain-text view of an entry for terminal output."""
    lines = [f"{entry.key} ({entry.kind.value})", f"  {entry.href}"]
    if entry.summary:
        lines.extend(["", entry.summary])
    details = [
        ("Since", entry.since),
        ("Module", entry.module),
    ]
    for label, value in details:
        if value:
            lines.append(f"{label}: {value}")
    for section in entry.sections:
        text = segments_text(section.body)
        if section.title:
            lines.extend(["", section.title])
        if text:
            lines.extend(["", text])
    if entry.references:
        lines.append("")
        lines.append("References:")
        for reference in entry.references:
            marker = "" if reference.state is ResolutionState.RESOLVED else " (unresolved)"
            lines.append(f"  {reference.target}{marker}")
    return "\n".join(lines)


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
