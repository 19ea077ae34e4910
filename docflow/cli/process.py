"""Standalone CLI for running one file through the docflow pipeline.

Usage::

    python -m docflow.cli.process process /path/to/report.pdf
    python -m docflow.cli.process process notes.md --chunk-size 500 --chunk-overlap 50
    python -m docflow.cli.process process sheet.xlsx --json
    python -m docflow.cli.process types

The ``process`` command extracts, chunks, embeds, and stores the file with
the components configured in ``config/config.yaml`` / the environment, then
prints a summary (or the full result as JSON).  ``types`` lists the
supported file types.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import uuid
from pathlib import Path


def _format_text_output(content, status) -> str:  # noqa: ANN001
    """Format a processed document as a human-readable report."""
    from docflow.utils.timing import format_processing_time

    meta = content.metadata
    lines: list[str] = []
    sep = "=" * 60

    lines.append(sep)
    lines.append(f"  docflow -- {meta.file_name}")
    lines.append(sep)
    lines.append(f"Document id:  {status.document_id}")
    lines.append(f"Status:       {status.status.value}")
    lines.append(f"MIME type:    {meta.mime_type}  |  Size: {meta.file_size:,} bytes")
    if meta.pages is not None:
        lines.append(f"Pages:        {meta.pages}")
    if meta.title:
        lines.append(f"Title:        {meta.title}")
    if meta.author:
        lines.append(f"Author:       {meta.author}")
    lines.append("")

    tokens = sum(chunk.tokens for chunk in content.chunks)
    lines.append(f"Chunks: {len(content.chunks)}  |  Tokens (approx.): {tokens:,}")
    lines.append(f"Images: {len(content.images or [])}  |  Tables: {len(content.tables or [])}")
    for index, chunk in enumerate(content.chunks[:3], start=1):
        preview = chunk.content[:100] + ("..." if len(chunk.content) > 100 else "")
        lines.append(f"  [{index}] {preview}")
    if len(content.chunks) > 3:
        lines.append(f"  ... and {len(content.chunks) - 3} more")

    lines.append(sep)
    lines.append(
        f"  Completed in {format_processing_time(status.started_at, status.completed_at)}"
    )
    lines.append(sep)
    return "\n".join(lines)


def _format_json_output(content, status) -> str:  # noqa: ANN001
    """Serialize the processed document and its final status to JSON."""
    output = {
        "status": status.model_dump(mode="json"),
        "content": content.model_dump(mode="json", exclude_none=True),
    }
    return json.dumps(output, indent=2, default=str)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_process(args: argparse.Namespace) -> int:
    """Run the pipeline on ``args.file``; returns the process exit code."""
    # Deferred: docflow.main pulls in FastAPI and the provider stack.
    from docflow.main import build_context
    from docflow.models.options import ProcessingOptions
    from docflow.utils.errors import DocflowError

    path = Path(args.file).resolve()
    if not path.is_file():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1

    context = build_context()
    await context.start()
    try:
        data = path.read_bytes()
        document_id = args.document_id or uuid.uuid4().hex
        options = ProcessingOptions(
            chunk_size=args.chunk_size,
            chunk_overlap=args.chunk_overlap,
        )
        print(f"Processing: {path.name} ({len(data):,} bytes)", file=sys.stderr)
        try:
            content = await context.pipeline.process_file(
                document_id, data, path.name, options
            )
        except DocflowError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1

        status = context.pipeline.get_status(document_id)
        if args.json_output:
            print(_format_json_output(content, status))
        else:
            print(_format_text_output(content, status))
        return 0
    finally:
        await context.shutdown()


def _handle_types() -> int:
    from docflow.services.ingestion.registry import build_default_registry

    registry = build_default_registry()
    for descriptor in registry.supported_types():
        extensions = " ".join(descriptor.extensions)
        print(f"{descriptor.icon}  {descriptor.type:<6} {extensions}")
    return 0


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the process CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m docflow.cli.process",
        description="Extract, chunk, embed, and store documents from the command line.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # -- process --
    process_parser = subparsers.add_parser("process", help="Process a single file")
    process_parser.add_argument("file", help="Path to the file to process")
    process_parser.add_argument(
        "--document-id",
        dest="document_id",
        default=None,
        help="Document id (default: random)",
    )
    process_parser.add_argument(
        "--chunk-size", dest="chunk_size", type=int, default=None, help="Tokens per chunk"
    )
    process_parser.add_argument(
        "--chunk-overlap",
        dest="chunk_overlap",
        type=int,
        default=None,
        help="Overlap between chunks, in words",
    )
    process_parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output the result as JSON instead of a summary.",
    )

    # -- types --
    subparsers.add_parser("types", help="List supported file types")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point; exits 0 on success and 1 on any failure."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "types":
        sys.exit(_handle_types())

    from docflow.utils.logging import configure_logging

    # Logs go to stderr so stdout carries only the report.
    configure_logging(log_level="WARNING" if args.json_output else "INFO", stream=sys.stderr)
    sys.exit(asyncio.run(_handle_process(args)))


if __name__ == "__main__":
    main()
