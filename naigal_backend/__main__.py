"""Command line entry: extract metadata from files, or serve the HTTP routes."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from aiohttp import web

from naigal_backend.features.metadata import MetadataService
from naigal_backend.routes import create_app
from naigal_backend.shared import classify_file


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="naigal",
        description="Read NovelAI generation metadata from PNG/WebP images.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    extract = sub.add_parser("extract", help="Print normalized records as JSON.")
    extract.add_argument("paths", nargs="+", help="Image files or folders to read.")
    extract.add_argument(
        "--index",
        action="store_true",
        help="Print search index documents instead of full records.",
    )

    serve = sub.add_parser("serve", help="Run the HTTP metadata service.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8189)
    return parser.parse_args(argv)


def _expand_paths(paths: list[str]) -> list[Path]:
    """Files as given; directories contribute their .png/.webp files, sorted."""
    out: list[Path] = []
    for raw in paths:
        target = Path(raw)
        if target.is_dir():
            out.extend(p for p in sorted(target.iterdir()) if p.is_file() and classify_file(p.name) == "image")
        else:
            out.append(target)
    return out


async def _extract(paths: list[str], index: bool) -> int:
    report = await MetadataService().extract_batch(_expand_paths(paths))
    payload = {
        "records": [r.to_index_document() if index else r.to_dict() for r in report.records],
        "failures": [f.to_dict() for f in report.failures],
    }
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 1 if report.failures else 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.command == "extract":
        return asyncio.run(_extract(args.paths, args.index))
    web.run_app(create_app(), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
