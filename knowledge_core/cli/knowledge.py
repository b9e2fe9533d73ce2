# =============================================================================
# knowledge_core/cli/knowledge.py - Ingestion & Crawl CLI
# =============================================================================
#
# Usage examples:
#   python -m knowledge_core.cli chunk notes.txt --chunk-size 800 --overlap 100
#   python -m knowledge_core.cli extract report.pdf --type pdf
#   python -m knowledge_core.cli crawl https://example.com --depth 2 --max-pages 20
#   python -m knowledge_core.cli --config deploy.yaml crawl https://example.com
#   python -m knowledge_core.cli validate-url example.com/docs
#
# Exit codes: 0 success, 1 a knowledge_core error (message on stderr),
# 2 usage error (argparse).
# =============================================================================

"""Command-line entry point printing JSON results."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from knowledge_core.config.settings import Settings
from knowledge_core.utils.errors import KnowledgeCoreError
from knowledge_core.utils.logging import configure_logging


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _handle_chunk(args: argparse.Namespace, app_settings: Settings) -> int:
    from knowledge_core.services.ingestion.chunker import TextChunker

    text = Path(args.file).read_text(encoding="utf-8")
    chunker = TextChunker(
        chunk_size=args.chunk_size or app_settings.chunk_size,
        overlap=args.overlap if args.overlap is not None else app_settings.chunk_overlap,
    )
    passages = chunker.chunk(text)
    _emit([passage.model_dump() for passage in passages])
    return 0


async def _handle_extract(args: argparse.Namespace, app_settings: Settings) -> int:
    from knowledge_core.services.ingestion.document_extractor import (
        DocumentTextExtractor,
        get_file_extension,
    )

    root = args.root or app_settings.upload_dir
    file_type = args.type or get_file_extension(args.path)
    extractor = DocumentTextExtractor(root)
    document = await extractor.extract(args.path, file_type)
    _emit(document.model_dump(mode="json"))
    return 0


async def _handle_crawl(args: argparse.Namespace, app_settings: Settings) -> int:
    from knowledge_core.config.loader import load_config
    from knowledge_core.main import build_crawl_options, build_crawler, crawl_presets
    from knowledge_core.services.crawl.web_crawler import crawl_site

    allowed_depths, allowed_max_pages = crawl_presets(load_config(args.config, settings=app_settings))
    options = build_crawl_options(app_settings)
    if args.ignore_robots:
        options = options.model_copy(update={"respect_robots_txt": False})

    crawler = build_crawler(app_settings)
    try:
        result = await crawl_site(
            args.url,
            crawl_depth=args.depth,
            max_pages=args.max_pages,
            crawler=crawler,
            base_options=options,
            allowed_depths=allowed_depths,
            allowed_max_pages=allowed_max_pages,
        )
    finally:
        await crawler.aclose()

    payload = result.model_dump(mode="json")
    if not args.include_markdown:
        for page in payload["pages"]:
            page.pop("markdown", None)
    _emit(payload)
    return 0 if result.status.value == "completed" else 1


def _handle_validate_url(args: argparse.Namespace) -> int:
    from knowledge_core.services.crawl.url_validator import validate_url

    result = validate_url(args.url)
    _emit(result.model_dump())
    return 0 if result.valid else 1


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m knowledge_core.cli",
        description="Chunk text, extract documents and crawl sites for a RAG knowledge base.",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="YAML config file; crawl presets are read from it (default: config/config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # -- chunk --
    chunk_parser = subparsers.add_parser("chunk", help="Split a UTF-8 text file into passages")
    chunk_parser.add_argument("file", help="Path to the text file")
    chunk_parser.add_argument("--chunk-size", type=int, default=None, dest="chunk_size")
    chunk_parser.add_argument("--overlap", type=int, default=None)

    # -- extract --
    extract_parser = subparsers.add_parser("extract", help="Extract text from a document")
    extract_parser.add_argument("path", help="Path relative to the upload root")
    extract_parser.add_argument(
        "--type",
        choices=["pdf", "docx", "doc", "txt", "md"],
        default=None,
        help="File type (default: from the extension)",
    )
    extract_parser.add_argument("--root", default=None, help="Upload root (default: UPLOAD_DIR)")

    # -- crawl --
    crawl_parser = subparsers.add_parser("crawl", help="Crawl a site breadth-first")
    crawl_parser.add_argument("url", help="Seed URL")
    crawl_parser.add_argument(
        "--depth", type=int, default=1, help="Maximum link depth, one of crawl.allowed_depths (default: 1)"
    )
    crawl_parser.add_argument(
        "--max-pages", type=int, default=10, dest="max_pages", help="Page budget (default: 10)"
    )
    crawl_parser.add_argument(
        "--ignore-robots", action="store_true", dest="ignore_robots", help="Skip robots.txt checks"
    )
    crawl_parser.add_argument(
        "--include-markdown",
        action="store_true",
        dest="include_markdown",
        help="Include each page's Markdown in the output",
    )

    # -- validate-url --
    validate_parser = subparsers.add_parser("validate-url", help="Check a URL against the safety rules")
    validate_parser.add_argument("url", help="URL to validate")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the subcommand and return the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    app_settings = Settings()
    configure_logging(log_level=args.log_level or app_settings.log_level)

    try:
        if args.command == "chunk":
            return _handle_chunk(args, app_settings)
        if args.command == "extract":
            return asyncio.run(_handle_extract(args, app_settings))
        if args.command == "crawl":
            return asyncio.run(_handle_crawl(args, app_settings))
        if args.command == "validate-url":
            return _handle_validate_url(args)
    except (KnowledgeCoreError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    parser.print_help()
    return 1
