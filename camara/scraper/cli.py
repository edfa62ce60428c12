from __future__ import annotations

"""Command-line entrypoint for the scraper."""

import argparse
from pathlib import Path
from typing import Sequence

from . import config, sources
from .config import ScrapeSettings
from .run import run_scrape


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Download documents and build the index for a legislative portal.",
    )
    parser.add_argument(
        "--source",
        default=None,
        help=(
            f"Portal to scrape ({', '.join(sources.ALL_SOURCES)}). "
            "Unknown values fall back to the default with a warning."
        ),
    )
    parser.add_argument(
        "--single-page",
        "--uma-pagina",
        dest="single_page",
        action="store_true",
        help="Process exactly one listing page.",
    )
    parser.add_argument("--max-pages", type=int, default=None)
    parser.add_argument(
        "--start-page",
        type=int,
        default=None,
        help="Start here instead of the resume point.",
    )
    parser.add_argument(
        "--no-resume",
        dest="resume",
        action="store_false",
        help="Ignore the checkpoint and existing index; start at page 1.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Output directory (default: <CAMARA_OUTPUT_ROOT>/<source>).",
    )
    parser.add_argument("--headful", action="store_true", help="Show the browser window.")
    parser.add_argument("--excel", action="store_true", help="Also write documentos_info.xlsx.")
    return parser


def settings_from_args(args: argparse.Namespace) -> ScrapeSettings:
    source = sources.coerce_source(args.source)
    output_dir = args.output_dir or (config.OUTPUT_ROOT / sources.get_profile(source).output_dirname)
    return ScrapeSettings(
        source=source,
        output_dir=Path(output_dir),
        single_page=args.single_page,
        max_pages=args.max_pages,
        start_page=args.start_page,
        resume=args.resume,
        headless=config.HEADLESS and not args.headful,
        export_excel=args.excel,
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.max_pages is not None and args.max_pages < 1:
        parser.error("--max-pages must be at least 1")
    if args.start_page is not None and args.start_page < 1:
        parser.error("--start-page must be at least 1")

    settings = settings_from_args(args)
    try:
        summary = run_scrape(settings)
    except Exception:  # noqa: BLE001 - already logged with traceback by run_scrape
        return 1

    print(
        f"{summary.source}: {summary.documents} documentos em {summary.pages} páginas "
        f"({summary.files_downloaded} arquivos salvos, {summary.files_failed} falhas)"
    )
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
