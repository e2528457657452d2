"""CLI search over NCBI GEO/SRA -> normalized, filtered, paginated studies."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.analytics import SORT_KEYS
from src.api.catalog import MIN_YEAR, max_year
from src.ingestion.eutils_client import EutilsClient
from src.ingestion.models import FilterSet, SearchResult
from src.search import StudySearchService
from src.utils.config import load_settings


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("query", help="Free-text search query, e.g. 'breast cancer hypoxia'")
    parser.add_argument("--page", type=int, default=1, help="Result page (default: 1)")
    parser.add_argument("--limit", type=int, default=10, help="Studies per page (default: 10)")
    parser.add_argument("--sort", choices=SORT_KEYS, default="relevant", help="Sort order")
    parser.add_argument(
        "--organism",
        action="append",
        default=[],
        help="Keep only this organism (repeatable)",
    )
    parser.add_argument(
        "--exp-type",
        action="append",
        default=[],
        help="Keep only this experiment type, e.g. RNA-seq (repeatable)",
    )
    parser.add_argument(
        "--platform",
        action="append",
        default=[],
        help="Keep only this platform (repeatable)",
    )
    parser.add_argument(
        "--study-type",
        action="append",
        default=[],
        choices=["In vivo", "In vitro", "In silico"],
        help="Keep only this study type (repeatable)",
    )
    parser.add_argument("--year-min", type=int, help="Earliest year (inclusive)")
    parser.add_argument("--year-max", type=int, help="Latest year (inclusive)")
    parser.add_argument("--author", help="Case-insensitive author/submitter substring")
    parser.add_argument("--journal", help="Case-insensitive journal substring")
    parser.add_argument("--json", action="store_true", help="Print the raw JSON result")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def build_filters(args: argparse.Namespace) -> FilterSet:
    year_range = None
    if args.year_min is not None or args.year_max is not None:
        year_range = (
            args.year_min if args.year_min is not None else MIN_YEAR,
            args.year_max if args.year_max is not None else max_year(),
        )
    return FilterSet(
        organisms=tuple(args.organism),
        exp_types=tuple(args.exp_type),
        platforms=tuple(args.platform),
        year_range=year_range,
        author=args.author,
        journal=args.journal,
        study_types=tuple(args.study_type),
    )


def print_result(result: SearchResult) -> None:
    print(
        f"Page {result.page}/{result.total_pages} - {result.total} matching studies"
    )
    for study in result.studies:
        print(
            f"  {study.id:<14} {study.year}  {study.exp_type:<12} {study.organism:<20} "
            f"{study.samples:>5} samples  {study.title[:80]}"
        )


def run_search(args: argparse.Namespace, *, service: StudySearchService | None = None) -> SearchResult:
    if service is None:
        settings = load_settings()
        service = StudySearchService(EutilsClient.from_settings(settings))
    return service.search_page(
        args.query,
        filters=build_filters(args),
        sort=args.sort,
        page=args.page,
        limit=args.limit,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    result = run_search(args)
    if args.json:
        print(json.dumps(result.to_api(), indent=2, ensure_ascii=False))
    else:
        print_result(result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
