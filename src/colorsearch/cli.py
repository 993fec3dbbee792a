#!/usr/bin/env python3
"""CLI interface for colorsearch."""

import argparse
import logging
import sys

from .config import DEPTH, NUM_WORKERS, TOP_K, SearchConfig
from .errors import SearchError
from .models import Histogram, SearchResult
from .processor import SimilaritySearch


class _UsageParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors on standard output."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stdout)
        print(f"{self.prog}: error: {message}")
        sys.exit(2)


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser.

    Returns:
        Configured parser with two required positionals.
    """
    parser = _UsageParser(
        prog="colorsearch",
        description="Find the images in a directory whose color histograms "
                    "best match a query image",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument("query", type=str, help="Path to the query image")
    parser.add_argument("dataset", type=str, help="Directory of candidate .jpg images")

    parser.add_argument("--top-k", type=int, default=TOP_K,
                        help="Number of most similar images to report")
    parser.add_argument("--num-workers", type=int, default=NUM_WORKERS,
                        help="Number of parallel histogram workers")
    parser.add_argument("--depth", type=int, default=DEPTH,
                        help="Maximum histogram bin index (bin count is depth + 1)")
    parser.add_argument("--results-json", type=str, default=None,
                        help="Also write the search result to this JSON file")
    parser.add_argument("--progress", action="store_true",
                        help="Show a progress bar while collecting histograms")
    parser.add_argument("--verbose", action="store_true",
                        help="Log pipeline progress")
    return parser


def format_histogram(histogram: Histogram) -> str:
    """Render bins as a space separated list in brackets."""
    return "[" + " ".join(str(count) for count in histogram.bins) + "]"


def print_result(result: SearchResult, top_k: int) -> None:
    """Print the query histogram and the ranked matches to standard output."""
    print(f"Histogram of the query image: {format_histogram(result.query)}")
    print(f"The {top_k} most similar images:")
    for rank, match in enumerate(result.matches, start=1):
        print(f"{rank}: {match.image_path}")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for colorsearch.

    Parses command-line arguments and runs the search pipeline.
    """
    args = build_parser().parse_args(argv)

    # Configure logging; per-file diagnostics go to stdout as bare lines
    if args.verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
            stream=sys.stdout
        )
    else:
        logging.basicConfig(level=logging.WARNING, format="%(message)s", stream=sys.stdout)

    config = SearchConfig(
        query_path=args.query,
        dataset_dir=args.dataset,
        depth=args.depth,
        top_k=args.top_k,
        num_workers=args.num_workers,
        show_progress=args.progress,
    )

    try:
        search = SimilaritySearch(config)
        result = search.run()
    except (SearchError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    print_result(result, config.top_k)

    if args.results_json:
        search.save_results(args.results_json)


if __name__ == "__main__":
    main()
