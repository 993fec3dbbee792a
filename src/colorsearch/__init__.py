"""Color Search - Parallel histogram-intersection image similarity search."""

from .channel import HistogramChannel
from .config import SearchConfig
from .errors import (
    DecodeFailedError,
    DirectoryListError,
    OpenFailedError,
    QueryHistogramError,
    SearchError,
)
from .histogram import compute_histogram, intersection_distance
from .models import ChannelMessage, Histogram, ImageMatch, SearchResult
from .processor import SimilaritySearch
from .ranking import Collector, TopK

__version__ = "0.1.0"

__all__ = [
    "ChannelMessage",
    "Collector",
    "DecodeFailedError",
    "DirectoryListError",
    "Histogram",
    "HistogramChannel",
    "ImageMatch",
    "OpenFailedError",
    "QueryHistogramError",
    "SearchConfig",
    "SearchError",
    "SearchResult",
    "SimilaritySearch",
    "TopK",
    "compute_histogram",
    "intersection_distance",
]
