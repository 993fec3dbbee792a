"""Online top-K ranking of candidate histograms against the query."""

import logging
from collections.abc import Iterable

from tqdm import tqdm

from .config import TOP_K
from .errors import LengthMismatchError, QueryHistogramError
from .histogram import LENGTH_MISMATCH, intersection_distance
from .models import ChannelMessage, Histogram, ImageMatch, SearchResult

logger = logging.getLogger(__name__)


class TopK:
    """Bounded list of the best candidates seen so far.

    While fewer than k entries are held, every offer is appended. After
    that an offer replaces the weakest incumbent only if its distance is
    strictly greater, so on ties the earlier record stays.
    """

    def __init__(self, k: int = TOP_K):
        if k <= 0:
            msg = f"k must be positive, got {k}"
            raise ValueError(msg)
        self.k = k
        self._entries: list[tuple[Histogram, int]] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[tuple[Histogram, int]]:
        """Held (histogram, distance) pairs in list order."""
        return list(self._entries)

    def offer(self, histogram: Histogram, distance: int) -> bool:
        """Consider one candidate.

        Returns:
            True if the candidate was added to the list.
        """
        if len(self._entries) < self.k:
            self._entries.append((histogram, distance))
            return True

        weakest = min(range(len(self._entries)), key=lambda i: self._entries[i][1])
        if distance > self._entries[weakest][1]:
            self._entries[weakest] = (histogram, distance)
            return True
        return False

    def ranked(self) -> list[tuple[Histogram, int]]:
        """Held pairs by descending distance; equal distances keep list order."""
        return sorted(self._entries, key=lambda entry: entry[1], reverse=True)


class Collector:
    """Consumes channel records and ranks candidates against the query.

    Records may arrive in any order. Candidates that arrive before the
    query are buffered and ranked once the query histogram is known.
    """

    def __init__(self, top_k: int = TOP_K):
        self.top = TopK(top_k)
        self.query: Histogram | None = None
        self.ranked_count = 0
        self._pending: list[Histogram] = []

    def receive(self, message: ChannelMessage) -> None:
        """Handle one record from the channel."""
        if message.is_query:
            self.query = message.histogram
            pending, self._pending = self._pending, []
            if pending:
                logger.debug(f"Query arrived after {len(pending)} candidates")
            for histogram in pending:
                self._rank(histogram)
        elif self.query is None:
            self._pending.append(message.histogram)
        else:
            self._rank(message.histogram)

    def _rank(self, histogram: Histogram) -> None:
        assert self.query is not None
        distance = intersection_distance(self.query.bins, histogram.bins)
        if distance == LENGTH_MISMATCH:
            msg = (
                f"{histogram.name} has {len(histogram.bins)} bins, "
                f"query has {len(self.query.bins)}"
            )
            raise LengthMismatchError(msg)
        self.top.offer(histogram, distance)
        self.ranked_count += 1

    def drain(self, messages: Iterable[ChannelMessage], progress: tqdm | None = None) -> None:
        """Receive records until the source is exhausted (channel closed).

        Args:
            messages: Channel or any iterable of records.
            progress: Optional progress bar advanced once per record.
        """
        for message in messages:
            self.receive(message)
            if progress is not None:
                progress.update(1)

    def result(self, candidates: int = 0) -> SearchResult:
        """Freeze the ranking.

        Args:
            candidates: Number of candidate files that were scheduled.

        Returns:
            SearchResult with matches best first.

        Raises:
            QueryHistogramError: If no query record was received.
        """
        if self.query is None:
            msg = "query image histogram was not produced"
            raise QueryHistogramError(msg)

        matches = [
            ImageMatch(image_path=histogram.name, distance=distance)
            for histogram, distance in self.top.ranked()
        ]
        return SearchResult(
            query=self.query,
            matches=matches,
            candidates=candidates,
            ranked=self.ranked_count,
        )
