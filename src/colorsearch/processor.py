"""Coordinator for the parallel histogram similarity search."""

import logging
import multiprocessing
import threading
from pathlib import Path

from tqdm import tqdm

from .channel import HistogramChannel
from .config import SearchConfig
from .errors import DirectoryListError
from .models import SearchResult
from .pool import WorkerPool, forward_worker_logs
from .ranking import Collector

logger = logging.getLogger(__name__)


class SimilaritySearch:
    """Find the dataset images whose color histograms best match a query.

    One process histograms the query image while a pool of worker
    processes histograms the candidates. Everything is streamed through a
    single bounded channel to a collector running in this process, which
    keeps the top-K candidates by histogram intersection.
    """

    def __init__(self, config: SearchConfig):
        """Initialize the search.

        Args:
            config: Search settings.

        Raises:
            ValueError: If the configuration is invalid.
        """
        config.validate()
        self.config = config
        self.ctx = multiprocessing.get_context(config.start_method)
        self.result: SearchResult | None = None

    def get_image_files(self) -> list[str]:
        """List candidate images in the dataset directory.

        Only direct entries whose name ends with the configured extension
        are kept; subdirectories are not traversed.

        Returns:
            Sorted list of candidate paths joined with the dataset directory.

        Raises:
            DirectoryListError: If the directory cannot be listed.
        """
        dataset_dir = self.config.dataset_dir
        try:
            entries = sorted(dataset_dir.iterdir())
        except OSError as e:
            msg = f"Cannot list dataset directory {dataset_dir}: {e}"
            raise DirectoryListError(msg) from e

        return [str(entry) for entry in entries if entry.name.endswith(self.config.extension)]

    def _close_when_done(self, pool: WorkerPool, channel: HistogramChannel) -> None:
        pool.join()
        channel.close()
        logger.debug("All producers finished, channel closed")

    def run(self) -> SearchResult:
        """Run the pipeline to completion.

        Returns:
            SearchResult holding the query histogram and the top-K matches.

        Raises:
            DirectoryListError: If the dataset directory cannot be listed.
            QueryHistogramError: If the query image could not be histogrammed.
        """
        cfg = self.config
        image_files = self.get_image_files()

        logger.info(f"Query image: {cfg.query_path}")
        logger.info(f"Dataset directory: {cfg.dataset_dir}")
        logger.info(f"Found {len(image_files)} candidate images")
        logger.info(f"Parallel workers: {cfg.num_workers}")

        channel = HistogramChannel(self.ctx, maxsize=cfg.num_workers)
        log_queue = self.ctx.Queue()
        pool = WorkerPool(
            self.ctx, channel, log_queue,
            num_workers=cfg.num_workers,
            depth=cfg.depth,
            log_level=logging.getLogger().getEffectiveLevel(),
        )

        # All processes start before any helper thread exists in this process
        pool.submit_query(str(cfg.query_path))
        pool.start(image_files)

        collector = Collector(cfg.top_k)
        with forward_worker_logs(log_queue):
            closer = threading.Thread(
                target=self._close_when_done, args=(pool, channel),
                name="colorsearch-closer", daemon=True,
            )
            closer.start()
            try:
                with tqdm(total=len(image_files) + 1, desc="Collecting histograms",
                          disable=not cfg.show_progress) as pbar:
                    collector.drain(channel, progress=pbar)
            except BaseException:
                pool.terminate()
                raise
            closer.join()

        self.result = collector.result(candidates=len(image_files))
        logger.info(
            f"Ranked {self.result.ranked}/{len(image_files)} candidates, "
            f"kept {len(self.result.matches)}"
        )
        return self.result

    def save_results(self, results_path: str | Path) -> None:
        """Save the last search result to disk as JSON.

        Args:
            results_path: Destination file.

        Raises:
            ValueError: If run() has not completed.
        """
        if self.result is None:
            msg = "No search result to save; call run() first"
            raise ValueError(msg)
        results_path = Path(results_path)
        with results_path.open("w") as f:
            f.write(self.result.model_dump_json(indent=2))
        logger.info(f"Results saved to {results_path}")
