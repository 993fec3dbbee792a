"""Static-partition worker pool for parallel histogram computation.

Candidate paths are split into contiguous batches, one worker process per
batch. Workers publish histograms to a shared HistogramChannel and log
per-file failures; their log records are forwarded to the parent process
through a queue so that a single set of handlers writes them.
"""

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from logging.handlers import QueueHandler, QueueListener
from multiprocessing.context import BaseContext
from multiprocessing.process import BaseProcess
from multiprocessing.queues import Queue
from typing import Any

from .channel import HistogramChannel
from .errors import HistogramError
from .histogram import compute_histogram
from .models import ChannelMessage

logger = logging.getLogger(__name__)


def partition(paths: Sequence[str], num_workers: int) -> list[list[str]]:
    """Split paths into contiguous batches of ceil(len(paths) / num_workers).

    The last batch may be shorter. No empty batches are returned, so fewer
    than num_workers batches come back when there are few paths.

    Args:
        paths: Candidate image paths.
        num_workers: Maximum number of batches.

    Returns:
        List of batches preserving input order.

    Raises:
        ValueError: If num_workers is not positive.
    """
    if num_workers <= 0:
        msg = f"num_workers must be positive, got {num_workers}"
        raise ValueError(msg)
    if not paths:
        return []

    batch_size = (len(paths) + num_workers - 1) // num_workers
    return [list(paths[i:i + batch_size]) for i in range(0, len(paths), batch_size)]


def compute_histograms(
    image_paths: Sequence[str], depth: int, channel: HistogramChannel
) -> int:
    """Histogram each path in order and send the successes to the channel.

    Args:
        image_paths: Batch of image paths.
        depth: Maximum bin index.
        channel: Output channel.

    Returns:
        Number of histograms sent.
    """
    sent = 0
    for image_path in image_paths:
        try:
            histogram = compute_histogram(image_path, depth)
        except HistogramError as e:
            logger.error(f"Error computing histogram for {image_path}: {e.reason}")
            continue
        channel.send(ChannelMessage(histogram=histogram))
        sent += 1
    return sent


def compute_query_histogram(
    query_path: str, depth: int, channel: HistogramChannel
) -> bool:
    """Histogram the query image and send it tagged as the query.

    Returns:
        True if the query histogram was sent.
    """
    try:
        histogram = compute_histogram(query_path, depth)
    except HistogramError as e:
        logger.error(f"Error computing histogram for {query_path}: {e.reason}")
        return False
    logger.info(f"Query histogram ready: {histogram.width}x{histogram.height} pixels")
    channel.send(ChannelMessage(histogram=histogram, is_query=True))
    return True


def _init_worker_logging(log_queue: "Queue[Any]", level: int) -> None:
    """Route every record logged in this process to the parent's queue."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    root.addHandler(QueueHandler(log_queue))
    root.setLevel(level)


def _batch_worker(
    image_paths: list[str], depth: int, channel: HistogramChannel,
    log_queue: "Queue[Any]", log_level: int
) -> None:
    """Process entry point for one candidate batch."""
    _init_worker_logging(log_queue, log_level)
    sent = compute_histograms(image_paths, depth, channel)
    logger.debug(f"Batch done: {sent}/{len(image_paths)} histograms sent")


def _query_worker(
    query_path: str, depth: int, channel: HistogramChannel,
    log_queue: "Queue[Any]", log_level: int
) -> None:
    """Process entry point for the query image."""
    _init_worker_logging(log_queue, log_level)
    compute_query_histogram(query_path, depth, channel)


class _ReplayHandler(logging.Handler):
    """Hands forwarded worker records to the matching logger in this process."""

    def emit(self, record: logging.LogRecord) -> None:
        logging.getLogger(record.name).handle(record)


@contextmanager
def forward_worker_logs(log_queue: "Queue[Any]") -> Iterator[QueueListener]:
    """Replay records from worker processes while the block runs.

    On exit the listener is stopped, which first drains every record
    already in the queue.

    Args:
        log_queue: Queue the workers' QueueHandlers write to.

    Yields:
        The running QueueListener.
    """
    listener = QueueListener(log_queue, _ReplayHandler())
    listener.start()
    try:
        yield listener
    finally:
        listener.stop()


class WorkerPool:
    """Fixed set of worker processes feeding one HistogramChannel."""

    def __init__(  # noqa: PLR0913
        self,
        ctx: BaseContext,
        channel: HistogramChannel,
        log_queue: "Queue[Any]",
        num_workers: int,
        depth: int,
        log_level: int = logging.WARNING
    ):
        """Initialize the pool.

        Args:
            ctx: Multiprocessing context used to start workers.
            channel: Channel all workers publish to.
            log_queue: Queue receiving the workers' log records.
            num_workers: Maximum number of candidate workers.
            depth: Maximum bin index.
            log_level: Logging level applied inside worker processes.
        """
        self.ctx = ctx
        self.channel = channel
        self.log_queue = log_queue
        self.num_workers = num_workers
        self.depth = depth
        self.log_level = log_level
        self.processes: list[BaseProcess] = []

    def _spawn(self, target: Any, name: str, *args: Any) -> None:
        process = self.ctx.Process(
            target=target,
            args=(*args, self.depth, self.channel, self.log_queue, self.log_level),
            name=name,
            daemon=True,
        )
        process.start()
        self.processes.append(process)

    def submit_query(self, query_path: str) -> None:
        """Start the extra task that histograms the query image."""
        self._spawn(_query_worker, "colorsearch-query", query_path)

    def start(self, image_paths: Sequence[str]) -> int:
        """Partition the candidates and start one worker per batch.

        Args:
            image_paths: Candidate image paths.

        Returns:
            Number of candidate workers started.
        """
        batches = partition(image_paths, self.num_workers)
        for i, batch in enumerate(batches):
            self._spawn(_batch_worker, f"colorsearch-worker-{i}", batch)
        logger.info(f"Started {len(batches)} workers for {len(image_paths)} images")
        return len(batches)

    def join(self) -> None:
        """Wait for every started process to exit."""
        for process in self.processes:
            process.join()
            if process.exitcode != 0:
                logger.error(f"{process.name} exited with code {process.exitcode}")

    def terminate(self) -> None:
        """Stop all processes that are still running."""
        for process in self.processes:
            if process.is_alive():
                process.terminate()
        for process in self.processes:
            process.join()
