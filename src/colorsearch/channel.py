"""Bounded inter-process channel carrying histogram records."""

from collections.abc import Iterator
from multiprocessing.context import BaseContext

from .errors import ChannelClosedError
from .models import ChannelMessage

# In-band close marker; producers never send None
_CLOSED = None


class HistogramChannel:
    """Multi-producer, single-consumer queue with exactly one closer.

    Producers call send() from any process. The consumer iterates the
    channel until the closer has called close(), which it may only do
    after every producer has terminated.
    """

    def __init__(self, ctx: BaseContext, maxsize: int = 0):
        """Create the channel.

        Args:
            ctx: Multiprocessing context the producers are started from.
            maxsize: Buffer capacity; 0 means unbounded.
        """
        self._queue = ctx.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether close() has been called in this process."""
        return self._closed

    def send(self, message: ChannelMessage) -> None:
        """Publish one record, blocking while the buffer is full.

        Raises:
            ChannelClosedError: If the channel was already closed.
        """
        if self._closed:
            msg = f"send on closed channel: {message.histogram.name}"
            raise ChannelClosedError(msg)
        self._queue.put(message)

    def close(self) -> None:
        """Signal the consumer that no more records will arrive.

        Raises:
            ChannelClosedError: If the channel was already closed.
        """
        if self._closed:
            msg = "channel already closed"
            raise ChannelClosedError(msg)
        self._closed = True
        self._queue.put(_CLOSED)

    def __iter__(self) -> Iterator[ChannelMessage]:
        """Yield records in arrival order until the channel is closed."""
        while True:
            message = self._queue.get()
            if message is _CLOSED:
                return
            yield message
