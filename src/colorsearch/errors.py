"""Exception types raised by the histogram search pipeline."""


class SearchError(Exception):
    """Base class for all colorsearch errors."""


class HistogramError(SearchError):
    """A single image could not be turned into a histogram.

    Recovered at the worker boundary: the file is logged and skipped.
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(reason)


class OpenFailedError(HistogramError):
    """The image file could not be opened or read."""


class DecodeFailedError(HistogramError):
    """The file was read but does not decode to an image."""


class DirectoryListError(SearchError):
    """The dataset directory could not be listed."""


class QueryHistogramError(SearchError):
    """No histogram was produced for the query image."""


class LengthMismatchError(SearchError):
    """Two histograms of different depth were compared."""


class ChannelClosedError(SearchError):
    """A record was sent after the channel was closed."""
