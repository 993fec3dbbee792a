"""Pydantic models for type-safe data structures."""


from pydantic import BaseModel, ConfigDict, Field, field_validator


class Histogram(BaseModel):
    """Depth-quantized color histogram of one image.

    Red, green and blue samples share a single set of bins; alpha is ignored.

    Attributes:
        name: Source path of the image, used as its identity in results.
        bins: Sample counts per quantized intensity, length depth + 1.
        width: Decoded image width in pixels.
        height: Decoded image height in pixels.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    bins: tuple[int, ...]
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)

    @field_validator("bins")
    @classmethod
    def _non_negative(cls, bins: tuple[int, ...]) -> tuple[int, ...]:
        if any(count < 0 for count in bins):
            msg = "histogram bins must be non-negative"
            raise ValueError(msg)
        return bins

    @property
    def depth(self) -> int:
        """Maximum bin index."""
        return len(self.bins) - 1

    @property
    def total(self) -> int:
        """Sum of all bins (3 * width * height for a decoded image)."""
        return sum(self.bins)


class ChannelMessage(BaseModel):
    """One record travelling from a producer to the collector.

    Attributes:
        histogram: The computed histogram.
        is_query: True only for the record of the query image.
    """
    model_config = ConfigDict(frozen=True)

    histogram: Histogram
    is_query: bool = False


class ImageMatch(BaseModel):
    """Single candidate image with its intersection distance to the query.

    Attributes:
        image_path: Path to the candidate image file.
        distance: Histogram intersection with the query (higher is more similar).
    """
    image_path: str
    distance: int = Field(ge=0)


class SearchResult(BaseModel):
    """Outcome of a similarity search.

    Attributes:
        query: Histogram of the query image.
        matches: Retained candidates, best match first.
        candidates: Number of candidate files found in the dataset directory.
        ranked: Number of candidate histograms that reached the collector.
    """
    query: Histogram
    matches: list[ImageMatch]
    candidates: int = 0
    ranked: int = 0
