"""Tests for batch partitioning, the histogram channel and batch workers."""

import logging
import multiprocessing
import tempfile
from pathlib import Path

import cv2
import numpy as np
import pytest

from colorsearch import ChannelMessage, Histogram, HistogramChannel
from colorsearch.errors import ChannelClosedError
from colorsearch.pool import compute_histograms, compute_query_histogram, partition


def create_test_image(path: Path, color: tuple[int, int, int] = (128, 128, 128)) -> None:
    img = np.zeros((4, 4, 3), dtype=np.uint8)
    img[:] = color
    cv2.imwrite(str(path), img)


def make_channel(maxsize: int = 0) -> HistogramChannel:
    return HistogramChannel(multiprocessing.get_context(), maxsize=maxsize)


def drain(channel: HistogramChannel) -> list[ChannelMessage]:
    channel.close()
    return list(channel)


class TestPartition:
    """Test static batch partitioning."""

    def test_even_split(self):
        paths = [f"{i}.jpg" for i in range(10)]
        assert partition(paths, 5) == [paths[0:2], paths[2:4], paths[4:6],
                                       paths[6:8], paths[8:10]]

    def test_last_batch_shorter(self):
        paths = [f"{i}.jpg" for i in range(11)]
        batches = partition(paths, 5)
        assert [len(b) for b in batches] == [3, 3, 3, 2]

    def test_fewer_paths_than_workers(self):
        paths = ["a.jpg", "b.jpg"]
        assert partition(paths, 5) == [["a.jpg"], ["b.jpg"]]

    def test_batches_cover_input_in_order(self):
        paths = [f"{i}.jpg" for i in range(23)]
        batches = partition(paths, 4)
        assert [p for batch in batches for p in batch] == paths
        assert len(batches) <= 4

    def test_empty(self):
        assert partition([], 5) == []

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError, match="positive"):
            partition(["a.jpg"], 0)


class TestHistogramChannel:
    """Test the channel protocol."""

    def test_iterates_until_closed(self):
        channel = make_channel()
        for name in ["a", "b"]:
            channel.send(ChannelMessage(histogram=Histogram(name=name, bins=(1,))))

        received = drain(channel)

        assert [m.histogram.name for m in received] == ["a", "b"]
        assert channel.closed

    def test_send_after_close_raises(self):
        channel = make_channel()
        channel.close()
        with pytest.raises(ChannelClosedError):
            channel.send(ChannelMessage(histogram=Histogram(name="late", bins=(1,))))

    def test_double_close_raises(self):
        channel = make_channel()
        channel.close()
        with pytest.raises(ChannelClosedError):
            channel.close()


class TestBatchWorker:
    """Test the per-batch work loop run inside worker processes."""

    def test_failures_are_logged_and_skipped(self, caplog):
        with tempfile.TemporaryDirectory() as tmpdir:
            good = Path(tmpdir) / "good.jpg"
            bad = Path(tmpdir) / "bad.jpg"
            create_test_image(good)
            bad.touch()
            channel = make_channel()

            with caplog.at_level(logging.ERROR):
                sent = compute_histograms([str(bad), str(good)], 255, channel)

            assert sent == 1
            received = drain(channel)
            assert [m.histogram.name for m in received] == [str(good)]
            assert not received[0].is_query
            assert f"Error computing histogram for {bad}: empty file" in caplog.text

    def test_emissions_follow_batch_order(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            paths = []
            for i in range(4):
                path = Path(tmpdir) / f"img_{i}.jpg"
                create_test_image(path, (i * 60, i * 60, i * 60))
                paths.append(str(path))
            channel = make_channel()

            compute_histograms(paths, 255, channel)

            assert [m.histogram.name for m in drain(channel)] == paths

    def test_query_is_tagged(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            query = Path(tmpdir) / "query.jpg"
            create_test_image(query)
            channel = make_channel()

            assert compute_query_histogram(str(query), 255, channel)

            (message,) = drain(channel)
            assert message.is_query
            assert message.histogram.name == str(query)

    def test_failed_query_sends_nothing(self, caplog):
        with tempfile.TemporaryDirectory() as tmpdir:
            channel = make_channel()
            missing = str(Path(tmpdir) / "missing.jpg")

            with caplog.at_level(logging.ERROR):
                assert not compute_query_histogram(missing, 255, channel)

            assert drain(channel) == []
            assert f"Error computing histogram for {missing}" in caplog.text
