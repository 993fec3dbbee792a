"""
Integration tests for the colorsearch command line.
"""

import json
import logging
import tempfile
from pathlib import Path

import cv2
import numpy as np
import pytest

from colorsearch.cli import main


def create_test_images(folder: Path) -> None:
    """Create a small dataset of uniform gray JPEGs plus one broken file."""
    folder.mkdir(parents=True, exist_ok=True)
    for i, gray in enumerate([128, 60, 200]):
        img = np.full((8, 8, 3), gray, dtype=np.uint8)
        cv2.imwrite(str(folder / f"img_{i:03d}.jpg"), img, [cv2.IMWRITE_JPEG_QUALITY, 100])
    (folder / "broken.jpg").touch()


class TestCommandLine:
    """Test argument handling and printed output."""

    @pytest.mark.parametrize("argv", [[], ["only_one.jpg"], ["a.jpg", "b", "c"]])
    def test_wrong_argument_count(self, argv, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(argv)

        assert exc_info.value.code != 0
        assert "usage:" in capsys.readouterr().out

    def test_full_run_output(self, capsys, caplog):
        with tempfile.TemporaryDirectory() as tmpdir:
            dataset = Path(tmpdir) / "images"
            create_test_images(dataset)
            query = dataset / "img_000.jpg"

            with caplog.at_level(logging.ERROR):
                main([str(query), str(dataset)])

            lines = capsys.readouterr().out.splitlines()
            hist_line = next(line for line in lines if line.startswith("Histogram of the query image: ["))
            bins = hist_line.split("[", 1)[1].rstrip("]").split()
            assert len(bins) == 256
            assert sum(int(b) for b in bins) == 3 * 8 * 8

            header = lines.index("The 5 most similar images:")
            results = lines[header + 1:]
            assert len(results) == 3
            assert results[0] == f"1: {query}"
            assert [line.split(": ", 1)[0] for line in results] == ["1", "2", "3"]
            assert f"Error computing histogram for {dataset / 'broken.jpg'}" in caplog.text

    def test_empty_dataset_prints_header_only(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            dataset = Path(tmpdir) / "images"
            dataset.mkdir()
            query = Path(tmpdir) / "query.jpg"
            cv2.imwrite(str(query), np.zeros((4, 4, 3), dtype=np.uint8))

            main([str(query), str(dataset)])

            lines = capsys.readouterr().out.splitlines()
            assert lines[-1] == "The 5 most similar images:"

    def test_unreadable_directory_exits_nonzero(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(SystemExit) as exc_info:
                main([str(Path(tmpdir) / "q.jpg"), str(Path(tmpdir) / "missing")])

            assert exc_info.value.code == 1
            assert "Error:" in capsys.readouterr().out

    def test_options_and_json_export(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            dataset = Path(tmpdir) / "images"
            create_test_images(dataset)
            results_path = Path(tmpdir) / "results.json"

            main([str(dataset / "img_001.jpg"), str(dataset), "--top-k", "2",
                  "--num-workers", "2", "--results-json", str(results_path)])

            out = capsys.readouterr().out
            assert "The 2 most similar images:" in out
            data = json.loads(results_path.read_text())
            assert len(data["matches"]) == 2
            assert data["ranked"] == 3
