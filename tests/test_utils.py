"""Tests for output path planning and the small helpers in utils."""

import os

import pytest

from ocrpdf.config import RunConfig
from ocrpdf.utils import output_path_for, parse_leading_int, plan_output_path, replace_atomically


class TestOutputPathFor:
    def test_keeps_directory(self):
        assert output_path_for("/a/b/c.pdf", "OCR_") == "/a/b/OCR_c.pdf"

    def test_bare_file_name(self):
        assert output_path_for("c.pdf", "X_") == "X_c.pdf"

    def test_relative_directory(self):
        assert output_path_for("scans/2024/c.pdf", "OCR_") == os.path.join("scans/2024", "OCR_c.pdf")

    def test_empty_prefix(self):
        assert output_path_for("/a/c.pdf", "") == "/a/c.pdf"

    def test_trailing_separator(self):
        assert output_path_for("/a/b/", "OCR_") == "/a/OCR_b"

    def test_does_not_touch_filesystem(self, tmp_path):
        missing = str(tmp_path / "nowhere" / "c.pdf")
        assert output_path_for(missing, "OCR_") == str(tmp_path / "nowhere" / "OCR_c.pdf")


class TestPlanOutputPath:
    def test_prefix(self):
        config = RunConfig(inputs=("/a/c.pdf",), prefix="P_")
        assert plan_output_path("/a/c.pdf", config) == "/a/P_c.pdf"

    @pytest.mark.parametrize("prefix", ["OCR_", "X_", ""])
    def test_overwrite_ignores_prefix(self, prefix):
        config = RunConfig(inputs=("/a/c.pdf",), prefix=prefix, overwrite=True)
        assert plan_output_path("/a/c.pdf", config) == "/a/c.pdf"


@pytest.mark.parametrize(
    "value,expected",
    [("4", 4), (" 12", 12), ("+3", 3), ("-1", -1), ("0", 0), ("7abc", 7), ("abc", 0), ("", 0)],
)
def test_parse_leading_int(value, expected):
    assert parse_leading_int(value) == expected


class TestReplaceAtomically:
    def test_replaces_existing_file(self, tmp_path):
        target = tmp_path / "doc.pdf"
        target.write_bytes(b"old")
        def write(tmp):
            with open(tmp, "wb") as f:
                f.write(b"new")

        replace_atomically(write, str(target))

        assert target.read_bytes() == b"new"
        assert [p.name for p in tmp_path.iterdir()] == ["doc.pdf"]

    def test_failed_write_keeps_original(self, tmp_path):
        target = tmp_path / "doc.pdf"
        target.write_bytes(b"old")

        def broken(tmp):
            raise OSError("disk full")

        with pytest.raises(OSError):
            replace_atomically(broken, str(target))

        assert target.read_bytes() == b"old"
        assert [p.name for p in tmp_path.iterdir()] == ["doc.pdf"]

    def test_new_file_is_readable(self, tmp_path):
        target = tmp_path / "new.pdf"

        def write(tmp):
            with open(tmp, "wb") as f:
                f.write(b"%PDF")

        replace_atomically(write, str(target))
        assert target.read_bytes() == b"%PDF"
        assert os.stat(target).st_mode & 0o444 == 0o444
