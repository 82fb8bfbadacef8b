# src/ocrpdf/utils.py
from __future__ import annotations

import os
import re
import shutil
import tempfile
from typing import Callable

from .config import RunConfig

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def output_path_for(input_path: str, prefix: str) -> str:
    """
    Put `prefix` in front of the file name, keep the directory.
      /a/b/c.pdf, OCR_  ->  /a/b/OCR_c.pdf
      c.pdf, X_         ->  X_c.pdf
    Pure string work, the filesystem is never touched.
    """
    trimmed = input_path.rstrip(os.sep) or input_path
    directory, filename = os.path.split(trimmed)
    return os.path.join(directory, prefix + filename)


def plan_output_path(input_path: str, config: RunConfig) -> str:
    if config.overwrite:
        return input_path
    return output_path_for(input_path, config.prefix)


def parse_leading_int(value: str) -> int:
    """
    strtol-style parse: leading whitespace, optional sign, digits.
    Anything that does not start like a number gives 0.
    """
    m = _LEADING_INT.match(value or "")
    return int(m.group(1)) if m else 0


def replace_atomically(
    write: Callable[[str], None],
    output_path: str,
) -> None:
    """
    Write through `write(tmp_path)` into a temp file next to `output_path`, then move it into place.
    The destination is untouched until the new file is complete, so writing over the input is safe.
    """
    directory = os.path.dirname(os.path.abspath(output_path))
    fd, tmp_path = tempfile.mkstemp(prefix=".ocrpdf-", suffix=".pdf", dir=directory)
    os.close(fd)
    try:
        write(tmp_path)
        if os.path.exists(output_path):
            shutil.copymode(output_path, tmp_path)
        else:
            os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, output_path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise
