# src/ocrpdf/progress.py
from __future__ import annotations

import sys
import threading
from typing import Optional, TextIO

from tqdm import tqdm

from .config import RunConfig
from .models import Job, JobResult

BAR_WIDTH = 30


def percent_of(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    return completed * 100 // total


class ProgressReporter:
    """
    Presentation of a run. The batch runner calls start() once, started() from
    worker threads, job_finished() only from the reporting lane, and finish()
    after every result has been reported. The base class renders nothing.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()

    def _write_line(self, line: str) -> None:
        with self._lock:
            self.stream.write(line + "\n")
            self.stream.flush()

    def start(self, total: int) -> None:
        pass

    def started(self, job: Job) -> None:
        pass

    def job_finished(self, result: JobResult, completed: int, total: int) -> None:
        pass

    def finish(self, elapsed: float) -> None:
        pass


class VerboseReporter(ProgressReporter):
    """One line per completed job, plus the wall-clock total at the end."""

    def started(self, job: Job) -> None:
        self._write_line(f"Starting OCR: {job.input_path}")

    def job_finished(self, result: JobResult, completed: int, total: int) -> None:
        if result.success:
            label = "Would save" if result.job.dry_run else "Saved"
        else:
            label = "Failed"
        self._write_line(
            f"{label}: {result.display_path} ({completed}/{total}, {percent_of(completed, total)}%)"
        )

    def finish(self, elapsed: float) -> None:
        self._write_line(f"Total time: {elapsed:.2f} seconds")


class DryRunReporter(ProgressReporter):
    """Quiet dry run: list what would be written, say nothing about failures."""

    def job_finished(self, result: JobResult, completed: int, total: int) -> None:
        if result.success:
            self._write_line(f"Would save: {result.job.output_path}")


class MeterTqdm(tqdm):
    """
    tqdm with integer-only `{meter}` and `{percent}` fields.
    Both are floored, so 2/3 reads 66% and fills exactly 20 of 30 cells.
    """

    @property
    def format_dict(self):
        d = super().format_dict
        n, total = d["n"], d["total"] or 0
        filled = n * BAR_WIDTH // total if total > 0 else 0
        d.update(meter="#" * filled + "-" * (BAR_WIDTH - filled), percent=percent_of(n, total))
        return d


class BarReporter(ProgressReporter):
    """
    Fixed-width bar redrawn in place after every completion:
        [##########--------------------]  33% (1/3)
    The trailing newline is written when the bar is closed at the end of the run.
    """

    bar_format = "[{meter}] {percent:3d}% ({n}/{total})"

    def __init__(self, stream: Optional[TextIO] = None):
        super().__init__(stream)
        self._bar: Optional[tqdm] = None

    def start(self, total: int) -> None:
        self._bar = MeterTqdm(
            total=total,
            file=self.stream,
            bar_format=self.bar_format,
            mininterval=0,
            miniters=1,
            dynamic_ncols=False,
            leave=True,
        )

    def job_finished(self, result: JobResult, completed: int, total: int) -> None:
        if self._bar is None:
            return
        with self._lock:
            self._bar.n = completed
            self._bar.refresh()

    def finish(self, elapsed: float) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None


def make_reporter(config: RunConfig, stream: Optional[TextIO] = None) -> ProgressReporter:
    """Pick the single presentation mode used for the whole run."""
    if config.verbose:
        return VerboseReporter(stream)
    if config.dry_run:
        return DryRunReporter(stream)
    return BarReporter(stream)
