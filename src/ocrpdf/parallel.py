# ocrpdf/parallel.py
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional

from .config import RunConfig
from .models import Job, JobResult
from .ocr_backends.base import BaseOCREngine
from .progress import ProgressReporter, make_reporter
from .utils import plan_output_path

logger = logging.getLogger("ocrpdf")


class ResultAggregator:
    """
    Completed/failed counters for one run.
    Only the reporting lane calls record(), so no lock is needed.
    """

    def __init__(self, total: int):
        self.total = total
        self.completed = 0
        self.failed = 0

    def record(self, result: JobResult) -> int:
        if self.completed >= self.total:
            raise RuntimeError(
                f"More results than jobs: {result.job.input_path} reported after {self.completed}/{self.total}"
            )
        self.completed += 1
        if not result.success:
            self.failed += 1
        return self.completed

    @property
    def done(self) -> bool:
        return self.completed == self.total

    def final_status(self) -> int:
        return 0 if self.failed == 0 else 1


# --- MAIN RUNNER CLASS ---

class BatchRunner:
    """
    Runs one OCR job per input with at most `config.jobs` in flight.

    The dispatching thread takes a slot before every submit and blocks while all
    slots are busy. A worker gives its slot back as soon as its own work is done,
    after handing the result to the reporting lane, a single thread that owns the
    aggregator and drives the reporter. run() returns only after both the worker
    pool and the lane have drained.
    """

    def __init__(
        self,
        config: RunConfig,
        engine: BaseOCREngine,
        reporter: Optional[ProgressReporter] = None,
    ):
        self.config = config
        self.engine = engine
        self.reporter = reporter if reporter is not None else make_reporter(config)
        self.options = config.save_options()
        self.aggregator = ResultAggregator(config.total)
        self._report_futures: List[Future] = []
        self._futures_lock = threading.Lock()

    # -----------------------------
    # Worker side
    # -----------------------------
    def _plan_job(self, input_path: str) -> Job:
        return Job(
            input_path=input_path,
            output_path=plan_output_path(input_path, self.config),
            dry_run=self.config.dry_run,
        )

    def _run_job(self, job: Job) -> JobResult:
        try:
            handle = self.engine.load(job.input_path)
        except Exception:
            logger.debug("Engine raised while loading %s", job.input_path, exc_info=True)
            handle = None

        if handle is None:
            message = f"Could not load PDF at {job.input_path}"
            logger.error(message)
            return JobResult(job=job, success=False, error_message=message)

        try:
            self.reporter.started(job)
            if job.dry_run:
                return JobResult(job=job, success=True)

            try:
                success = bool(self.engine.save(handle, job.output_path, self.options))
            except Exception:
                logger.exception("Engine raised while saving %s", job.output_path)
                success = False

            if not success:
                message = f"Failed to save OCR PDF for {job.input_path}"
                logger.error(message)
                return JobResult(job=job, success=False, error_message=message)
            return JobResult(job=job, success=True)
        finally:
            try:
                self.engine.close(handle)
            except Exception:
                logger.debug("Failed to close %s", job.input_path, exc_info=True)

    def _work(self, input_path: str, slots: threading.BoundedSemaphore, lane: ThreadPoolExecutor) -> None:
        try:
            result = self._run_job(self._plan_job(input_path))
            future = lane.submit(self._report, result)
            with self._futures_lock:
                self._report_futures.append(future)
        finally:
            slots.release()

    # -----------------------------
    # Reporting lane
    # -----------------------------
    def _report(self, result: JobResult) -> None:
        completed = self.aggregator.record(result)
        self.reporter.job_finished(result, completed, self.aggregator.total)

    # -----------------------------
    # Dispatch
    # -----------------------------
    def run(self) -> int:
        cfg = self.config
        total = cfg.total
        start = time.perf_counter()

        logger.info(
            "Starting run, %d files | jobs, %d | overwrite, %s | dry run, %s | prefix, %r",
            total, cfg.jobs, cfg.overwrite, cfg.dry_run, cfg.prefix,
        )
        self.reporter.start(total)

        slots = threading.BoundedSemaphore(cfg.jobs)
        work_futures: List[Future] = []

        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="ocrpdf-report") as lane:
            with ThreadPoolExecutor(max_workers=cfg.jobs, thread_name_prefix="ocrpdf-worker") as pool:
                for input_path in cfg.inputs:
                    slots.acquire()
                    try:
                        work_futures.append(pool.submit(self._work, input_path, slots, lane))
                    except BaseException:
                        slots.release()
                        raise
            # every worker has finished and queued its report; leaving the outer block drains the lane

        for future in work_futures + self._report_futures:
            future.result()

        elapsed = time.perf_counter() - start
        self.reporter.finish(elapsed)

        agg = self.aggregator
        logger.info(
            "Run finished, %d/%d completed, %d failed, %.2f seconds",
            agg.completed, agg.total, agg.failed, elapsed,
        )
        return agg.final_status()
