# src/ocrpdf/__init__.py
"""Batch OCR for PDF files: a bounded worker pool around a pluggable OCR engine."""

from .config import RunConfig, SaveOptions
from .models import Job, JobResult
from .parallel import BatchRunner, ResultAggregator
from .utils import output_path_for, plan_output_path

__version__ = "1.0.0"

__all__ = [
    "RunConfig",
    "SaveOptions",
    "Job",
    "JobResult",
    "BatchRunner",
    "ResultAggregator",
    "output_path_for",
    "plan_output_path",
]
