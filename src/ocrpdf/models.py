# ocrpdf/models.py
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Job:
    """One input file's planned OCR pass, with its bound output path."""
    input_path: str
    output_path: str
    dry_run: bool = False


@dataclass(frozen=True)
class JobResult:
    """Outcome of a single Job. Consumed exactly once by the reporting lane."""
    job: Job
    success: bool
    error_message: Optional[str] = None

    @property
    def display_path(self) -> str:
        # output path on success, input path on failure
        return self.job.output_path if self.success else self.job.input_path
