# ocrpdf/config.py
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Tuple, Optional

DEFAULT_PREFIX = "OCR_"
DEFAULT_JOBS = 1
DEFAULT_ENGINE = "pymupdf"
DEFAULT_LANGUAGE = "eng"
DEFAULT_DPI = 300


@dataclass(frozen=True)
class SaveOptions:
    """Options handed to an engine's save(); the OCR text-layer settings."""
    language: str = DEFAULT_LANGUAGE
    dpi: int = DEFAULT_DPI
    skip_text_pages: bool = True   # leave pages that already carry text alone


@dataclass(frozen=True)
class RunConfig:
    """Configuration for one ocrpdf batch run. Immutable once parsed."""
    inputs: Tuple[str, ...] = field(default_factory=tuple)
    verbose: bool = False
    overwrite: bool = False
    dry_run: bool = False
    prefix: str = DEFAULT_PREFIX
    jobs: int = DEFAULT_JOBS

    engine: str = DEFAULT_ENGINE
    language: str = DEFAULT_LANGUAGE
    dpi: int = DEFAULT_DPI
    log_file: Optional[Path] = None

    @property
    def total(self) -> int:
        return len(self.inputs)

    def save_options(self) -> SaveOptions:
        return SaveOptions(language=self.language, dpi=self.dpi)

    def to_dict(self):
        """Converts config to a plain dictionary (paths as strings, inputs as a list)."""
        d = asdict(self)
        d["inputs"] = list(self.inputs)
        for key, value in d.items():
            if isinstance(value, Path):
                d[key] = str(value)
        return d

    @classmethod
    def from_dict(cls, config_dict: dict):
        d = dict(config_dict)

        if "inputs" in d:
            d["inputs"] = tuple(str(p) for p in d["inputs"])
        if isinstance(d.get("log_file"), str):
            d["log_file"] = Path(d["log_file"])

        # allow explicit None to mean use default
        for key in ["prefix", "jobs", "engine", "language", "dpi"]:
            if d.get(key) is None:
                d.pop(key, None)

        return cls(**d)
