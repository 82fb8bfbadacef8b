# ocrpdf/ocr_backends/base.py
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..config import SaveOptions


class BaseOCREngine(ABC):
    """
    Interface for an engine that adds a searchable text layer to a document.
    Engines fail soft: load() returns None and save() returns False, the cause goes to the log.
    load(), save() and close() are called from worker threads, several at a time.
    """

    @abstractmethod
    def load(self, path: str) -> Optional[Any]:
        """Open `path` as a document handle, None when it cannot be opened."""
        pass

    @abstractmethod
    def save(self, handle: Any, output_path: str, options: SaveOptions) -> bool:
        """Write the OCR'd document to `output_path`. True on success."""
        pass

    def close(self, handle: Any) -> None:
        close = getattr(handle, "close", None)
        if callable(close):
            close()

    def shutdown(self) -> None:
        """Release engine-wide resources once the batch is over."""
        pass
