# src/ocrpdf/ocr_backends/__init__.py
from __future__ import annotations

import importlib
import logging

from ..exceptions import EngineError
from .base import BaseOCREngine

__all__ = ["BaseOCREngine", "get_ocr_engine", "normalize_engine_alias"]

logger = logging.getLogger("ocrpdf")

_ALIASES = {
    # MuPDF's Tesseract bridge
    "pymupdf": "ocrpdf.ocr_backends.pymupdf_backend.PyMuPDFOCREngine",
    "mupdf": "ocrpdf.ocr_backends.pymupdf_backend.PyMuPDFOCREngine",
    "fitz": "ocrpdf.ocr_backends.pymupdf_backend.PyMuPDFOCREngine",

    # Tesseract (pytesseract)
    "tess": "ocrpdf.ocr_backends.tesseract_backend.TesseractOCREngine",
    "tesseract": "ocrpdf.ocr_backends.tesseract_backend.TesseractOCREngine",
    "pytesseract": "ocrpdf.ocr_backends.tesseract_backend.TesseractOCREngine",
}


def normalize_engine_alias(name: str) -> str:
    """
    Map short aliases (case-insensitive) to a fully qualified 'module.Class'.
    Anything else is returned as typed.
    """
    original = (name or "").strip().strip('"\'')
    return _ALIASES.get(original.lower(), original)


def _import_obj(dotted: str):
    mod_path, _, attr = dotted.rpartition(".")
    if not mod_path or not attr:
        raise EngineError(f"--engine must be an alias or 'module.Class', got: {dotted!r}")
    try:
        mod = importlib.import_module(mod_path)
    except Exception as e:
        raise EngineError(f"Cannot import engine module: {mod_path!r} ({e})") from e
    try:
        return getattr(mod, attr)
    except AttributeError as e:
        raise EngineError(f"Engine class not found: {dotted}") from e


def get_ocr_engine(name: str, **kwargs) -> BaseOCREngine:
    """Create an OCR engine by alias or dotted path, failing before any job is dispatched."""
    dotted = normalize_engine_alias(name)
    engine_cls = _import_obj(dotted)
    if not (isinstance(engine_cls, type) and issubclass(engine_cls, BaseOCREngine)):
        raise EngineError(f"{dotted} is not a BaseOCREngine subclass")
    try:
        engine = engine_cls(**kwargs)
    except Exception as e:
        raise EngineError(f"Engine initialization failed for {dotted} ({e})") from e
    logger.debug("Using OCR engine %s", dotted)
    return engine
