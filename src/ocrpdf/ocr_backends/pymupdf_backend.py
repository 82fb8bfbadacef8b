# src/ocrpdf/ocr_backends/pymupdf_backend.py
from __future__ import annotations

import logging
import multiprocessing as mp
import threading
from abc import abstractmethod
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

import fitz  # PyMuPDF

from ..config import SaveOptions
from ..utils import replace_atomically
from .base import BaseOCREngine

logger = logging.getLogger("ocrpdf")

# MuPDF is not thread safe; every in-process call goes through this lock
_MUPDF_LOCK = threading.Lock()

# baseline sits this far above the bottom of the word box, as a share of its height
_DESCENT = 0.2


@dataclass(frozen=True)
class PdfHandle:
    """A PDF that opened cleanly. Workers reopen it by path."""
    path: str
    page_count: int


def open_pdf(path: str) -> Optional[fitz.Document]:
    """
    Open `path` with PyMuPDF. Returns None for missing files, non-PDF documents,
    empty documents and encrypted files that do not open with an empty password.
    """
    try:
        doc = fitz.open(path)
    except Exception as e:
        logger.debug("PyMuPDF could not open %s, %s", path, e)
        return None
    if not doc.is_pdf or doc.needs_pass or doc.page_count == 0:
        logger.debug("Not an openable PDF, %s", path)
        doc.close()
        return None
    return doc


def inspect_pdf(path: str) -> Optional[PdfHandle]:
    with _MUPDF_LOCK:
        doc = open_pdf(path)
        if doc is None:
            return None
        try:
            return PdfHandle(path=path, page_count=doc.page_count)
        finally:
            doc.close()


def page_has_text(page: fitz.Page) -> bool:
    return bool(page.get_text("text").strip())


def save_pdf(doc: fitz.Document, tmp_path: str) -> None:
    doc.save(tmp_path, garbage=3, deflate=True)


# --- Worker process side ---

def initialize_worker(quiet: bool) -> None:
    """Called once in each worker process."""
    if quiet:
        fitz.TOOLS.mupdf_display_errors(False)
        fitz.TOOLS.mupdf_display_warnings(False)


def add_text_layer(page: fitz.Page, options: SaveOptions, tessdata: Optional[str] = None) -> int:
    """
    OCR the whole page and write every recognized word back as invisible text
    at its position. Returns the number of words written.
    """
    kwargs = {"language": options.language, "dpi": options.dpi, "full": True}
    if tessdata:
        kwargs["tessdata"] = tessdata
    textpage = page.get_textpage_ocr(**kwargs)
    words = page.get_text("words", textpage=textpage)

    count = 0
    for x0, y0, x1, y1, word, *_ in words:
        height = y1 - y0
        if height <= 0 or not word.strip():
            continue
        origin = fitz.Point(x0, y1 - height * _DESCENT)
        # render_mode 3 = invisible, searchable and selectable only
        page.insert_text(origin, word, fontsize=height, render_mode=3)
        count += 1
    return count


def ocr_with_mupdf(source_path: str, tmp_path: str, options: SaveOptions, tessdata: Optional[str]) -> int:
    """Worker job: add a text layer to `source_path`, write the result to `tmp_path`."""
    pages_done = 0
    with fitz.open(source_path) as doc:
        for page in doc:
            if options.skip_text_pages and page_has_text(page):
                continue
            add_text_layer(page, options, tessdata)
            pages_done += 1
        save_pdf(doc, tmp_path)
    return pages_done


# --- Parent side ---

class ProcessPoolEngine(BaseOCREngine):
    """
    Engine whose MuPDF work runs in spawned worker processes.

    load() only checks that the file is a PDF MuPDF can open; save() ships the
    path to a worker, which writes a temp file next to the destination, and the
    temp file is then moved into place. The pool starts on first use.
    """

    def __init__(self, processes: Optional[int] = None, quiet: bool = True):
        self.processes = processes
        self.quiet = quiet
        self._pool: Optional[ProcessPoolExecutor] = None
        self._pool_lock = threading.Lock()
        if quiet:
            fitz.TOOLS.mupdf_display_errors(False)
            fitz.TOOLS.mupdf_display_warnings(False)

    @abstractmethod
    def worker_job(self) -> Tuple[Callable[..., Any], tuple]:
        """The module-level worker function and the extra args it takes after (source, tmp, options)."""
        pass

    def _executor(self) -> ProcessPoolExecutor:
        with self._pool_lock:
            if self._pool is None:
                self._pool = ProcessPoolExecutor(
                    max_workers=self.processes,
                    mp_context=mp.get_context("spawn"),
                    initializer=initialize_worker,
                    initargs=(self.quiet,),
                )
            return self._pool

    def load(self, path: str) -> Optional[PdfHandle]:
        return inspect_pdf(path)

    def save(self, handle: PdfHandle, output_path: str, options: SaveOptions) -> bool:
        fn, extra = self.worker_job()

        def write(tmp_path: str) -> None:
            pages = self._executor().submit(fn, handle.path, tmp_path, options, *extra).result()
            logger.debug("%s, OCR'd %d of %d pages", handle.path, pages, handle.page_count)

        try:
            replace_atomically(write, output_path)
            return True
        except Exception as e:
            logger.warning("%s failed for %s, %s", type(self).__name__, handle.path, e)
            return False

    def shutdown(self) -> None:
        with self._pool_lock:
            if self._pool is not None:
                self._pool.shutdown(wait=True)
                self._pool = None


class PyMuPDFOCREngine(ProcessPoolEngine):
    """
    OCR through MuPDF's built-in Tesseract bridge.

    Pages that already carry text are left alone (unless options.skip_text_pages is off).
    Every other page is OCR'd as a whole and the recognized words are written back
    as invisible text, so the visible page is unchanged.

    Kwargs supported (all optional):
      - processes: worker process count (default: one per CPU, used on demand)
      - tessdata: path to the tessdata directory (otherwise MuPDF looks it up)
      - quiet: stop MuPDF from printing its own warnings to stderr (default True)
    """

    def __init__(self, processes: Optional[int] = None, tessdata: Optional[str] = None, quiet: bool = True, **kwargs):
        super().__init__(processes=processes, quiet=quiet)
        self.tessdata = tessdata

    def worker_job(self):
        return ocr_with_mupdf, (self.tessdata,)
