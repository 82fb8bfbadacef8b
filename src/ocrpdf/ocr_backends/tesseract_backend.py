# ocrpdf/ocr_backends/tesseract_backend.py
from __future__ import annotations

import os
from typing import Optional

import fitz  # PyMuPDF
import pytesseract as pt
from PIL import Image

from ..config import SaveOptions
from .pymupdf_backend import ProcessPoolEngine, page_has_text, save_pdf


def _ocr_page(page: fitz.Page, options: SaveOptions, config: str) -> bytes:
    pix = page.get_pixmap(dpi=options.dpi, colorspace=fitz.csRGB, alpha=False)
    image = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
    return pt.image_to_pdf_or_hocr(
        image,
        lang=options.language,
        config=f"{config} --dpi {options.dpi}",
        extension="pdf",
    )


def ocr_with_tesseract(
    source_path: str,
    tmp_path: str,
    options: SaveOptions,
    config: str,
    tesseract_cmd: Optional[str],
) -> int:
    """
    Worker job: every page without text is replaced by the single-page PDF
    tesseract makes from its rendering (page image plus text layer).
    """
    if tesseract_cmd:
        pt.pytesseract.tesseract_cmd = tesseract_cmd

    pages_done = 0
    out = fitz.open()
    try:
        with fitz.open(source_path) as doc:
            for page in doc:
                if options.skip_text_pages and page_has_text(page):
                    out.insert_pdf(doc, from_page=page.number, to_page=page.number)
                    continue
                with fitz.open(stream=_ocr_page(page, options, config), filetype="pdf") as page_doc:
                    out.insert_pdf(page_doc)
                pages_done += 1
        save_pdf(out, tmp_path)
    finally:
        out.close()
    return pages_done


class TesseractOCREngine(ProcessPoolEngine):
    """
    Pytesseract-based backend.

    Each page is rendered with PyMuPDF and handed to the tesseract binary; the
    PDF it returns replaces the page. Pages that already carry text are copied
    over untouched.

    Kwargs supported (all optional):
      - processes: worker process count (default: one per CPU, used on demand)
      - tesseract_cmd: full path to the tesseract binary
      - tessdata_prefix: path to the tessdata directory
      - oem: OCR engine mode (default 3 = LSTM)
      - psm: page segmentation mode (default 3 = fully automatic)
      - extra_config: extra flags appended to the config string
    """

    def __init__(
        self,
        processes: Optional[int] = None,
        tesseract_cmd: Optional[str] = None,
        tessdata_prefix: Optional[str] = None,
        oem: int = 3,
        psm: int = 3,
        extra_config: str = "",
        quiet: bool = True,
        **kwargs,
    ):
        super().__init__(processes=processes, quiet=quiet)

        self.tesseract_cmd = str(tesseract_cmd) if tesseract_cmd else None
        if self.tesseract_cmd and not os.path.exists(self.tesseract_cmd):
            raise RuntimeError(f"Tesseract binary not found: {self.tesseract_cmd}")

        if tessdata_prefix:
            # inherited by the spawned workers
            os.environ["TESSDATA_PREFIX"] = str(tessdata_prefix)

        cfg_parts = [f"--oem {int(oem)}", f"--psm {int(psm)}"]
        if extra_config.strip():
            cfg_parts.append(extra_config.strip())
        self._config = " ".join(cfg_parts)

    def worker_job(self):
        return ocr_with_tesseract, (self._config, self.tesseract_cmd)
