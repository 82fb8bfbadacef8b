"""Tests for the engine factory and the PyMuPDF-backed engines on text PDFs (no tesseract needed)."""

import fitz
import pytest

from ocrpdf.config import RunConfig, SaveOptions
from ocrpdf.exceptions import EngineError
from ocrpdf.ocr_backends import get_ocr_engine, normalize_engine_alias
from ocrpdf.ocr_backends.pymupdf_backend import PdfHandle, PyMuPDFOCREngine, inspect_pdf, open_pdf
from ocrpdf.ocr_backends.tesseract_backend import TesseractOCREngine
from ocrpdf.parallel import BatchRunner
from ocrpdf.progress import ProgressReporter


def make_text_pdf(path, lines=("Hello searchable world",)):
    doc = fitz.open()
    for line in lines:
        page = doc.new_page()
        page.insert_text((72, 72), line)
    doc.save(str(path))
    doc.close()
    return str(path)


def read_text(path):
    with fitz.open(path) as doc:
        return "".join(page.get_text() for page in doc)


class TestEngineFactory:
    @pytest.mark.parametrize("alias", ["pymupdf", "PyMuPDF", "mupdf", "fitz"])
    def test_pymupdf_aliases(self, alias):
        assert isinstance(get_ocr_engine(alias), PyMuPDFOCREngine)

    @pytest.mark.parametrize("alias", ["tesseract", "tess", "pytesseract"])
    def test_tesseract_aliases(self, alias):
        assert isinstance(get_ocr_engine(alias), TesseractOCREngine)

    def test_dotted_path(self):
        dotted = "ocrpdf.ocr_backends.pymupdf_backend.PyMuPDFOCREngine"
        assert normalize_engine_alias(dotted) == dotted
        assert isinstance(get_ocr_engine(dotted), PyMuPDFOCREngine)

    @pytest.mark.parametrize(
        "name",
        [
            "nowhere.Engine",
            "ocrpdf.ocr_backends.pymupdf_backend.NoSuchEngine",
            "collections.OrderedDict",
            "ocrpdf.ocr_backends.base.BaseOCREngine",
            "justaname",
        ],
    )
    def test_bad_engines(self, name):
        with pytest.raises(EngineError):
            get_ocr_engine(name)


class TestOpenPdf:
    def test_opens_pdf(self, tmp_path):
        doc = open_pdf(make_text_pdf(tmp_path / "a.pdf"))
        assert doc is not None
        assert doc.page_count == 1
        doc.close()

    def test_missing_file(self, tmp_path):
        assert open_pdf(str(tmp_path / "missing.pdf")) is None

    def test_not_a_pdf(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("just text", encoding="utf-8")
        assert open_pdf(str(path)) is None

    def test_garbage(self, tmp_path):
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"\x00\x01 not a pdf at all")
        assert open_pdf(str(path)) is None


class TestInspectPdf:
    def test_handle_keeps_path_and_page_count(self, tmp_path):
        src = make_text_pdf(tmp_path / "a.pdf", lines=("one", "two", "three"))
        assert inspect_pdf(src) == PdfHandle(path=src, page_count=3)

    def test_unopenable(self, tmp_path):
        assert inspect_pdf(str(tmp_path / "missing.pdf")) is None


@pytest.fixture
def make_engine():
    engines = []

    def make(engine_cls, **kwargs):
        engine = engine_cls(processes=1, **kwargs)
        engines.append(engine)
        return engine

    yield make
    for engine in engines:
        engine.shutdown()


@pytest.mark.parametrize("engine_cls", [PyMuPDFOCREngine, TesseractOCREngine])
class TestTextPagesAreKept:
    def test_save_to_new_file(self, engine_cls, make_engine, tmp_path):
        src = make_text_pdf(tmp_path / "a.pdf", lines=("first page", "second page"))
        out = str(tmp_path / "OCR_a.pdf")
        engine = make_engine(engine_cls)

        handle = engine.load(src)
        assert handle.page_count == 2
        assert engine.save(handle, out, SaveOptions()) is True
        engine.close(handle)

        text = read_text(out)
        assert "first page" in text
        assert "second page" in text
        assert read_text(src) == text

    def test_save_over_input(self, engine_cls, make_engine, tmp_path):
        src = make_text_pdf(tmp_path / "a.pdf")
        engine = make_engine(engine_cls)

        handle = engine.load(src)
        assert engine.save(handle, src, SaveOptions()) is True
        engine.close(handle)

        assert "Hello searchable world" in read_text(src)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["a.pdf"]

    def test_unwritable_destination(self, engine_cls, make_engine, tmp_path):
        src = make_text_pdf(tmp_path / "a.pdf")
        engine = make_engine(engine_cls)

        handle = engine.load(src)
        assert engine.save(handle, str(tmp_path / "no" / "such" / "dir" / "a.pdf"), SaveOptions()) is False
        engine.close(handle)

    def test_load_rejects_non_pdf(self, engine_cls, make_engine, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("just text", encoding="utf-8")
        assert make_engine(engine_cls).load(str(path)) is None


def test_shutdown_without_pool_is_a_no_op():
    engine = PyMuPDFOCREngine()
    engine.shutdown()
    engine.shutdown()


def test_batch_run_with_pymupdf_engine(make_engine, tmp_path):
    inputs = tuple(make_text_pdf(tmp_path / f"doc{i}.pdf", lines=(f"document {i}",)) for i in range(4))
    missing = str(tmp_path / "missing.pdf")
    config = RunConfig(inputs=inputs + (missing,), jobs=2)

    runner = BatchRunner(config, make_engine(PyMuPDFOCREngine), ProgressReporter())

    assert runner.run() == 1
    assert runner.aggregator.failed == 1
    for i in range(4):
        assert f"document {i}" in read_text(str(tmp_path / f"OCR_doc{i}.pdf"))
    assert not (tmp_path / "OCR_missing.pdf").exists()
