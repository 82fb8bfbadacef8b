# setup.py
from setuptools import setup, find_packages
from pathlib import Path
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding="utf-8")

setup(
    name="ocrpdf",
    version="1.0.0",
    package_dir={"": "src"},
    packages=find_packages(where="src", include=["ocrpdf", "ocrpdf.*"]),
    description="Batch OCR for PDF files with a bounded worker pool and a live progress bar.",
    long_description=long_description,
    long_description_content_type='text/markdown',
    python_requires=">=3.9",

    install_requires=[
        "PyMuPDF",
        "pytesseract",
        "tqdm",
        "Pillow",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'ocrpdf=ocrpdf.cli:main',
        ],
    },
)
