# src/ocrpdf/cli.py
from __future__ import annotations

import argparse
import contextlib
import logging
import os
import sys
from pathlib import Path
from queue import Queue
from typing import List, Optional, Tuple

from .config import (
    DEFAULT_DPI,
    DEFAULT_ENGINE,
    DEFAULT_JOBS,
    DEFAULT_LANGUAGE,
    DEFAULT_PREFIX,
    RunConfig,
)
from .exceptions import (
    ConfigurationError,
    EngineError,
    HelpRequested,
    InvalidJobsError,
    MissingArgumentError,
    NoInputsError,
    UsageError,
)
from .logger import configure_logging, reset_logging, setup_logging
from .ocr_backends import BaseOCREngine, get_ocr_engine
from .parallel import BatchRunner
from .progress import ProgressReporter
from .utils import parse_leading_int

__all__ = ["build_parser", "parse_args", "run_batch", "main"]

logger = logging.getLogger("ocrpdf")

PROG = "ocrpdf"
HELP_FLAGS = ("-h", "--help")
STDERR_FD = 2
MISSING_VALUE = {
    "-p": "a prefix value",
    "--prefix": "a prefix value",
    "-j": "a number of jobs",
    "--jobs": "a number of jobs",
}

DESCRIPTION = """\
Batch PDF OCR tool.

Adds an invisible, searchable OCR text layer to scanned, image-based PDFs.
Pages are recognized with Tesseract, either through MuPDF's built-in bridge
(default) or through pytesseract."""

EPILOG = f"""\
Example:
  {PROG} invoice.pdf
  {PROG} --overwrite -j 4 scans/*.pdf

Outputs are written next to inputs with an {DEFAULT_PREFIX} prefix unless --overwrite is set."""


# -------------------------------
# CLI parsing
# -------------------------------

class _ArgumentParser(argparse.ArgumentParser):
    """argparse without the exit(2): rejected command lines raise UsageError."""

    def error(self, message):
        raise UsageError(message)

    def split_tokens(self, argv: List[str]) -> Tuple[List[str], List[str], Optional[str]]:
        """
        Sort raw tokens into option tokens and inputs.

        A known option that takes a value swallows the next token whatever it
        looks like, and is passed on as '--long=value'. Any token that is not a
        known option is an input, leading dash or not; after '--' all are.
        Returns (options, inputs, dangling) where `dangling` is a value-taking
        option left without a value at the end of the line.
        """
        options: List[str] = []
        inputs: List[str] = []
        tokens = iter(argv)
        for token in tokens:
            if token == "--":
                inputs.extend(tokens)
                break
            action = None
            if token.startswith("-"):
                action = self._option_string_actions.get(token.split("=", 1)[0])
            if action is None:
                inputs.append(token)
            elif action.nargs is None and "=" not in token:
                value = next(tokens, None)
                if value is None:
                    return options, inputs, token
                options.append(f"{action.option_strings[-1]}={value}")
            else:
                options.append(token)
        return options, inputs, None


class _JobsAction(argparse.Action):
    """Unparseable counts fall through to 0 and fail the >= 1 check, like strtol."""

    def __call__(self, parser, namespace, values, option_string=None):
        jobs = parse_leading_int(values)
        if jobs < 1:
            raise InvalidJobsError(jobs)
        setattr(namespace, self.dest, jobs)


def build_parser(prog: str = PROG) -> _ArgumentParser:
    p = _ArgumentParser(
        prog=prog,
        usage="%(prog)s [options] <input.pdf> [more.pdf ...]",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        allow_abbrev=False,
    )

    p.add_argument("-h", "--help", action="store_true", help="Show this help and exit")
    p.add_argument("-v", "--verbose", action="store_true", help="Print progress messages")
    p.add_argument("-o", "--overwrite", action="store_true", help="Overwrite input files in place")
    p.add_argument("--dry-run", dest="dry_run", action="store_true",
                   help="Print planned outputs without writing files")
    p.add_argument("-p", "--prefix", default=DEFAULT_PREFIX, metavar="STR",
                   help=f"Prefix for output files (default: {DEFAULT_PREFIX})")
    p.add_argument("-j", "--jobs", action=_JobsAction, default=DEFAULT_JOBS, metavar="N",
                   help=f"Number of parallel jobs (default: {DEFAULT_JOBS})")

    ocr_group = p.add_argument_group("OCR")
    ocr_group.add_argument("-l", "--language", default=DEFAULT_LANGUAGE, metavar="LANG",
                           help=f"Tesseract language codes, e.g. eng or eng+deu (default: {DEFAULT_LANGUAGE})")
    ocr_group.add_argument("--dpi", type=int, default=DEFAULT_DPI, metavar="N",
                           help=f"Rendering DPI for recognition (default: {DEFAULT_DPI})")
    ocr_group.add_argument("--engine", default=DEFAULT_ENGINE, metavar="NAME",
                           help="pymupdf, tesseract, or a dotted 'module.Class' path (default: pymupdf)")

    log_group = p.add_argument_group("Logging")
    log_group.add_argument("--log-file", type=Path, metavar="PATH",
                           help="Also write diagnostics to a rotating log file")

    return p


def parse_args(argv: Optional[List[str]] = None, parser: Optional[_ArgumentParser] = None) -> RunConfig:
    """
    Turn raw tokens into a validated RunConfig.

    Raises HelpRequested when -h/--help is given as a flag (it wins over every
    other problem), NoInputsError when no input is left after the flags, and
    another ConfigurationError subclass for a missing flag value, a bad job
    count or anything argparse rejects.
    """
    if argv is None:
        argv = sys.argv[1:]
    parser = parser or build_parser()

    options, inputs, dangling = parser.split_tokens(list(argv))
    if any(token in HELP_FLAGS for token in options):
        raise HelpRequested()
    if dangling is not None:
        raise MissingArgumentError(dangling, MISSING_VALUE.get(dangling, "a value"))

    args = parser.parse_args(options)
    if not inputs:
        raise NoInputsError()
    if args.dpi < 1:
        raise ConfigurationError("dpi must be >= 1.")

    return RunConfig(
        inputs=tuple(inputs),
        verbose=args.verbose,
        overwrite=args.overwrite,
        dry_run=args.dry_run,
        prefix=args.prefix,
        jobs=args.jobs,
        engine=args.engine,
        language=args.language,
        dpi=args.dpi,
        log_file=args.log_file,
    )


# -------------------------------
# Entry points
# -------------------------------

@contextlib.contextmanager
def _stderr_silenced(enabled: bool):
    """
    Send stderr to the null device so stray chatter cannot break the bar line.
    Both sys.stderr and file descriptor 2 are redirected, the latter so that
    native code and spawned worker processes are silenced as well.
    """
    if not enabled:
        yield
        return
    if sys.stderr is not None:
        sys.stderr.flush()
    with open(os.devnull, "w") as devnull:
        saved_fd = os.dup(STDERR_FD)
        os.dup2(devnull.fileno(), STDERR_FD)
        try:
            with contextlib.redirect_stderr(devnull):
                yield
        finally:
            os.dup2(saved_fd, STDERR_FD)
            os.close(saved_fd)


def run_batch(
    config: RunConfig,
    engine: BaseOCREngine,
    reporter: Optional[ProgressReporter] = None,
) -> int:
    """Run the whole batch with logging wired up. Returns the process exit status."""
    log_queue: Queue = Queue(-1)
    listener = setup_logging(log_queue, verbose=config.verbose, file_path=config.log_file)
    configure_logging(log_queue)
    listener.start()
    try:
        with _stderr_silenced(not config.verbose):
            return BatchRunner(config, engine, reporter).run()
    finally:
        listener.stop()
        for handler in listener.handlers:
            handler.close()
        reset_logging()


def main(argv: Optional[List[str]] = None, engine: Optional[BaseOCREngine] = None) -> int:
    parser = build_parser()
    try:
        config = parse_args(argv, parser)
    except HelpRequested:
        parser.print_help(sys.stderr)
        return 0
    except NoInputsError:
        parser.print_help(sys.stderr)
        return 1
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if engine is not None:
        return run_batch(config, engine)

    try:
        engine = get_ocr_engine(config.engine)
    except EngineError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    try:
        return run_batch(config, engine)
    finally:
        engine.shutdown()


if __name__ == "__main__":
    sys.exit(main())
