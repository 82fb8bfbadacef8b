# ocrpdf/exceptions.py
class OCRPdfError(Exception):
    """Base exception for the ocrpdf tool."""
    pass


class ConfigurationError(OCRPdfError):
    """Raised before any job is dispatched when the command line is unusable."""
    pass


class UsageError(ConfigurationError):
    """Raised when argparse rejects the command line."""
    pass


class MissingArgumentError(ConfigurationError):
    """Raised when a flag that takes a value is the last token."""

    def __init__(self, flag: str, what: str = "a value"):
        self.flag = flag
        super().__init__(f"{flag} requires {what}.")


class InvalidJobsError(ConfigurationError):
    def __init__(self, value: int):
        self.value = value
        super().__init__("jobs must be >= 1.")


class NoInputsError(ConfigurationError):
    def __init__(self):
        super().__init__("no input files given.")


class EngineError(OCRPdfError):
    """Raised when an OCR engine cannot be imported or constructed."""
    pass



class HelpRequested(Exception):
    """Not an error: -h/--help was on the command line."""
    pass
