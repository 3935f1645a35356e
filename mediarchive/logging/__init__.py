"""Console reporting."""
from .rich_logger import QuietArchiveReporter, RichArchiveReporter, format_duration, format_size

__all__ = ["RichArchiveReporter", "QuietArchiveReporter", "format_size", "format_duration"]
