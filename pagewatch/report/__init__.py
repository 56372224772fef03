"""Reporter SPI and implementations."""

from .base import BaseReporter, CompositeReporter
from .console import ConsoleReporter
from .file_reporter import JsonLinesReporter

__all__ = ["BaseReporter", "CompositeReporter", "ConsoleReporter", "JsonLinesReporter"]
