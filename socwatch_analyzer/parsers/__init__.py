"""SoC Watch export parsers."""

from socwatch_analyzer.parsers.comprehensive import parse_comprehensive_format
from socwatch_analyzer.parsers.legacy import parse_legacy_format

__all__ = [
    "parse_comprehensive_format",
    "parse_legacy_format"
]
