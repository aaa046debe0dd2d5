"""Classify SoC Watch exports as legacy or comprehensive."""

from socwatch_analyzer.banners import COMPREHENSIVE, COMPREHENSIVE_MARKERS, LEGACY, LEGACY_MARKERS
from socwatch_analyzer.models import FormatDetection

DETECTION_WINDOW_CHARS = 5000
COMPREHENSIVE_MIN_MARKERS = 3


def detect_csv_format(content: str) -> FormatDetection:
    """
    Detect the export dialect from the leading content of a file.

    Only the first 5000 characters are inspected. Three or more comprehensive
    markers make a comprehensive export; otherwise any legacy marker makes a
    legacy one. With no markers at all the result falls back to legacy at
    confidence 30.
    """
    head = content[:DETECTION_WINDOW_CHARS]

    comprehensive = [marker for marker in COMPREHENSIVE_MARKERS if marker in head]
    legacy = [marker for marker in LEGACY_MARKERS if marker in head]

    if len(comprehensive) >= COMPREHENSIVE_MIN_MARKERS:
        return FormatDetection(
            format=COMPREHENSIVE,
            confidence=min(100, len(comprehensive) * 15),
            markers=tuple(comprehensive)
        )

    if legacy:
        return FormatDetection(
            format=LEGACY,
            confidence=len(legacy) * 50,
            markers=tuple(legacy)
        )

    return FormatDetection(format=LEGACY, confidence=30, markers=())


def is_comprehensive_format(content: str) -> bool:
    return detect_csv_format(content).format == COMPREHENSIVE
