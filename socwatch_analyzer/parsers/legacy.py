"""Parser for the legacy SoC Watch export (core C-state and P-state sections only)."""

from socwatch_analyzer.banners import LEGACY, METADATA_WINDOWS, banners_for
from socwatch_analyzer.insights import generate_insights
from socwatch_analyzer.models import CoreState, GameProfile
from socwatch_analyzer.parsers.common import (
    display_name,
    extract_core_types,
    extract_metadata,
    merge_frequencies,
    scan_core_states,
    scan_frequencies
)


def _apply_legacy_state(record: CoreState, state: str, residency: float) -> None:
    # The legacy table reports CC0/CC1 as one row; the last matching row wins.
    if "CC0" in state or "CC1" in state:
        record.active = residency
    elif "CC6" in state:
        record.cc6 = residency
    elif "CC7" in state:
        record.cc7 = residency


def parse_legacy_format(content: str, filename: str, diagnostics: dict | None = None) -> GameProfile:
    """
    Parse a legacy export into a GameProfile tagged ``legacy``.

    Args:
        content: Full file text
        filename: Original file name, used for the display name
        diagnostics: Optional dict receiving per-section found/missing/malformed notes

    Returns:
        GameProfile without extended sections
    """
    banners = banners_for(LEGACY)
    lines = content.split("\n")

    metadata = extract_metadata(lines, banners, METADATA_WINDOWS[LEGACY])
    core_types = extract_core_types(lines, diagnostics)
    records = scan_core_states(
        lines,
        banners,
        metadata.total_cores,
        core_types,
        _apply_legacy_state,
        diagnostics
    )
    frequencies = scan_frequencies(lines, banners, core_types, diagnostics)
    merge_frequencies(records, frequencies)

    return GameProfile(
        name=display_name(filename),
        format_version=LEGACY,
        metadata=metadata,
        core_types=core_types,
        c_state_data=tuple(records),
        avg_frequencies=tuple(frequencies),
        insights=generate_insights(records)
    )
