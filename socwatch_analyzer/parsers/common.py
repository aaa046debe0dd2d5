"""Line-scanning helpers shared by both SoC Watch export parsers."""

import re
from typing import Callable

from socwatch_analyzer.models import (
    E_CORE,
    LPE_CORE,
    P_CORE,
    UNKNOWN_CORE,
    CoreState,
    FrequencyEntry,
    ProfileMetadata
)

FOUND = "found"
MISSING = "missing"
MALFORMED = "malformed"

_NUMBER_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_FIRST_DECIMAL = re.compile(r"(\d+\.?\d*)")
_FIRST_INTEGER = re.compile(r"(\d+)")
_NAMED_DECLARATION = re.compile(
    r"Package_0/Core_(\d+) = \w+ \((P Core|E Core|LPE Core)\)", re.ASCII
)
_CODED_DECLARATION = re.compile(r"Package_0/Core_(\d+) = (LNC|SKT)")
_FREQUENCY_ROW = re.compile(r"Core_(\d+).*?,\s*(\d+)")

_NAMED_CORE_TYPES = {
    "P Core": P_CORE,
    "E Core": E_CORE,
    "LPE Core": LPE_CORE
}
_CODED_CORE_TYPES = {
    "LNC": P_CORE,
    "SKT": E_CORE
}


def note(diagnostics: dict | None, key: str, value: str) -> None:
    """Record a diagnostic; the first note for a key wins."""
    if diagnostics is not None and key not in diagnostics:
        diagnostics[key] = value


def display_name(filename: str) -> str:
    """
    Derive a profile name: drop ``.csv``, anything from ``PTATMonitor`` on,
    then surrounding whitespace and the separator left dangling before the suffix.
    """
    name = filename
    if name.endswith(".csv"):
        name = name[:-len(".csv")]
    name = name.split("PTATMonitor", 1)[0]
    return name.strip().rstrip("_-").strip()


def parse_number(text: str | None) -> float | None:
    """Read the leading number of a cell, ignoring trailing text. None if there is none."""
    if not text:
        return None
    match = _NUMBER_PREFIX.match(text)
    if not match:
        return None
    return float(match.group(1))


def parse_int(text: str) -> int | None:
    """Integer capture; None when it is too long to convert or would not fit a float."""
    try:
        value = int(text)
        float(value)
    except (ValueError, OverflowError):
        return None
    return value


def cell_value(values: list[str], index: int) -> float:
    if index >= len(values):
        return 0.0
    return parse_number(values[index]) or 0.0


def find_banner(lines: list[str], banner: str, start: int = 0) -> int | None:
    for index in range(start, len(lines)):
        if banner in lines[index]:
            return index
    return None


def section_window(lines: list[str], banner_index: int, skip: int, size: int) -> list[str]:
    """Lines from ``banner_index + skip`` up to, not including, ``banner_index + size``."""
    return lines[banner_index + skip:min(banner_index + size, len(lines))]


def extract_metadata(lines: list[str], banners: dict, window: int) -> ProfileMetadata:
    metadata = ProfileMetadata()
    for line in lines[:window]:
        if banners["duration"] in line:
            match = _FIRST_DECIMAL.search(line)
            if match:
                metadata.duration = float(match.group(1))
        if banners["base_freq"] in line:
            match = _FIRST_INTEGER.search(line)
            value = parse_int(match.group(1)) if match else None
            if value is not None:
                metadata.base_freq = value
        if banners["total_cores"] in line:
            match = _FIRST_INTEGER.search(line)
            value = parse_int(match.group(1)) if match else None
            if value is not None:
                metadata.total_cores = value
    return metadata


def extract_core_types(lines: list[str], diagnostics: dict | None = None) -> dict[int, str]:
    """
    Map core index to core type from architecture declarations.

    Both the parenthesized dialect (``CGC (P Core)``) and the older two-letter
    dialect (``LNC``/``SKT``) are accepted. A redeclared core keeps its last
    declaration; a conflicting redeclaration is noted under ``core_types``.
    """
    core_types: dict[int, str] = {}
    for line in lines:
        declared = None
        match = _NAMED_DECLARATION.search(line)
        if match:
            declared = (parse_int(match.group(1)), _NAMED_CORE_TYPES[match.group(2)])
        else:
            match = _CODED_DECLARATION.search(line)
            if match:
                declared = (parse_int(match.group(1)), _CODED_CORE_TYPES[match.group(2)])
        if declared is None or declared[0] is None:
            continue

        core, core_type = declared
        previous = core_types.get(core)
        if previous is not None and previous != core_type:
            note(
                diagnostics,
                "core_types",
                f"Core_{core} redeclared as {core_type} (was {previous}); last declaration kept"
            )
        core_types[core] = core_type
    return core_types


def scan_core_states(
    lines: list[str],
    banners: dict,
    total_cores: int | None,
    core_types: dict[int, str],
    apply_row: Callable[[CoreState, str, float], None],
    diagnostics: dict | None = None
) -> list[CoreState]:
    """
    Build one CoreState per declared core from the core C-state residency table.

    The table runs from the banner to the first blank line or the total-samples
    banner; its first two lines are a sub-header and a dashes row. All records
    are allocated before any row is applied. ``apply_row`` routes one state
    row's residency into a record.
    """
    start = find_banner(lines, banners["core_cstate"])
    if start is None:
        note(diagnostics, "core_cstate", MISSING)
        return []

    block = []
    for line in lines[start + 1:]:
        if line.strip() == "" or banners["core_cstate_end"] in line:
            break
        block.append(line)

    rows = []
    for row in block[2:]:
        values = row.split(",")
        state = values[0].strip()
        if state and "---" not in state:
            rows.append((state, values))

    if not rows or not total_cores:
        note(diagnostics, "core_cstate", MALFORMED)
        return []

    records = [
        CoreState(core=core, core_type=core_types.get(core, UNKNOWN_CORE))
        for core in range(total_cores)
    ]
    for state, values in rows:
        for record in records:
            apply_row(record, state, cell_value(values, record.core + 1))

    note(diagnostics, "core_cstate", FOUND)
    return records


def scan_frequencies(
    lines: list[str],
    banners: dict,
    core_types: dict[int, str],
    diagnostics: dict | None = None
) -> list[FrequencyEntry]:
    start = find_banner(lines, banners["frequency"])
    if start is None:
        note(diagnostics, "frequency", MISSING)
        return []

    entries = []
    for line in lines[start + 1:]:
        if line.strip() == "" or banners["frequency_end"] in line:
            break
        match = _FREQUENCY_ROW.search(line)
        if not match:
            continue
        core = parse_int(match.group(1))
        freq = parse_int(match.group(2))
        if core is None or freq is None:
            continue
        entries.append(
            FrequencyEntry(
                core=core,
                freq=freq,
                core_type=core_types.get(core, UNKNOWN_CORE)
            )
        )

    note(diagnostics, "frequency", FOUND if entries else MALFORMED)
    return entries


def merge_frequencies(records: list[CoreState], frequencies: list[FrequencyEntry]) -> None:
    """Attach each core's first average-frequency entry to its record."""
    by_core: dict[int, int] = {}
    for entry in frequencies:
        by_core.setdefault(entry.core, entry.freq)
    for record in records:
        if record.core in by_core:
            record.freq = by_core[record.core]
