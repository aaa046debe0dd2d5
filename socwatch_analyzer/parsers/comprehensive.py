"""Parser for the comprehensive SoC Watch trace export (socwatch-all-trace.csv)."""

import re

from socwatch_analyzer.banners import COMPREHENSIVE, METADATA_WINDOWS, SECTION_WINDOWS, banners_for
from socwatch_analyzer.insights import generate_insights
from socwatch_analyzer.models import (
    ConcurrencyData,
    CoreState,
    CoreTemperature,
    GameProfile,
    PackageCStates,
    PowerData,
    ProfileMetadata,
    S0ixState,
    ThermalData,
    WakeupData,
    WakeupEntry
)
from socwatch_analyzer.parsers.common import (
    FOUND,
    MALFORMED,
    MISSING,
    display_name,
    extract_core_types,
    extract_metadata,
    find_banner,
    merge_frequencies,
    note,
    parse_int,
    scan_core_states,
    scan_frequencies,
    section_window
)

_NUMBER = r"(\d+\.?\d*)"
_COLLECTION_DATE = re.compile(r"Data Collection Started: (.+)")
_CPU_MODEL = re.compile(r"CPU: (.+)")
_PACKAGE_STATES = [
    ("pc0", "PC0"),
    ("pc2", "PC2"),
    ("pc6", "PC6"),
    ("pc10", "PC10")
]
_S0I2_SUBSTATES = ("s0i2_0", "s0i2_1", "s0i2_2")
_WAKEUP_ROW = re.compile(r"^(\w+)\s*,\s*(\d+)", re.ASCII)
_POWER_VALUE = re.compile(r"Power\s*,\s*" + _NUMBER)
_CORE_TEMPERATURE = re.compile(
    r"CPU/Package_0/Core_(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*,\s*" + _NUMBER
)


def _labelled_value(line: str, label: str) -> float | None:
    match = re.search(re.escape(label) + r"\s*,\s*" + _NUMBER, line)
    if match:
        return float(match.group(1))
    return None


def _apply_comprehensive_state(record: CoreState, state: str, residency: float) -> None:
    if state == "CC0":
        record.set_cc0(residency)
    elif state == "CC1":
        record.set_cc1(residency)
    elif state == "CC6":
        record.cc6 = residency
    elif state == "CC7":
        record.cc7 = residency


def _extract_collection_facts(lines: list[str], banners: dict, metadata: ProfileMetadata) -> None:
    """Collection date, CPU model, and core declaration counts from the header window."""
    p_count = 0
    e_count = 0
    lpe_count = 0
    for line in lines[:METADATA_WINDOWS[COMPREHENSIVE]]:
        if banners["collection_date"] in line:
            match = _COLLECTION_DATE.search(line)
            if match:
                metadata.collection_date = match.group(1).strip()
        if banners["cpu_model"] in line:
            match = _CPU_MODEL.search(line)
            if match:
                metadata.cpu_model = match.group(1).strip()
        if "(P Core)" in line:
            p_count += 1
        if "(E Core)" in line:
            e_count += 1
        if "(LPE Core)" in line:
            lpe_count += 1

    metadata.p_core_count = p_count
    metadata.e_core_count = e_count
    metadata.lpe_core_count = lpe_count


def parse_package_c_states(lines: list[str], banners: dict, diagnostics: dict | None = None) -> PackageCStates | None:
    start = find_banner(lines, banners["package_cstate"])
    if start is None:
        note(diagnostics, "package_cstate", MISSING)
        return None

    states = PackageCStates()
    found = False
    for line in section_window(lines, start, 1, SECTION_WINDOWS["package_cstate"]):
        for attr, label in _PACKAGE_STATES:
            if not line.startswith(label):
                continue
            value = _labelled_value(line, label)
            if value is not None:
                setattr(states, attr, value)
                found = True

    note(diagnostics, "package_cstate", FOUND if found else MALFORMED)
    return states if found else None


def parse_s0ix_state(lines: list[str], banners: dict, diagnostics: dict | None = None) -> S0ixState | None:
    """SLP-S0 and s0i2.x residencies; these rows are looked for across the whole file."""
    state = S0ixState()
    found = False
    for line in lines:
        if banners["slp_s0"] in line and "," in line:
            value = _labelled_value(line, banners["slp_s0"])
            if value is not None:
                state.slp_s0_residency = value
                found = True
        for attr in _S0I2_SUBSTATES:
            label = banners[attr]
            if not line.startswith(label):
                continue
            value = _labelled_value(line, label)
            if value is not None:
                setattr(state.s0i2, attr, value)
                found = True

    note(diagnostics, "s0ix", FOUND if found else MISSING)
    return state if found else None


def parse_wakeup_data(lines: list[str], banners: dict, diagnostics: dict | None = None) -> WakeupData | None:
    """
    Package-level OS wakeup sources.

    Core- and thread-level wakeup lists stay empty; only the package table is
    read.
    """
    start = find_banner(lines, banners["package_wakeups"])
    if start is None:
        note(diagnostics, "package_wakeups", MISSING)
        return None

    wakeups = WakeupData()
    for line in section_window(lines, start, 2, SECTION_WINDOWS["package_wakeups"]):
        if line.strip() == "" or "Summary:" in line:
            break
        match = _WAKEUP_ROW.search(line)
        count = parse_int(match.group(2)) if match else None
        if count is not None:
            wakeups.package_wakeups.append(WakeupEntry(source=match.group(1), count=count))

    found = bool(wakeups.package_wakeups)
    note(diagnostics, "package_wakeups", FOUND if found else MALFORMED)
    return wakeups if found else None


def parse_power_data(lines: list[str], banners: dict, diagnostics: dict | None = None) -> PowerData | None:
    start = find_banner(lines, banners["package_power"])
    if start is None:
        note(diagnostics, "package_power", MISSING)
        return None

    power = PowerData()
    found = False
    for line in section_window(lines, start, 1, SECTION_WINDOWS["package_power"]):
        if banners["package_power_row"] not in line:
            continue
        match = _POWER_VALUE.search(line)
        if match:
            # mW to W
            power.package = float(match.group(1)) / 1000
            found = True

    note(diagnostics, "package_power", FOUND if found else MALFORMED)
    return power if found else None


def parse_thermal_data(lines: list[str], banners: dict, diagnostics: dict | None = None) -> ThermalData | None:
    """Per-core average temperatures; the package temperature is their mean."""
    start = find_banner(lines, banners["temperature"])
    if start is None:
        note(diagnostics, "temperature", MISSING)
        return None

    thermal = ThermalData()
    for line in section_window(lines, start, 2, SECTION_WINDOWS["temperature"]):
        if line.strip() == "" or banners["temperature_end"] in line:
            break
        match = _CORE_TEMPERATURE.search(line)
        core = parse_int(match.group(1)) if match else None
        if core is not None:
            thermal.core_temps.append(
                CoreTemperature(core=core, temperature=float(match.group(4)))
            )

    if not thermal.core_temps:
        note(diagnostics, "temperature", MALFORMED)
        return None

    thermal.package_temp = sum(entry.temperature for entry in thermal.core_temps) / len(thermal.core_temps)
    note(diagnostics, "temperature", FOUND)
    return thermal


def parse_concurrency_data(lines: list[str], banners: dict, diagnostics: dict | None = None) -> ConcurrencyData | None:
    """
    CPU-iGPU concurrency residency.

    When no idle row is present, both-idle is back-filled as the remainder of
    the other three buckets, provided they sum to less than 100.
    """
    start = find_banner(lines, banners["concurrency"])
    if start is None:
        note(diagnostics, "concurrency", MISSING)
        return None

    concurrency = ConcurrencyData()
    found = False
    idle_found = False
    for line in section_window(lines, start, 1, SECTION_WINDOWS["concurrency"]):
        if banners["concurrency_end"] in line:
            break
        if line.startswith("Both"):
            value = _labelled_value(line, "Both")
            if value is not None:
                concurrency.concurrent = value
                found = True
        if line.startswith("CPU Only"):
            value = _labelled_value(line, "CPU Only")
            if value is not None:
                concurrency.cpu_only = value
                found = True
        if line.startswith("iGPU Only"):
            value = _labelled_value(line, "iGPU Only")
            if value is not None:
                concurrency.gpu_only = value
                found = True
        if line.startswith("Both Idle") or line.startswith("Idle"):
            match = re.search(r"(Both Idle|Idle)\s*,\s*" + _NUMBER, line)
            if match:
                concurrency.both_idle = float(match.group(2))
                found = True
                idle_found = True

    if not found:
        note(diagnostics, "concurrency", MALFORMED)
        return None

    if not idle_found:
        busy = concurrency.cpu_only + concurrency.gpu_only + concurrency.concurrent
        if busy < 100:
            concurrency.both_idle = 100 - busy

    note(diagnostics, "concurrency", FOUND)
    return concurrency


def parse_comprehensive_format(content: str, filename: str, diagnostics: dict | None = None) -> GameProfile:
    """
    Parse a comprehensive export into a GameProfile tagged ``comprehensive``.

    Active time per core is CC0 + CC1. Every extended section is optional and
    left as None when its banner or rows are not found.
    """
    banners = banners_for(COMPREHENSIVE)
    lines = content.split("\n")

    metadata = extract_metadata(lines, banners, METADATA_WINDOWS[COMPREHENSIVE])
    _extract_collection_facts(lines, banners, metadata)
    core_types = extract_core_types(lines, diagnostics)
    records = scan_core_states(
        lines,
        banners,
        metadata.total_cores,
        core_types,
        _apply_comprehensive_state,
        diagnostics
    )
    frequencies = scan_frequencies(lines, banners, core_types, diagnostics)
    merge_frequencies(records, frequencies)

    package_c_states = parse_package_c_states(lines, banners, diagnostics)
    s0ix_state = parse_s0ix_state(lines, banners, diagnostics)
    wakeup_data = parse_wakeup_data(lines, banners, diagnostics)
    power_data = parse_power_data(lines, banners, diagnostics)
    thermal_data = parse_thermal_data(lines, banners, diagnostics)
    concurrency = parse_concurrency_data(lines, banners, diagnostics)

    return GameProfile(
        name=display_name(filename),
        format_version=COMPREHENSIVE,
        metadata=metadata,
        core_types=core_types,
        c_state_data=tuple(records),
        avg_frequencies=tuple(frequencies),
        insights=generate_insights(
            records,
            package_c_states=package_c_states,
            s0ix_state=s0ix_state,
            power_data=power_data,
            thermal_data=thermal_data
        ),
        package_c_states=package_c_states,
        s0ix_state=s0ix_state,
        wakeup_data=wakeup_data,
        power_data=power_data,
        thermal_data=thermal_data,
        concurrency=concurrency
    )
