"""Producer-tool strings the detector and parsers match against.

SoC Watch section boundaries are found by exact, case-sensitive substring
containment. Every such string lives here, one table per export format, so a
change in the tool's wording is a one-line edit.
"""

LEGACY = "legacy"
COMPREHENSIVE = "comprehensive"

# Detector markers
COMPREHENSIVE_MARKERS = [
    "PCD SLP-S0 State",
    "S0ix Substate",
    "Package C-State Summary",
    "CPU-iGPU Concurrency",
    "Package Wakeups",
    "Core Wakeups",
    "Package Power Summary",
    "Temperature Metrics",
    "Platform Monitoring Technology"
]

LEGACY_MARKERS = [
    "Core C-State Summary: Residency",
    "CPU P-State Average Frequency"
]

LEGACY_BANNERS = {
    "version": "legacy-1",
    "duration": "Collection duration",
    "base_freq": "CPU Base Operating Frequency",
    "total_cores": "Total # of cores:",
    "core_cstate": "Core C-State Summary: Residency (Percentage and Time)",
    "core_cstate_end": "Core C-State Summary: Total Samples",
    "frequency": "CPU P-State Average Frequency (excluding CPU idle time)",
    "frequency_end": "CPU P-State/Frequency Summary"
}

COMPREHENSIVE_BANNERS = {
    **LEGACY_BANNERS,
    "version": "comprehensive-1",
    "collection_date": "Data Collection Started:",
    "cpu_model": "CPU:",
    "package_cstate": "Package C-State Summary: Residency (Percentage and Time)",
    "slp_s0": "SLP-S0",
    "s0i2_0": "s0i2.0",
    "s0i2_1": "s0i2.1",
    "s0i2_2": "s0i2.2",
    "package_wakeups": "Package Wakeups (OS) Summary: Type Count",
    "package_power": "Package Power Summary: Average Rate and Total",
    "package_power_row": "CPU/Package",
    "temperature": "Temperature Metrics Summary - Sampled: Min/Max/Avg",
    "temperature_end": "Temperature Metrics Summary",
    "concurrency": "CPU-iGPU Concurrency Summary: Residency",
    "concurrency_end": "CPU-iGPU Concurrency Summary: Total"
}

# Rows scanned after a banner before a section is given up on
SECTION_WINDOWS = {
    "package_cstate": 10,
    "package_wakeups": 20,
    "package_power": 10,
    "temperature": 30,
    "concurrency": 15
}

METADATA_WINDOWS = {
    LEGACY: 50,
    COMPREHENSIVE: 100
}


def banners_for(format_version: str) -> dict[str, str]:
    """Return the banner table for a format version."""
    if format_version == COMPREHENSIVE:
        return COMPREHENSIVE_BANNERS
    return LEGACY_BANNERS
