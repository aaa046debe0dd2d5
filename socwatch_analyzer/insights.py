"""Derived metrics over parsed core-state data, plus display formatting helpers."""

import math
from decimal import ROUND_HALF_UP, Context, Decimal

from socwatch_analyzer.models import (
    E_CORE,
    LPE_CORE,
    P_CORE,
    CoreState,
    PackageCStates,
    PowerData,
    ProfileInsights,
    S0ixState,
    ThermalData
)

P_CORE_DOMINANT = "P-Core Dominant"
E_CORE_DOMINANT = "E-Core Dominant"
BALANCED = "Balanced"
THREADING_MODELS = (P_CORE_DOMINANT, E_CORE_DOMINANT, BALANCED)

DOMINANCE_MARGIN = 10.0
RATIO_FLOOR = 1.0

_FIXED_CONTEXT = Context(prec=400, rounding=ROUND_HALF_UP)


def to_fixed(value: float, digits: int) -> str:
    """Fixed-point string with ties rounded away from zero; non-finite values spell themselves out."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    quantum = Decimal(1).scaleb(-digits)
    # A float's exact decimal expansion can run past the default 28 digits
    rounded = Decimal(value).quantize(quantum, context=_FIXED_CONTEXT)
    if rounded == 0:
        rounded = abs(rounded)
    return f"{rounded:.{digits}f}"


def calculate_average(values: list[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def calculate_percentage(value: float, total: float) -> float:
    if total == 0:
        return 0.0
    return (value / total) * 100


def calculate_delta(value: float, baseline: float) -> dict[str, float]:
    """Absolute and percentage change of ``value`` against ``baseline``."""
    delta = value - baseline
    percentage = (delta / baseline) * 100 if baseline != 0 else 0.0
    return {"delta": delta, "percentage": percentage}


def classify_threading_model(p_activity: float, e_activity: float) -> str:
    if p_activity > e_activity + DOMINANCE_MARGIN:
        return P_CORE_DOMINANT
    if e_activity > p_activity + DOMINANCE_MARGIN:
        return E_CORE_DOMINANT
    return BALANCED


def threading_model_description(model: str) -> str:
    if model == P_CORE_DOMINANT:
        return "Workload primarily utilizes Performance cores. May benefit from E-Core offloading."
    if model == E_CORE_DOMINANT:
        return "Workload efficiently utilizes Efficiency cores. Good for power efficiency."
    if model == BALANCED:
        return "Workload is evenly distributed across P and E cores. Optimal thread scheduling."
    return "Unknown threading pattern."


def group_cores_by_type(records: list[CoreState]) -> dict[str, list[CoreState]]:
    groups: dict[str, list[CoreState]] = {}
    for record in records:
        groups.setdefault(record.core_type, []).append(record)
    return groups


def format_duration(seconds: float) -> str:
    if seconds < 60:
        return f"{to_fixed(seconds, 1)}s"
    if seconds < 3600:
        return f"{to_fixed(seconds / 60, 1)}m"
    return f"{to_fixed(seconds / 3600, 1)}h"


def format_frequency(mhz: float) -> str:
    if mhz >= 1000:
        return f"{to_fixed(mhz / 1000, 2)} GHz"
    return f"{mhz:g} MHz"


def format_power(watts: float) -> str:
    if watts < 1:
        return f"{to_fixed(watts * 1000, 0)} mW"
    return f"{to_fixed(watts, 2)} W"


def generate_insights(
    records: list[CoreState],
    package_c_states: PackageCStates | None = None,
    s0ix_state: S0ixState | None = None,
    power_data: PowerData | None = None,
    thermal_data: ThermalData | None = None
) -> ProfileInsights:
    """
    Compute the insight block for a set of core-state records.

    P-cores form one group; E-cores and LPE-cores form the other. Missing
    frequencies count as 0. The threading ratio divides P activity by E
    activity floored at 1, so an idle E-core group yields the P activity
    itself. Extended fields are filled only for sections that were parsed.
    """
    p_cores = [record for record in records if record.core_type == P_CORE]
    e_cores = [record for record in records if record.core_type in (E_CORE, LPE_CORE)]

    p_activity = calculate_average([record.active for record in p_cores])
    e_activity = calculate_average([record.active for record in e_cores])
    p_freq = calculate_average([record.freq or 0 for record in p_cores])
    e_freq = calculate_average([record.freq or 0 for record in e_cores])
    p_cc6 = calculate_average([record.cc6 or 0 for record in p_cores])
    e_cc6 = calculate_average([record.cc6 or 0 for record in e_cores])
    p_cc7 = calculate_average([record.cc7 or 0 for record in p_cores])
    e_cc7 = calculate_average([record.cc7 or 0 for record in e_cores])

    threading_ratio = p_activity / max(e_activity, RATIO_FLOOR)

    extended = {}
    if package_c_states is not None:
        extended["package_c6_residency"] = to_fixed(package_c_states.pc6, 1)
        extended["package_c10_residency"] = to_fixed(package_c_states.pc10, 1)
    if s0ix_state is not None:
        extended["s0ix_residency"] = to_fixed(s0ix_state.slp_s0_residency, 1)
    if power_data is not None:
        extended["avg_power"] = to_fixed(power_data.package, 2)
    if thermal_data is not None:
        extended["avg_temperature"] = to_fixed(thermal_data.package_temp, 1)

    return ProfileInsights(
        p_core_activity=to_fixed(p_activity, 1),
        e_core_activity=to_fixed(e_activity, 1),
        p_core_avg_freq=to_fixed(p_freq, 0),
        e_core_avg_freq=to_fixed(e_freq, 0),
        p_core_cc6=to_fixed(p_cc6, 1),
        e_core_cc6=to_fixed(e_cc6, 1),
        p_core_cc7=to_fixed(p_cc7, 1),
        e_core_cc7=to_fixed(e_cc7, 1),
        avg_cc6=to_fixed((p_cc6 + e_cc6) / 2, 1),
        avg_cc7=to_fixed((p_cc7 + e_cc7) / 2, 1),
        threading_ratio=to_fixed(threading_ratio, 1),
        threading_model=classify_threading_model(p_activity, e_activity),
        **extended
    )
