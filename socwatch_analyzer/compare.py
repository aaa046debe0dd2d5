"""Side-by-side insight comparison across profiles."""

from socwatch_analyzer.insights import calculate_delta
from socwatch_analyzer.models import GameProfile

MAX_COMPARISONS = 6

COMPARISON_METRICS = [
    ("pCoreActivity", "P-Core Activity (%)"),
    ("eCoreActivity", "E-Core Activity (%)"),
    ("pCoreAvgFreq", "P-Core Avg Freq (MHz)"),
    ("eCoreAvgFreq", "E-Core Avg Freq (MHz)"),
    ("threadingRatio", "P/E Ratio"),
    ("threadingModel", "Threading Model"),
    ("avgCC6", "Avg CC6 (%)"),
    ("avgCC7", "Avg CC7 (%)")
]


def comparison_id(sku_name: str, profile: GameProfile) -> str:
    return f"{sku_name}-{profile.name}"


def _as_number(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def build_comparison(items: list[tuple[str, GameProfile]], baseline_index: int = 0) -> dict:
    """
    Lay out insight metrics for up to MAX_COMPARISONS profiles.

    Args:
        items: (sku_name, profile) pairs, one column each
        baseline_index: Column the numeric deltas are computed against

    Returns:
        Dictionary with ``columns`` and ``rows``; each row holds the display
        values and, for numeric metrics, per-column deltas vs. the baseline
    """
    if not items:
        raise ValueError("Select at least one game to compare")
    if len(items) > MAX_COMPARISONS:
        raise ValueError(f"Maximum {MAX_COMPARISONS} games can be compared at once")
    if baseline_index < 0 or baseline_index >= len(items):
        raise ValueError(f"Baseline index {baseline_index} out of range")

    columns = [
        {
            "id": comparison_id(sku_name, profile),
            "sku": sku_name,
            "game": profile.name,
            "format": profile.format_version
        }
        for sku_name, profile in items
    ]

    rows = []
    for key, label in COMPARISON_METRICS:
        values = [profile.insights.get(key) for _, profile in items]
        baseline = _as_number(values[baseline_index])
        deltas = []
        for value in values:
            number = _as_number(value)
            if number is None or baseline is None:
                deltas.append(None)
            else:
                deltas.append(calculate_delta(number, baseline))
        rows.append(
            {
                "key": key,
                "label": label,
                "values": values,
                "deltas": deltas
            }
        )

    return {
        "baseline": columns[baseline_index]["id"],
        "columns": columns,
        "rows": rows
    }
