"""Format dispatch and file loading for SoC Watch exports."""

from pathlib import Path

from socwatch_analyzer.banners import COMPREHENSIVE
from socwatch_analyzer.detector import detect_csv_format
from socwatch_analyzer.models import GameProfile
from socwatch_analyzer.parsers import parse_comprehensive_format, parse_legacy_format

CSV_SUFFIX = ".csv"


class ProfileLoadError(RuntimeError):
    """A file could not be read into a recognizable profile."""


def parse_csv_file(content: str, filename: str, diagnostics: dict | None = None) -> GameProfile:
    """
    Detect the export format and parse with the matching parser.

    Args:
        content: Full decoded file text
        filename: Original file name
        diagnostics: Optional dict that receives the detected format and
            per-section found/missing/malformed notes

    Returns:
        A new GameProfile; nothing is shared between calls
    """
    detection = detect_csv_format(content)
    if diagnostics is not None:
        diagnostics.setdefault("format", detection.format)
        diagnostics.setdefault("confidence", detection.confidence)
        diagnostics.setdefault("markers", list(detection.markers))

    if detection.format == COMPREHENSIVE:
        return parse_comprehensive_format(content, filename, diagnostics)
    return parse_legacy_format(content, filename, diagnostics)


def collect_csv_files(paths: list[Path]) -> list[Path]:
    """Expand files and directories into the ``.csv`` files they name, directories sorted."""
    files = []
    for path in paths:
        if path.is_dir():
            files.extend(
                sorted(child for child in path.iterdir() if child.is_file() and child.name.endswith(CSV_SUFFIX))
            )
        elif path.name.endswith(CSV_SUFFIX):
            files.append(path)
    return files


def read_trace_text(path: Path) -> str:
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ProfileLoadError(f"Could not read {path}: {exc.strerror or exc}") from exc

    # Stray non-UTF-8 bytes become U+FFFD; NUL bytes mark binary content
    if b"\x00" in raw:
        raise ProfileLoadError(
            f"Could not decode {path.name}. Make sure it is an Intel SoC Watch CSV file."
        )
    return raw.decode("utf-8-sig", errors="replace")


def load_profile(path: Path, diagnostics: dict | None = None) -> GameProfile:
    return parse_csv_file(read_trace_text(path), path.name, diagnostics)


def load_profiles(paths: list[Path]) -> list[tuple[Path, GameProfile, dict]]:
    """Parse every export under ``paths``; each entry carries its own diagnostics."""
    files = collect_csv_files(paths)
    if not files:
        raise ProfileLoadError("No .csv files found")

    loaded = []
    for path in files:
        diagnostics: dict = {}
        loaded.append((path, load_profile(path, diagnostics), diagnostics))
    return loaded


def analyze_files(paths: list[Path]) -> dict:
    """
    Parse every export under ``paths`` and return JSON-ready results.

    Returns:
        Dictionary with ``profiles`` (storage-shaped GameProfile dicts) and
        ``diagnostics`` keyed by file name
    """
    loaded = load_profiles(paths)
    return {
        "profiles": [profile.to_dict() for _, profile, _ in loaded],
        "diagnostics": {path.name: diagnostics for path, _, diagnostics in loaded}
    }
