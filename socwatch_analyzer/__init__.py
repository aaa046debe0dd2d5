"""SoC Watch Analyzer - per-core power, frequency and sleep-state analytics from SoC Watch exports."""

from socwatch_analyzer.analyzer import ProfileLoadError, analyze_files, load_profile, parse_csv_file
from socwatch_analyzer.detector import detect_csv_format
from socwatch_analyzer.models import GameProfile

__all__ = [
    "GameProfile",
    "ProfileLoadError",
    "analyze_files",
    "detect_csv_format",
    "load_profile",
    "parse_csv_file"
]
