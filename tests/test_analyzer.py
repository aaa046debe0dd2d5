import json
import tempfile
import unittest
from pathlib import Path

from socwatch_analyzer.analyzer import (
    ProfileLoadError,
    analyze_files,
    collect_csv_files,
    load_profile,
    parse_csv_file
)
from socwatch_analyzer.models import GameProfile
from trace_fixtures import comprehensive_trace, legacy_trace


class TestDispatch(unittest.TestCase):
    def test_dispatches_by_detected_format(self):
        legacy = parse_csv_file(legacy_trace(), "Cyberpunk.csv")
        comprehensive = parse_csv_file(comprehensive_trace(), "Starfield.csv")
        self.assertEqual(legacy.format_version, "legacy")
        self.assertEqual(len(legacy.c_state_data), 2)
        self.assertEqual(comprehensive.format_version, "comprehensive")
        self.assertIsNotNone(comprehensive.concurrency)

    def test_unrecognized_text_parses_as_empty_legacy(self):
        diagnostics = {}
        profile = parse_csv_file("not a trace", "junk.csv", diagnostics)
        self.assertEqual(profile.format_version, "legacy")
        self.assertEqual(profile.c_state_data, ())
        self.assertEqual(diagnostics["format"], "legacy")
        self.assertEqual(diagnostics["confidence"], 30)
        self.assertEqual(diagnostics["markers"], [])

    def test_crlf_line_endings(self):
        profile = parse_csv_file(comprehensive_trace().replace("\n", "\r\n"), "Game.csv")
        self.assertEqual(profile.metadata.cpu_model, "Intel(R) Core(TM) Ultra 7 258V")
        self.assertEqual(len(profile.c_state_data), 4)
        self.assertEqual(profile.thermal_data.package_temp, 67.5)

    def test_json_round_trip(self):
        profile = parse_csv_file(comprehensive_trace(), "Starfield.csv")
        payload = json.loads(json.dumps(profile.to_dict()))

        self.assertEqual(payload["formatVersion"], "comprehensive")
        self.assertEqual(payload["coreTypes"]["3"], "LPE-Core")
        self.assertEqual(payload["cStateData"][0]["type"], "P-Core")
        self.assertEqual(payload["concurrency"]["bothIdle"], 30.0)
        self.assertEqual(payload["s0ixState"]["s0i2"]["s0i2_1"], 3.0)
        self.assertEqual(payload["insights"]["pCoreCC6"], "35.0")
        self.assertNotIn("uncore", payload["powerData"])

        self.assertEqual(GameProfile.from_dict(payload), profile)


class TestFiles(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        (self.root / "Cyberpunk.csv").write_text(legacy_trace())
        (self.root / "Starfield_PTATMonitor_01.csv").write_text(comprehensive_trace())
        (self.root / "notes.txt").write_text("ignore me")

    def tearDown(self):
        self.tmp.cleanup()

    def test_collect_filters_csv(self):
        files = collect_csv_files([self.root, self.root / "notes.txt"])
        self.assertEqual([path.name for path in files], ["Cyberpunk.csv", "Starfield_PTATMonitor_01.csv"])

    def test_analyze_files(self):
        result = analyze_files([self.root])
        self.assertEqual([profile["name"] for profile in result["profiles"]], ["Cyberpunk", "Starfield"])
        self.assertEqual(result["diagnostics"]["Starfield_PTATMonitor_01.csv"]["package_power"], "found")
        self.assertEqual(result["diagnostics"]["Cyberpunk.csv"]["format"], "legacy")
        json.dumps(result)

    def test_bom_is_tolerated(self):
        path = self.root / "bom.csv"
        path.write_bytes(b"\xef\xbb\xbf" + legacy_trace().encode("utf-8"))
        self.assertEqual(len(load_profile(path).c_state_data), 2)

    def test_stray_byte_is_replaced(self):
        path = self.root / "stray.csv"
        path.write_bytes(b"Ambient 25\xb0C\n" + legacy_trace().encode("utf-8"))
        profile = load_profile(path)
        self.assertEqual(profile.name, "stray")
        self.assertEqual(len(profile.c_state_data), 2)

    def test_binary_content_raises_load_error(self):
        path = self.root / "binary.csv"
        path.write_bytes(b"\xff\xfe\x00\x81\x82")
        with self.assertRaises(ProfileLoadError):
            load_profile(path)

    def test_no_csv_files(self):
        with self.assertRaises(ProfileLoadError):
            analyze_files([self.root / "notes.txt"])


if __name__ == "__main__":
    unittest.main()
