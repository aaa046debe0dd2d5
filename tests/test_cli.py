import json
import tempfile
import unittest
from pathlib import Path

from typer.testing import CliRunner

from socwatch_analyzer.cli import app
from trace_fixtures import comprehensive_trace, legacy_trace


class TestCli(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        self.traces = self.root / "traces"
        self.traces.mkdir()
        (self.traces / "Cyberpunk.csv").write_text(legacy_trace())
        (self.traces / "Starfield.csv").write_text(comprehensive_trace())
        self.library = self.root / "library.json"

    def tearDown(self):
        self.tmp.cleanup()

    def test_detect(self):
        result = self.runner.invoke(app, ["detect", str(self.traces / "Starfield.csv")])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("comprehensive", result.output)

    def test_analyze_writes_json_and_library(self):
        out = self.root / "analysis.json"
        result = self.runner.invoke(
            app,
            ["analyze", str(self.traces), "--out", str(out), "--sku", "Lunar Lake", "--library", str(self.library)]
        )
        self.assertEqual(result.exit_code, 0, result.output)

        with open(out) as f:
            analysis = json.load(f)
        self.assertEqual([profile["name"] for profile in analysis["profiles"]], ["Cyberpunk", "Starfield"])

        with open(self.library) as f:
            library = json.load(f)
        self.assertEqual(library["skus"][0]["name"], "Lunar Lake")
        self.assertEqual(len(library["skus"][0]["games"]), 2)

        compare = self.runner.invoke(
            app,
            ["compare", "--game", "Lunar Lake/Cyberpunk", "--game", "Lunar Lake/Starfield",
             "--library", str(self.library)]
        )
        self.assertEqual(compare.exit_code, 0, compare.output)
        self.assertIn("Lunar Lake/Cyberpunk:", compare.output)

        listing = self.runner.invoke(app, ["library", "list", "--library", str(self.library)])
        self.assertEqual(listing.exit_code, 0, listing.output)
        self.assertIn("Starfield", listing.output)

        renamed = self.runner.invoke(app, ["library", "rename", "Lunar Lake", "LNL", "--library", str(self.library)])
        self.assertEqual(renamed.exit_code, 0, renamed.output)
        with open(self.library) as f:
            self.assertEqual(json.load(f)["skus"][0]["name"], "LNL")

    def test_missing_path(self):
        result = self.runner.invoke(app, ["analyze", str(self.root / "nope.csv")])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Path not found", result.output)

    def test_unknown_game_in_compare(self):
        result = self.runner.invoke(app, ["compare", "--game", "X/Y", "--library", str(self.library)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("SKU not found", result.output)


if __name__ == "__main__":
    unittest.main()
