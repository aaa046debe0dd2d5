import unittest

from socwatch_analyzer.detector import detect_csv_format, is_comprehensive_format
from trace_fixtures import comprehensive_trace, legacy_trace


class TestDetector(unittest.TestCase):
    def test_comprehensive_needs_three_markers(self):
        text = "Package C-State Summary\nCPU-iGPU Concurrency\nPackage Power Summary\n"
        result = detect_csv_format(text)
        self.assertEqual(result.format, "comprehensive")
        self.assertEqual(result.confidence, 45)
        self.assertEqual(
            result.markers,
            ("Package C-State Summary", "CPU-iGPU Concurrency", "Package Power Summary")
        )

    def test_two_comprehensive_markers_fall_back_to_legacy_markers(self):
        text = (
            "Package C-State Summary\nPackage Power Summary\n"
            "Core C-State Summary: Residency (Percentage and Time)\n"
        )
        result = detect_csv_format(text)
        self.assertEqual(result.format, "legacy")
        self.assertEqual(result.confidence, 50)
        self.assertEqual(result.markers, ("Core C-State Summary: Residency",))

    def test_confidence_capped_at_100(self):
        result = detect_csv_format(comprehensive_trace())
        self.assertEqual(result.format, "comprehensive")
        self.assertEqual(result.confidence, 100)
        self.assertIn("Platform Monitoring Technology", result.markers)

    def test_legacy_export(self):
        result = detect_csv_format(legacy_trace())
        self.assertEqual(result.format, "legacy")
        self.assertEqual(result.confidence, 100)

    def test_unrecognized_text_defaults_to_legacy(self):
        for text in ["", "hello,world\n1,2\n"]:
            result = detect_csv_format(text)
            self.assertEqual(result.format, "legacy")
            self.assertEqual(result.confidence, 30)
            self.assertEqual(result.markers, ())

    def test_only_leading_content_is_inspected(self):
        text = ("x" * 5000) + "Package C-State Summary\nCPU-iGPU Concurrency\nPackage Power Summary\n"
        result = detect_csv_format(text)
        self.assertEqual(result.format, "legacy")
        self.assertEqual(result.confidence, 30)

    def test_deterministic(self):
        text = comprehensive_trace(power=False)
        self.assertEqual(detect_csv_format(text), detect_csv_format(text))
        self.assertTrue(is_comprehensive_format(text))
        self.assertFalse(is_comprehensive_format(legacy_trace()))


if __name__ == "__main__":
    unittest.main()
