import unittest

from socwatch_analyzer.banners import COMPREHENSIVE_BANNERS
from socwatch_analyzer.parsers import parse_comprehensive_format
from socwatch_analyzer.parsers.comprehensive import (
    parse_concurrency_data,
    parse_package_c_states,
    parse_s0ix_state,
    parse_wakeup_data
)
from trace_fixtures import comprehensive_trace


class TestComprehensiveParser(unittest.TestCase):
    def setUp(self):
        self.profile = parse_comprehensive_format(comprehensive_trace(), "Starfield PTATMonitor 0501.csv")

    def test_identity_and_metadata(self):
        profile = self.profile
        self.assertEqual(profile.name, "Starfield")
        self.assertEqual(profile.format_version, "comprehensive")
        metadata = profile.metadata
        self.assertEqual(metadata.duration, 120.5)
        self.assertEqual(metadata.base_freq, 2200)
        self.assertEqual(metadata.total_cores, 4)
        self.assertEqual(metadata.collection_date, "2024-05-01 10:00:00")
        self.assertEqual(metadata.cpu_model, "Intel(R) Core(TM) Ultra 7 258V")
        self.assertEqual((metadata.p_core_count, metadata.e_core_count, metadata.lpe_core_count), (2, 1, 1))

    def test_core_types(self):
        self.assertEqual(
            self.profile.core_types,
            {0: "P-Core", 1: "P-Core", 2: "E-Core", 3: "LPE-Core"}
        )

    def test_active_is_cc0_plus_cc1(self):
        records = self.profile.c_state_data
        self.assertEqual([record.core for record in records], [0, 1, 2, 3])
        for record in records:
            self.assertEqual(record.active, (record.cc0 or 0) + (record.cc1 or 0))
        self.assertEqual([record.active for record in records], [50.0, 40.0, 15.0, 10.0])
        self.assertEqual([record.freq for record in records], [4800, 4600, 3000, 2400])

    def test_active_with_only_cc0_row(self):
        text = comprehensive_trace().replace("CC1, 10.0, 10.0, 5.0, 5.0\n", "")
        profile = parse_comprehensive_format(text, "a.csv")
        record = profile.c_state_data[0]
        self.assertIsNone(record.cc1)
        self.assertEqual(record.active, 40.0)

    def test_package_c_states(self):
        states = self.profile.package_c_states
        self.assertEqual((states.pc0, states.pc2, states.pc6, states.pc10), (35.5, 10.0, 20.0, 34.5))

    def test_package_c_states_window(self):
        lines = ["Package C-State Summary: Residency (Percentage and Time)"] + ["filler"] * 9 + ["PC0, 50"]
        diagnostics = {}
        self.assertIsNone(parse_package_c_states(lines, COMPREHENSIVE_BANNERS, diagnostics))
        self.assertEqual(diagnostics["package_cstate"], "malformed")

    def test_s0ix(self):
        s0ix = self.profile.s0ix_state
        self.assertEqual(s0ix.slp_s0_residency, 12.5)
        self.assertEqual((s0ix.s0i2.s0i2_0, s0ix.s0i2.s0i2_1, s0ix.s0i2.s0i2_2), (8.0, 3.0, 1.5))

    def test_package_wakeups(self):
        wakeups = self.profile.wakeup_data
        self.assertEqual([(entry.source, entry.count) for entry in wakeups.package_wakeups],
                         [("Interrupt", 300), ("Timer", 1200)])
        self.assertEqual(wakeups.core_wakeups, [])
        self.assertEqual(wakeups.thread_wakeups, [])
        self.assertEqual(wakeups.top_package_wakeups(1)[0].source, "Timer")

    def test_s0ix_substates_without_slp_s0(self):
        diagnostics = {}
        state = parse_s0ix_state(["s0i2.1, 4.5, 10", "s0i2.2, 0.5, 10"], COMPREHENSIVE_BANNERS, diagnostics)
        self.assertEqual((state.s0i2.s0i2_0, state.s0i2.s0i2_1, state.s0i2.s0i2_2), (0.0, 4.5, 0.5))
        self.assertEqual(state.slp_s0_residency, 0.0)
        self.assertEqual(diagnostics["s0ix"], "found")

    def test_oversized_wakeup_count_is_skipped(self):
        lines = [
            "Package Wakeups (OS) Summary: Type Count",
            "Type, Count",
            "Interrupt, " + "9" * 400,
            "Timer, 12"
        ]
        wakeups = parse_wakeup_data(lines, COMPREHENSIVE_BANNERS)
        self.assertEqual([(entry.source, entry.count) for entry in wakeups.package_wakeups], [("Timer", 12)])

    def test_power_converted_to_watts(self):
        self.assertEqual(self.profile.power_data.package, 15.25)
        self.assertEqual(self.profile.insights.avg_power, "15.25")

    def test_package_temperature_is_mean_of_cores(self):
        thermal = self.profile.thermal_data
        self.assertEqual([entry.temperature for entry in thermal.core_temps], [60.0, 65.0, 70.0, 75.0])
        self.assertEqual(thermal.package_temp, 67.5)
        self.assertEqual(self.profile.insights.avg_temperature, "67.5")

    def test_concurrency_back_fills_idle(self):
        concurrency = self.profile.concurrency
        self.assertEqual(concurrency.cpu_only, 40.0)
        self.assertEqual(concurrency.gpu_only, 10.0)
        self.assertEqual(concurrency.concurrent, 20.0)
        self.assertEqual(concurrency.both_idle, 30.0)

    def test_concurrency_explicit_idle(self):
        text = comprehensive_trace(concurrency=["CPU Only, 40", "iGPU Only, 10", "Both, 20", "Both Idle, 25"])
        self.assertEqual(parse_comprehensive_format(text, "a.csv").concurrency.both_idle, 25.0)

    def test_concurrency_no_back_fill_when_saturated(self):
        lines = [
            "CPU-iGPU Concurrency Summary: Residency",
            "CPU Only, 70",
            "iGPU Only, 20",
            "Both, 15"
        ]
        concurrency = parse_concurrency_data(lines, COMPREHENSIVE_BANNERS)
        self.assertEqual(concurrency.both_idle, 0.0)

    def test_insights(self):
        insights = self.profile.insights
        self.assertEqual(insights.p_core_activity, "45.0")
        self.assertEqual(insights.e_core_activity, "12.5")
        self.assertEqual(insights.p_core_avg_freq, "4700")
        self.assertEqual(insights.e_core_avg_freq, "2700")
        self.assertEqual(insights.threading_ratio, "3.6")
        self.assertEqual(insights.threading_model, "P-Core Dominant")
        self.assertEqual(insights.package_c6_residency, "20.0")
        self.assertEqual(insights.package_c10_residency, "34.5")
        self.assertEqual(insights.s0ix_residency, "12.5")

    def test_missing_power_section_is_absent(self):
        diagnostics = {}
        profile = parse_comprehensive_format(comprehensive_trace(power=False), "a.csv", diagnostics)
        self.assertIsNone(profile.power_data)
        self.assertIsNone(profile.insights.avg_power)
        self.assertNotIn("powerData", profile.to_dict())
        self.assertEqual(diagnostics["package_power"], "missing")
        self.assertEqual(diagnostics["temperature"], "found")

    def test_all_optional_sections_absent(self):
        text = comprehensive_trace(
            package_cstates=False, s0ix=False, wakeups=False, power=False, thermal=False
        )
        profile = parse_comprehensive_format(text, "a.csv")
        self.assertIsNone(profile.package_c_states)
        self.assertIsNone(profile.s0ix_state)
        self.assertIsNone(profile.wakeup_data)
        self.assertIsNone(profile.thermal_data)
        self.assertIsNotNone(profile.concurrency)

    def test_idempotent(self):
        text = comprehensive_trace()
        first = parse_comprehensive_format(text, "Game.csv")
        second = parse_comprehensive_format(text, "Game.csv")
        self.assertEqual(first, second)
        self.assertEqual(first.to_dict(), second.to_dict())


if __name__ == "__main__":
    unittest.main()
