import pathlib
import sys
import unittest

# Ensure src/ is on path for direct test execution
ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from gyrostream.config.runtime import (  # noqa: E402
    GyroStreamConfig,
    config_from_mapping,
    load_config,
)
from gyrostream.config.sampling import (  # noqa: E402
    driver_interval_s,
    nearest_supported_rate,
    tick_interval_ms,
)


class SamplingTest(unittest.TestCase):
    def test_nearest_supported_rate_snaps_to_presets(self):
        self.assertEqual(nearest_supported_rate(20), 20)
        self.assertEqual(nearest_supported_rate(12), 10)
        self.assertEqual(nearest_supported_rate(36), 50)
        self.assertEqual(nearest_supported_rate(1000), 50)

    def test_nearest_supported_rate_falls_back_on_garbage(self):
        self.assertEqual(nearest_supported_rate("fast"), 20)
        self.assertEqual(nearest_supported_rate(-5), 20)
        self.assertEqual(nearest_supported_rate(float("nan")), 20)

    def test_intervals(self):
        self.assertEqual(tick_interval_ms(10), 100)
        self.assertEqual(tick_interval_ms(20), 50)
        self.assertEqual(tick_interval_ms(50), 20)
        self.assertAlmostEqual(driver_interval_s(20), 0.045)


class RuntimeConfigTest(unittest.TestCase):
    def test_defaults(self):
        cfg = GyroStreamConfig()
        self.assertEqual(cfg.host, "192.168.4.1")
        self.assertEqual(cfg.rate_hz, 20)
        self.assertEqual(cfg.transport.manual_mode_delay_ms, 500)
        self.assertEqual(cfg.transport.close_grace_ms, 100)
        self.assertEqual(cfg.transport.ws_path, "/ws")
        self.assertEqual(cfg.gimbal.timeout_ms, 1000)
        self.assertAlmostEqual(cfg.gimbal.deadband_rad_s, 0.01)

    def test_mapping_ignores_unknown_keys_and_sanitizes(self):
        cfg = config_from_mapping(
            {
                "host": "  10.0.0.5 ",
                "rate_hz": 25,
                "colour": "blue",
                "transport": {"close_grace_ms": -10, "ws_path": "ws", "extra": 1},
                "sensor": {"driver": "Synthetic", "i2c_address": "0x69"},
            }
        )
        self.assertEqual(cfg.host, "10.0.0.5")
        self.assertEqual(cfg.rate_hz, 20)
        self.assertEqual(cfg.transport.close_grace_ms, 0)
        self.assertEqual(cfg.transport.ws_path, "/ws")
        self.assertEqual(cfg.sensor.driver, "synthetic")
        self.assertEqual(cfg.sensor.i2c_address, 0x69)

    def test_empty_mapping_gives_defaults(self):
        self.assertEqual(config_from_mapping(None), GyroStreamConfig())
        self.assertEqual(config_from_mapping({}), GyroStreamConfig())

    def test_load_config_reads_yaml(self):
        import tempfile

        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "gyrostream.yaml"
            path.write_text(
                "host: gimbal.local\n"
                "rate_hz: 50\n"
                "sensor:\n"
                "  driver: replay\n"
                "  replay_path: run1.jsonl\n"
                "  i2c_address: 0x68\n"
                "gimbal:\n"
                "  port: 8080\n",
                encoding="utf-8",
            )
            cfg = load_config(path)

        self.assertEqual(cfg.host, "gimbal.local")
        self.assertEqual(cfg.rate_hz, 50)
        self.assertEqual(cfg.sensor.driver, "replay")
        self.assertEqual(cfg.sensor.replay_path, "run1.jsonl")
        self.assertEqual(cfg.sensor.i2c_address, 0x68)
        self.assertEqual(cfg.gimbal.port, 8080)

    def test_load_config_missing_file_returns_defaults(self):
        self.assertEqual(load_config("/nonexistent/gyrostream.yaml"), GyroStreamConfig())
        self.assertEqual(load_config(None), GyroStreamConfig())

    def test_load_config_rejects_non_mapping(self):
        import tempfile

        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "bad.yaml"
            path.write_text("- 1\n- 2\n", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_config(path)

    def test_unknown_driver_is_rejected(self):
        with self.assertRaises(ValueError):
            config_from_mapping({"sensor": {"driver": "bogus"}})

    def test_replay_driver_needs_a_log(self):
        with self.assertRaises(ValueError):
            config_from_mapping({"sensor": {"driver": "replay"}})

    def test_to_mapping_round_trips(self):
        cfg = config_from_mapping({"host": "10.1.1.1", "rate_hz": 10})
        self.assertEqual(config_from_mapping(cfg.to_mapping()), cfg)


if __name__ == "__main__":
    unittest.main()
