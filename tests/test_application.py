from __future__ import annotations

from gyrostream.app.application import EXIT_USAGE, _build_arg_parser, build_config, main


def _args(*argv: str):
    return _build_arg_parser().parse_args(list(argv))


def test_cli_overrides_config_file(tmp_path) -> None:
    cfg_path = tmp_path / "gyrostream.yaml"
    cfg_path.write_text("host: 10.0.0.1\nrate_hz: 10\nsensor:\n  driver: mpu6050\n", encoding="utf-8")

    cfg = build_config(_args("--config", str(cfg_path), "--host", "10.0.0.9", "--rate", "50", "--driver", "synthetic"))

    assert cfg.host == "10.0.0.9"
    assert cfg.rate_hz == 50
    assert cfg.sensor.driver == "synthetic"


def test_replay_flag_selects_replay_driver(tmp_path) -> None:
    cfg = build_config(_args("--config", str(tmp_path / "none.yaml"), "--replay", "run.jsonl"))
    assert cfg.sensor.driver == "replay"
    assert cfg.sensor.replay_path == "run.jsonl"


def test_file_values_kept_without_flags(tmp_path) -> None:
    cfg_path = tmp_path / "gyrostream.yaml"
    cfg_path.write_text("host: gimbal.local\nrate_hz: 50\n", encoding="utf-8")
    cfg = build_config(_args("--config", str(cfg_path)))
    assert cfg.host == "gimbal.local"
    assert cfg.rate_hz == 50


def test_blank_host_exits_before_connecting(qapp, tmp_path) -> None:
    code = main(
        [
            "gyrostream",
            "--config",
            str(tmp_path / "none.yaml"),
            "--host",
            "   ",
            "--driver",
            "synthetic",
        ]
    )
    assert code == EXIT_USAGE


def test_emulator_port_flag() -> None:
    from gyrostream.app.gimbal_emulator import _build_arg_parser as emulator_parser

    args = emulator_parser().parse_args(["--port", "8081", "--log-level", "DEBUG"])
    assert args.port == 8081
    assert args.log_level == "DEBUG"
    assert args.config is None


def test_replay_driver_without_log_exits_with_usage(qapp, tmp_path) -> None:
    code = main(
        [
            "gyrostream",
            "--config",
            str(tmp_path / "none.yaml"),
            "--driver",
            "replay",
            "--host",
            "127.0.0.1",
        ]
    )
    assert code == EXIT_USAGE


def test_unknown_driver_in_file_exits_with_usage(qapp, tmp_path) -> None:
    cfg_path = tmp_path / "gyrostream.yaml"
    cfg_path.write_text("host: 127.0.0.1\nsensor:\n  driver: bogus\n", encoding="utf-8")
    assert main(["gyrostream", "--config", str(cfg_path)]) == EXIT_USAGE


def test_emulator_rejects_non_mapping_config(qapp, tmp_path) -> None:
    from gyrostream.app.gimbal_emulator import main as emulator_main

    cfg_path = tmp_path / "gimbal.yaml"
    cfg_path.write_text("- 1\n- 2\n", encoding="utf-8")
    assert emulator_main(["gyrostream-gimbal", "--config", str(cfg_path)]) == EXIT_USAGE
