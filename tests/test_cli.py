from __future__ import annotations

import pathlib

import pytest

from stokeslab.main import build_parser, main, simulate_measurements
from stokeslab.model.recorder import CSV_HEADER

pytestmark = pytest.mark.cli


def test_default_command_is_gui() -> None:
    args = build_parser().parse_args([])

    assert args.command is None
    assert args.fixed_frame_dt is None


def test_fluids(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["fluids"]) == 0

    out = capsys.readouterr().out.splitlines()
    assert len(out) == 4
    assert out[0].startswith("water")
    assert out[3].startswith("glycerin")


def test_simulate_prints_csv(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["simulate", "--runs", "2", "--dt", "0.001"]) == 0

    lines = capsys.readouterr().out.split("\n")
    assert lines[0] == ",".join(CSV_HEADER)
    assert lines[1].startswith("1,0.200,")
    assert lines[2].startswith("2,0.200,")
    assert lines[3] == ""
    assert "Fluid: Water" in lines


def test_simulate_writes_file(tmp_path: pathlib.Path, capsys: pytest.CaptureFixture[str]) -> None:
    target = tmp_path / "glycerin"

    code = main([
        "simulate", "--fluid", "glycerin", "--ball-radius", "10",
        "--tube-height", "400", "--distance", "100", "--output", str(target),
    ])

    assert code == 0
    text = (tmp_path / "glycerin.csv").read_text(encoding="utf-8")
    assert "Fluid: Glycerin\n" in text
    assert "Ball radius: 10 mm\n" in text
    assert "glycerin.csv" in capsys.readouterr().out


def test_simulate_rejects_impossible_window(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["simulate", "--tube-height", "300", "--distance", "250"])

    assert exc_info.value.code == 2
    assert "does not fit" in capsys.readouterr().err


def test_simulate_rejects_unknown_fluid() -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["simulate", "--fluid", "honey"])

    assert exc_info.value.code == 2


def test_fixed_frame_dt_must_be_positive() -> None:
    with pytest.raises(SystemExit):
        main(["--fixed-frame-dt", "0", "simulate"])


def test_simulate_measurements_is_accurate_with_small_steps(water_config) -> None:
    recorder = simulate_measurements(water_config, runs=3, dt=1e-4)

    assert [r.sequence_number for r in recorder.history] == [1, 2, 3]
    for record in recorder.history:
        assert record.computed_viscosity == pytest.approx(0.89, rel=0.01)


def test_simulate_measurements_fixed_frame(water_config) -> None:
    recorder = simulate_measurements(water_config, dt=1.0, fixed_frame_dt=1.0 / 60.0)

    record, = recorder.history
    # 200 mm at roughly 6.9 mm per frame
    assert 28 <= round(record.elapsed_time * 60) <= 30


def test_simulate_ball_too_fast_for_window(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["simulate", "--ball-radius", "35"])

    assert exc_info.value.code == 2
    err = capsys.readouterr().err
    assert "too fast" in err
    assert "measurement window first" not in err
