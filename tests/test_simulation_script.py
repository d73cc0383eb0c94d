from __future__ import annotations

import importlib.util
from pathlib import Path

import pytest

_SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "run_pr_fdr_simulation.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("run_pr_fdr_simulation", _SCRIPT)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


def test_command_line_flags_override_yaml_config(tmp_path: Path) -> None:
    mod = _load_script()
    cfg = tmp_path / "sim.yaml"
    cfg.write_text("seed: 1\nn: 300\nsignal-mu: [-2.5, 2.5]\n", encoding="utf-8")

    args = mod._parse_args(["--config", str(cfg), "--seed", "20240"])
    assert args.seed == 20240
    assert args.n == 300
    assert mod._parse_floats_csv(args.signal_mu) == [-2.5, 2.5]

    args = mod._parse_args(["--config", str(cfg)])
    assert args.seed == 1

    args = mod._parse_args(["--config", str(cfg), "--n", "5000"])
    assert args.n == 5000


def test_yaml_config_rejects_unknown_keys(tmp_path: Path) -> None:
    mod = _load_script()
    cfg = tmp_path / "bad.yaml"
    cfg.write_text("seeds: 3\n", encoding="utf-8")
    with pytest.raises(SystemExit):
        mod._parse_args(["--config", str(cfg)])
