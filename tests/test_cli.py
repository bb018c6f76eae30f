"""
Tests for the satselect CLI.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from loguru import logger
from typer.testing import CliRunner

from satselect.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def drop_log_handlers():
    """Commands log to the runner's captured stderr, which is closed afterwards."""
    yield
    logger.remove()


def write_utxo_file(path: Path, values: list[int], script_type: str | None = None) -> Path:
    entries = []
    for i, value in enumerate(values):
        entry: dict[str, object] = {"txid": f"{i:064x}", "vout": 0, "value": value}
        if script_type is not None:
            entry["script_type"] = script_type
        entries.append(entry)
    path.write_text(json.dumps(entries))
    return path


@pytest.fixture
def utxo_file(tmp_path: Path) -> Path:
    return write_utxo_file(tmp_path / "utxos.json", [60_000])


@pytest.fixture
def segwit_utxo_file(tmp_path: Path) -> Path:
    return write_utxo_file(
        tmp_path / "segwit.json",
        [10_000, 20_000, 30_000, 40_000, 50_000, 60_000],
        "p2wpkh",
    )


class TestSelectCommand:
    def test_table_output(self, utxo_file: Path):
        result = runner.invoke(app, ["select", str(utxo_file), "-t", "50000", "-r", "1"])
        assert result.exit_code == 0, result.output
        assert "Selected 1 inputs (branch_and_bound)" in result.stdout
        assert "0.00000148 BTC" in result.stdout

    def test_json_output(self, utxo_file: Path):
        result = runner.invoke(
            app, ["select", str(utxo_file), "--target", "50000", "--fee-rate", "1", "--json"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["fee"] == 148
        assert data["change"] == 9852
        assert data["error"] is None
        assert [u["value"] for u in data["inputs"]] == [60_000]

    def test_insufficient_funds_exits_nonzero(self, utxo_file: Path):
        result = runner.invoke(
            app, ["select", str(utxo_file), "-t", "500000", "-r", "1", "--json"]
        )
        assert result.exit_code == 1
        assert '"error": "Insufficient funds"' in result.stdout
        assert '"error_kind": "insufficient_funds"' in result.stdout

    def test_dust_threshold_option(self, tmp_path: Path):
        # net of a 1-in/1-change spend is 10_506: above a 500 dust limit, so no shortcut
        path = write_utxo_file(tmp_path / "u.json", [10_688])
        result = runner.invoke(
            app,
            ["select", str(path), "-t", "10000", "-r", "1", "--dust-threshold", "500", "--json"],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["algorithm"] == "branch_and_bound"
        assert data["change"] == 540

    def test_dust_threshold_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        # 818 sats over the target is within a 1000 sat dust limit
        path = write_utxo_file(tmp_path / "u.json", [11_000])
        monkeypatch.setenv("EFFICIENT__DUST_THRESHOLD", "1000")
        result = runner.invoke(app, ["select", str(path), "-t", "10000", "-r", "1", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["algorithm"] == "exact_match"
        assert data["fee"] == 182
        assert data["change"] == 818

    def test_missing_file(self, tmp_path: Path):
        result = runner.invoke(
            app, ["select", str(tmp_path / "missing.json"), "-t", "1000", "-r", "1"]
        )
        assert result.exit_code == 1

    def test_malformed_file(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text('[{"txid": "ab", "vout": 0, "value": -5}]')
        result = runner.invoke(app, ["select", str(path), "-t", "1000", "-r", "1"])
        assert result.exit_code == 1


class TestStonewallCommand:
    def test_seeded_output(self, segwit_utxo_file: Path):
        args = ["stonewall", str(segwit_utxo_file), "-t", "75000", "-r", "2", "--seed", "5"]
        first = runner.invoke(app, args)
        second = runner.invoke(app, args)
        assert first.exit_code == 0, first.output
        assert "STONEWALL:" in first.stdout
        assert "recipient" in first.stdout
        assert first.stdout == second.stdout

    def test_json_output(self, segwit_utxo_file: Path):
        result = runner.invoke(
            app,
            ["stonewall", str(segwit_utxo_file), "-t", "75000", "-r", "2", "--seed", "5", "--json"],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        total_in = sum(u["value"] for u in data["inputs"])
        total_out = sum(o["value"] for o in data["outputs"])
        assert total_in == total_out + data["fee"]
        assert data["outputs"][0]["is_recipient"] is True

    def test_seed_from_settings(self, segwit_utxo_file: Path, monkeypatch: pytest.MonkeyPatch):
        args = ["stonewall", str(segwit_utxo_file), "-t", "75000", "-r", "2", "--json"]
        monkeypatch.setenv("SEED", "5")
        from_env = runner.invoke(app, args)
        from_flag = runner.invoke(app, [*args, "--seed", "5"])
        assert from_env.stdout == from_flag.stdout

    def test_invalid_bounds(self, segwit_utxo_file: Path):
        result = runner.invoke(
            app,
            [
                "stonewall",
                str(segwit_utxo_file),
                "-t",
                "75000",
                "-r",
                "2",
                "--min-outputs",
                "4",
                "--max-outputs",
                "2",
            ],
        )
        assert result.exit_code == 1

    def test_infeasible(self, utxo_file: Path):
        result = runner.invoke(app, ["stonewall", str(utxo_file), "-t", "10000", "-r", "1"])
        assert result.exit_code == 1


class TestDistributeCommand:
    def test_split(self):
        result = runner.invoke(app, ["distribute", "10000", "-n", "3", "--seed", "1"])
        assert result.exit_code == 0, result.output
        amounts = [int(line) for line in result.stdout.split()]
        assert len(amounts) == 3
        assert sum(amounts) == 10_000
        assert all(a >= 546 for a in amounts)

    def test_collapses_small_amount(self):
        result = runner.invoke(app, ["distribute", "1000", "-n", "3"])
        assert result.exit_code == 0
        assert result.stdout.strip().splitlines()[-1] == "1000"


class TestConfigInit:
    def test_creates_template(self, tmp_path: Path):
        data_dir = tmp_path / "cfg"
        result = runner.invoke(app, ["config-init", "--data-dir", str(data_dir)])
        assert result.exit_code == 0, result.output
        assert (data_dir / "config.toml").exists()
        assert "[efficient]" in (data_dir / "config.toml").read_text()
