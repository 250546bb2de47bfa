"""Tests for the command line interface."""

import h5py

from attpc_sync.cli.main import main
from attpc_sync.core.config import Config


def regular_timestamps(count, start=1_000_000, interval=10_000):
    return [start + i * interval for i in range(count)]


class TestCli:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_new_writes_template(self, tmp_path):
        path = tmp_path / "config.yml"

        assert main(["new", "-c", str(path)]) == 0

        config = Config.load(path)
        assert config.min_run == 0
        assert config.on_missing_event == "skip"

    def test_run_missing_paths(self, tmp_path, capsys):
        path = tmp_path / "config.yml"
        Config(merger_path=tmp_path / "nope", sync_path=tmp_path / "nope2").save(path)

        assert main(["run", "-c", str(path)]) == 1
        out = capsys.readouterr().out
        assert "does not exist" in out

    def test_run_missing_config(self, tmp_path, capsys):
        assert main(["run", "-c", str(tmp_path / "missing.yml")]) == 1
        assert "Error" in capsys.readouterr().out

    def test_run(self, tmp_path, capsys, make_current_run, frib_extra_event):
        merger = tmp_path / "merger"
        sync = tmp_path / "sync"
        merger.mkdir()
        sync.mkdir()
        get_ts, frib_ts = frib_extra_event
        make_current_run(merger / "run_0005.h5", get_ts, frib_ts)
        path = tmp_path / "config.yml"
        Config(merger_path=merger, sync_path=sync, min_run=5, max_run=6).save(path)

        assert main(["run", "-c", str(path)]) == 0

        out = capsys.readouterr().out
        assert "Run 5: 11/11 events, 1 skips, 0 anomalies" in out
        assert "Run 6: not found, skipped" in out
        assert "Runs synchronized: 1" in out
        with h5py.File(sync / "run_0005.h5", "r") as f:
            assert f["events"].attrs["max_event"] == 11

    def test_inspect(self, tmp_path, capsys, make_legacy_run):
        ts = regular_timestamps(8)
        frib = list(ts)
        frib[3] += 40
        path = make_legacy_run(tmp_path / "run_0001.h5", ts, frib)

        assert main(["inspect", str(path)]) == 0

        out = capsys.readouterr().out
        assert "Merger format: 0.1.0" in out
        assert "Synchronized pairs: 8" in out
        assert "Anomalies: 1" in out
        assert "jitter=40" in out
