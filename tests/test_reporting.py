import csv

import numpy as np
import pytest

from eco_sim.main import run
from eco_sim.sim.engine import SimulationEngine
from eco_sim.sim.metrics import PopulationHistory, append_csv, summarize
from eco_sim.ui.csv_writer import DailyCsvLogger


@pytest.fixture
def running_engine():
    engine = SimulationEngine(seed=4)
    engine.initialize()
    engine.start()
    for _ in range(20):
        engine.update(0.5)
    return engine


def test_summarize_is_flat(running_engine):
    row = summarize(running_engine)
    assert row["day"] == 2
    assert row["prey"] == len(running_engine.prey)
    assert 0.0 <= row["prey_strength"] <= 1.0
    assert all(isinstance(v, (int, float)) for v in row.values())


def test_history_arrays(running_engine):
    history = PopulationHistory(maxlen=3)
    for _ in range(5):
        history.append(summarize(running_engine))
    data = history.as_arrays()
    assert len(history) == 3
    assert isinstance(data["prey"], np.ndarray)
    assert data["prey"].shape == (3,)


def test_empty_history_has_no_arrays():
    assert PopulationHistory().as_arrays() == {}


def test_append_csv_writes_header_once(tmp_path):
    path = tmp_path / "out" / "days.csv"
    append_csv(str(path), {"day": 1, "prey": 10})
    append_csv(str(path), {"day": 2, "prey": 12})
    rows = list(csv.DictReader(open(path, newline="")))
    assert [r["day"] for r in rows] == ["1", "2"]


def test_daily_logger_writes_species_quantiles(tmp_path, running_engine):
    overall = tmp_path / "ui_daily.csv"
    species = tmp_path / "ui_species_daily.csv"
    logger = DailyCsvLogger(str(overall), str(species))
    logger.append_day(running_engine)

    o = list(csv.DictReader(open(overall, newline="")))
    s = list(csv.DictReader(open(species, newline="")))
    assert o[0]["session_id"] == logger.session_id
    assert [r["species"] for r in s] == ["prey", "predator"]
    lo, med, hi = (float(s[0][k]) for k in ("strength_min", "strength_median", "strength_max"))
    assert lo <= med <= hi


def test_cli_runs_headless_and_writes_csv(tmp_path, capsys):
    path = tmp_path / "run.csv"
    run(["--days", "2", "--seed", "3", "--csv", str(path), "--log-level", "WARNING"])
    out = capsys.readouterr().out
    assert "Day    1" in out and "Day    2" in out
    rows = list(csv.DictReader(open(path, newline="")))
    assert len(rows) == 2


def test_cli_rejects_bad_population():
    with pytest.raises(SystemExit):
        run(["--prey", "-1"])


def test_history_plot_is_saved(tmp_path, running_engine):
    import matplotlib
    matplotlib.use("Agg")
    from eco_sim.sim.visualize import plot_history

    history = PopulationHistory()
    history.append(summarize(running_engine))
    history.append(summarize(running_engine))
    path = tmp_path / "history.png"
    plot_history(history, title="test", path=str(path))
    assert path.exists()
