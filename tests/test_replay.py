import asyncio
import csv
import json

from sensehar.config import HarConfig
from sensehar.inference import FallbackBackend
from sensehar.tools.replay import main, replay


def _write_log(path, n=250, fs=50.0):
    lines = ["t,ax,ay,az"]
    lines += [f"{i / fs:.2f},0.0,0.0,9.81" for i in range(n)]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def test_replay_runs_one_cycle_per_hop(tmp_path, capsys) -> None:
    log = tmp_path / "walk.csv"
    _write_log(log)
    cfg = HarConfig()
    dump = tmp_path / "features.csv"

    cycles = asyncio.run(replay([log], cfg, FallbackBackend(cfg.classes), dump))

    # Hops at t=1.5, 3.0 and 4.5 s.
    assert cycles == 3
    printed = capsys.readouterr().out.splitlines()
    assert len(printed) == 3
    # A uniform backend never clears the confidence floor.
    assert all(line.startswith("UNKNOWN") for line in printed)

    with dump.open(newline="", encoding="utf-8") as fh:
        rows = list(csv.reader(fh))
    assert rows[0] == ["window_end", *cfg.feature_order]
    assert len(rows) == 4
    assert float(rows[1][0]) == 1.5


def test_main_with_metadata_and_tensor_dump(tmp_path, capsys) -> None:
    log = tmp_path / "walk.csv"
    _write_log(log)
    cfg_path = tmp_path / "har.yaml"
    cfg_path.write_text("recognizer:\n  input_mode: tensor\n", encoding="utf-8")
    meta = tmp_path / "meta.json"
    meta.write_text(
        json.dumps(
            {
                "model_info": {"classes": ["A", "B"]},
                "preprocessing": {
                    "window_size": 10,
                    "normalization": {
                        "scaler_parameters": {"mean": [0, 0, 0, 0], "scale": [1, 1, 1, 1]}
                    },
                },
            }
        ),
        encoding="utf-8",
    )
    dump = tmp_path / "tensor.csv"

    main(
        [
            str(log),
            "--config",
            str(cfg_path),
            "--meta",
            str(meta),
            "--backend",
            "random",
            "--seed",
            "3",
            "--dump-csv",
            str(dump),
            "--log-level",
            "WARNING",
        ]
    )

    assert len(capsys.readouterr().out.splitlines()) == 3
    with dump.open(newline="", encoding="utf-8") as fh:
        rows = list(csv.reader(fh))
    assert rows[0][:2] == ["timestamp", "sample_index"]
    # Three cycles of ten tensor rows each.
    assert len(rows) == 1 + 3 * 10
