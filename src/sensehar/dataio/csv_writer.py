"""CSV writing helpers for feature and tensor dumps."""

import csv
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence


def write_rows(path: Path, headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    """
    Write a header row and all data rows to a CSV file.

    Directories are created as needed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(headers)
        writer.writerows(rows)


def feature_rows(
    records: Iterable[tuple[float, Mapping[str, float]]],
    feature_order: Sequence[str],
) -> Iterable[list[Any]]:
    """Yield ``[window_end, *features]`` rows in ``feature_order``."""
    for window_end, features in records:
        yield [window_end, *(features.get(name, 0.0) for name in feature_order)]
