# eco_sim/sim/metrics.py
from __future__ import annotations
from collections import deque
from typing import Deque, Dict, List, Sequence
import os
import csv

import numpy as np

from .models import Creature, TRAITS


def _mean_energy_ratio(creatures: Sequence[Creature]) -> float:
    if not creatures:
        return 0.0
    return sum(c.energy_ratio() for c in creatures) / len(creatures)

def summarize(engine) -> Dict[str, float]:
    """Flat per-day row: counts, species trait means, energy, bloom flag and totals."""
    stats = engine.get_stats()
    spawned = engine.get_total_spawned()
    row = dict(
        day=engine.get_days(),
        prey=stats["prey_count"],
        predators=stats["predator_count"],
        resources=stats["resource_count"],
        prey_energy=_mean_energy_ratio(engine.prey),
        predator_energy=_mean_energy_ratio(engine.predators),
        bloom=int(engine.is_resource_bloom()),
    )
    for name in TRAITS:
        row[f"prey_{name}"] = stats["prey_attributes"][name]
    for name in TRAITS:
        row[f"predator_{name}"] = stats["predator_attributes"][name]
    row["spawned_prey"] = spawned["prey"]
    row["spawned_predators"] = spawned["predators"]
    row["spawned_resources"] = spawned["resources"]
    return row


class PopulationHistory:
    """Rolling window of day summaries."""
    def __init__(self, maxlen: int = 10_000):
        self.rows: Deque[Dict[str, float]] = deque(maxlen=maxlen)

    def append(self, row: Dict[str, float]) -> None:
        self.rows.append(row)

    def __len__(self) -> int:
        return len(self.rows)

    def as_arrays(self) -> Dict[str, np.ndarray]:
        if not self.rows:
            return {}
        keys: List[str] = list(self.rows[0].keys())
        return {k: np.asarray([r[k] for r in self.rows], dtype=float) for k in keys}


def append_csv(path: str, row: Dict[str, float]) -> None:
    d = os.path.dirname(path)
    if d:
        os.makedirs(d, exist_ok=True)
    write_header = not os.path.exists(path)
    with open(path, "a", newline="") as f:
        w = csv.DictWriter(f, fieldnames=list(row.keys()))
        if write_header:
            w.writeheader()
        w.writerow(row)
