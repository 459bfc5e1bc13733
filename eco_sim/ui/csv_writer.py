# eco_sim/ui/csv_writer.py
from __future__ import annotations
import csv
import os
import uuid
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..sim.models import Creature, TRAITS


class DailyCsvLogger:
    """
    Append day-level UI stats to CSV files *when a day flips* in the UI.
    - overall_path:  runs/ui_daily.csv          (one row per day)
    - species_path:  runs/ui_species_daily.csv  (one row per species per day, optional)
    Each run gets its own session_id so logs from several runs can share a file.

    Usage from UI loop:
        logger = DailyCsvLogger()
        ...
        if engine.get_days() != last_day:
            logger.append_day(engine)
    """
    QUANTILES = (("min", 0.0), ("q25", 0.25), ("median", 0.5), ("q75", 0.75), ("max", 1.0))

    def __init__(self,
                 overall_path: str = "runs/ui_daily.csv",
                 species_path: str = "runs/ui_species_daily.csv",
                 enable_species: bool = True):
        self.overall_path = overall_path
        self.species_path = species_path
        self.enable_species = enable_species
        self.session_id = uuid.uuid4().hex[:8]

        self._overall_header = [
            "session_id", "day", "prey", "predators", "resources", "bloom",
            "prey_spawned", "predators_spawned", "resources_spawned", "extinctions", "notes",
        ]
        self._species_header = ["session_id", "day", "species", "n", "ready", "avg_energy_ratio"]
        for name in TRAITS:
            self._species_header.append(f"avg_{name}")
        for name in ("strength", "stealth"):
            self._species_header += [f"{name}_{q}" for q, _ in self.QUANTILES]

        self._init_file(self.overall_path, self._overall_header)
        if self.enable_species:
            self._init_file(self.species_path, self._species_header)

    @staticmethod
    def _init_file(path: Optional[str], header: List[str]) -> None:
        if not path:
            return
        d = os.path.dirname(path)
        if d:
            os.makedirs(d, exist_ok=True)
        if not os.path.exists(path):
            with open(path, "w", newline="") as f:
                csv.DictWriter(f, fieldnames=header).writeheader()

    # ---------------- internal helpers ----------------
    @staticmethod
    def _avg(xs: Sequence[float]) -> float:
        return float(np.mean(xs)) if len(xs) else float("nan")

    @classmethod
    def _quantiles(cls, prefix: str, xs: Sequence[float]) -> Dict[str, float]:
        if not len(xs):
            return {f"{prefix}_{q}": float("nan") for q, _ in cls.QUANTILES}
        qs = np.quantile(np.asarray(xs, dtype=float), [p for _, p in cls.QUANTILES])
        return {f"{prefix}_{q}": float(v) for (q, _), v in zip(cls.QUANTILES, qs)}

    def _overall_row(self, engine, notes: Optional[str]) -> Dict:
        stats = engine.get_stats()
        spawned = engine.get_total_spawned()
        return dict(
            session_id=self.session_id,
            day=engine.get_days(),
            prey=stats["prey_count"],
            predators=stats["predator_count"],
            resources=stats["resource_count"],
            bloom=int(engine.is_resource_bloom()),
            prey_spawned=spawned["prey"],
            predators_spawned=spawned["predators"],
            resources_spawned=spawned["resources"],
            extinctions=len(engine.get_extinction_events()),
            notes=(notes or ""),
        )

    def _species_row(self, day: int, species: str, members: Sequence[Creature]) -> Dict:
        row = dict(
            session_id=self.session_id, day=day, species=species,
            n=len(members),
            ready=sum(1 for c in members if c.can_reproduce()),
            avg_energy_ratio=self._avg([c.energy_ratio() for c in members]),
        )
        for name in TRAITS:
            row[f"avg_{name}"] = self._avg([getattr(c.attributes, name) for c in members])
        for name in ("strength", "stealth"):
            row.update(self._quantiles(name, [getattr(c.attributes, name) for c in members]))
        return row

    # ---------------- public API ----------------
    def append_day(self, engine, notes: Optional[str] = None) -> None:
        """Append one overall row and, if enabled, one row per species."""
        if self.overall_path:
            with open(self.overall_path, "a", newline="") as f:
                w = csv.DictWriter(f, fieldnames=self._overall_header)
                w.writerow(self._overall_row(engine, notes))

        if self.enable_species and self.species_path:
            if not os.path.exists(self.species_path):
                self._init_file(self.species_path, self._species_header)
            day = engine.get_days()
            with open(self.species_path, "a", newline="") as f:
                w = csv.DictWriter(f, fieldnames=self._species_header)
                w.writerow(self._species_row(day, "prey", engine.prey))
                w.writerow(self._species_row(day, "predator", engine.predators))
