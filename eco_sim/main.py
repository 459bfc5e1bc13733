# eco_sim/main.py
from __future__ import annotations
import argparse
import dataclasses
import logging

from .sim.config import DEFAULT_CONFIG, ConfigError, SimConfig
from .sim.engine import SimulationEngine
from .sim.metrics import PopulationHistory, summarize, append_csv

TICK_DT = 1.0 / 60.0

def build_config(args: argparse.Namespace) -> SimConfig:
    pop = dataclasses.replace(
        DEFAULT_CONFIG.population,
        prey=args.prey, predators=args.predators, resources=args.resources,
    )
    world = dataclasses.replace(DEFAULT_CONFIG.world, seed=args.seed)
    return dataclasses.replace(DEFAULT_CONFIG, world=world, population=pop).validate()

def run_days(engine: SimulationEngine, days: int, csv_path: str = "", history: PopulationHistory = None):
    """Headless loop: tick until `days` days have elapsed or both species are gone."""
    engine.start()
    while engine.get_days() < days:
        day = engine.get_days()
        while engine.get_days() == day:
            engine.update(TICK_DT)
        row = summarize(engine)
        if history is not None:
            history.append(row)
        print(
            f"Day {row['day']:4d} | prey={row['prey']:4d} predators={row['predators']:3d} "
            f"resources={row['resources']:4d} "
            f"prey_str={row['prey_strength']:.2f} prey_stl={row['prey_stealth']:.2f} "
            f"pred_str={row['predator_strength']:.2f} pred_stl={row['predator_stealth']:.2f}"
            f"{'  BLOOM' if row['bloom'] else ''}"
        )
        if csv_path:
            append_csv(csv_path, row)
        if not engine.prey and not engine.predators:
            print("Both species extinct; stopping.")
            break
    engine.pause()
    return history

def run(argv=None):
    d = DEFAULT_CONFIG
    parser = argparse.ArgumentParser(description="Predator / prey / resource ecosystem simulation")
    parser.add_argument("--days", type=int, default=365)
    parser.add_argument("--seed", type=int, default=d.world.seed)
    parser.add_argument("--prey", type=int, default=d.population.prey)
    parser.add_argument("--predators", type=int, default=d.population.predators)
    parser.add_argument("--resources", type=int, default=d.population.resources)
    parser.add_argument("--csv", type=str, default="", help="append one row per day to this CSV")
    parser.add_argument("--plot", type=str, default="", help="save a population plot to this PNG")
    parser.add_argument("--ui", action="store_true", help="launch real-time UI")
    parser.add_argument("--log-level", type=str, default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        config = build_config(args)
    except ConfigError as e:
        parser.error(str(e))

    if args.ui:
        from .ui.app import run_ui
        run_ui(config, seed=args.seed)
        return

    engine = SimulationEngine(config, seed=args.seed)
    engine.initialize()
    history = run_days(engine, args.days, args.csv, PopulationHistory())

    for ev in engine.get_extinction_events():
        print(f"Extinction: {ev.kind} on day {ev.day} "
              f"(prey={ev.prey_count} predators={ev.predator_count} resources={ev.resource_count})")
    spawned = engine.get_total_spawned()
    print(f"Totals spawned: prey={spawned['prey']} predators={spawned['predators']} resources={spawned['resources']}")

    if args.plot:
        from .sim.visualize import plot_history
        plot_history(history, title=f"seed {args.seed}", path=args.plot)
        print(f"Saved {args.plot}")

if __name__ == "__main__":
    run()
