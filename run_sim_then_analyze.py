#!/usr/bin/env python3
"""
One-shot runner:
  1) Run the simulation: the UI (blocks until you close it) or, with --headless, a fixed number of days
  2) Analyze only the session just produced

Usage:
  python run_sim_then_analyze.py --outdir reports --tag demo
  python run_sim_then_analyze.py --headless --days 400 --seed 7
"""
import argparse
import subprocess
import sys
import os
import csv

def get_latest_session_id(overall_path: str) -> str | None:
    if not os.path.exists(overall_path):
        return None
    last_sid = None
    with open(overall_path, newline="") as f:
        for row in csv.DictReader(f):
            sid = row.get("session_id")
            if sid:
                last_sid = sid
    return last_sid

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--overall", default="runs/ui_daily.csv")
    ap.add_argument("--species", default="runs/ui_species_daily.csv")
    ap.add_argument("--outdir", default="reports")
    ap.add_argument("--tag", default="")
    ap.add_argument("--headless", action="store_true", help="skip the UI and run eco_sim.main for --days")
    ap.add_argument("--days", type=int, default=365)
    ap.add_argument("--seed", type=int, default=42)
    args = ap.parse_args()

    if args.headless:
        # a fresh file per run stands in for a session id
        overall = os.path.join("runs", f"headless_seed{args.seed}.csv")
        if os.path.exists(overall):
            os.remove(overall)
        sim_cmd = [sys.executable, "-m", "eco_sim.main", "--days", str(args.days),
                   "--seed", str(args.seed), "--csv", overall]
        print("[launcher] Running:", " ".join(sim_cmd))
        ret = subprocess.call(sim_cmd)
        if ret != 0:
            print(f"[launcher] simulation exited with code {ret}", file=sys.stderr)
            sys.exit(ret)
        ana_cmd = [sys.executable, "analyze_run_csv.py", "--overall", overall, "--species", "",
                   "--outdir", args.outdir, "--tag", args.tag]
        print("[launcher] Running:", " ".join(ana_cmd))
        sys.exit(subprocess.call(ana_cmd))

    # 1) Run the UI
    ui_cmd = [sys.executable, "-m", "eco_sim.main", "--ui", "--seed", str(args.seed)]
    print("[launcher] Starting UI:", " ".join(ui_cmd))
    ret = subprocess.call(ui_cmd)
    if ret != 0:
        print(f"[launcher] UI exited with code {ret}", file=sys.stderr)

    # 2) Resolve latest session_id
    sid = get_latest_session_id(args.overall)
    if not sid:
        print("[launcher] No session_id found in overall CSV; maybe no day completed yet?")
        sys.exit(0)

    # 3) Analyze only this session
    ana_cmd = [
        sys.executable, "analyze_run_csv.py",
        "--overall", args.overall,
        "--species", args.species,
        "--outdir", args.outdir,
        "--tag", args.tag,
        "--session", sid
    ]
    print("[launcher] Analyzing session:", sid)
    print("[launcher] Running:", " ".join(ana_cmd))
    sys.exit(subprocess.call(ana_cmd))

if __name__ == "__main__":
    main()
