#!/usr/bin/env python3
"""
Analyze the day CSVs written by DailyCsvLogger (UI) or `eco_sim.main --csv` (headless).

Features:
  - --session latest|<id> filters UI logs to a single run (so you never need to delete runs/)
  - Saves timestamped CSV exports and PNG plots under --outdir
  - Overall plot:
      (1) prey, predators and resources per day, bloom days shaded
      (2) prey vs predator phase plot
  - Species plot:
      (1) avg strength & stealth per species, with the q25..q75 band
      (2) avg energy ratio per species
Usage examples:
  python analyze_run_csv.py --overall runs/ui_daily.csv \
                            --species runs/ui_species_daily.csv \
                            --outdir reports \
                            --tag demo \
                            --session latest
"""
import argparse
import os
import sys
import time
import pandas as pd

# Use non-interactive backend for headless operation
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

SPECIES_COLORS = {"prey": "tab:blue", "predator": "tab:red"}


# ------------------------- utilities -------------------------
def ensure_dir(p: str) -> None:
    os.makedirs(p, exist_ok=True)

def timestamp(tag: str | None = None) -> str:
    t = time.strftime("%Y%m%d_%H%M%S")
    return f"{t}__{tag}" if tag else t

def exists(path: str | None) -> bool:
    return bool(path and os.path.exists(path))


# ------------------------- loading ---------------------------
def load_csvs(overall_path: str, species_path: str | None):
    if not exists(overall_path):
        print(
            "\n[ERROR] Overall CSV not found.\n"
            f"  Expected: {overall_path}\n"
            "Hints:\n"
            "  • Run the UI until at least one day completes.\n"
            "  • Or run `python -m eco_sim.main --csv runs/headless.csv` first.\n",
            file=sys.stderr
        )
        sys.exit(1)

    df_overall = normalize_overall(pd.read_csv(overall_path))
    df_species = pd.read_csv(species_path) if (species_path and exists(species_path)) else None
    return df_overall, df_species


def normalize_overall(df: pd.DataFrame) -> pd.DataFrame:
    """Headless rows name counts the same way; map spawned_* to the UI column names."""
    return df.rename(columns={
        "spawned_prey": "prey_spawned",
        "spawned_predators": "predators_spawned",
        "spawned_resources": "resources_spawned",
    })


def _latest_session_id(df: pd.DataFrame) -> str | None:
    """Return the last session_id in file order (used by --session latest)."""
    if "session_id" not in df.columns or len(df) == 0:
        return None
    s = df["session_id"].dropna()
    return s.iloc[-1] if len(s) else None


# ------------------------- plotting --------------------------
def plot_overall(df_overall: pd.DataFrame, outdir: str, tag: str | None):
    ensure_dir(outdir)
    d = clean_overall(df_overall)
    fig, ax = plt.subplots(2, 1, figsize=(10, 10))

    # -------- (1) counts over time --------
    ax[0].plot(d["day"], d["prey"], color=SPECIES_COLORS["prey"], label="Prey", linewidth=2.0)
    ax[0].plot(d["day"], d["predators"], color=SPECIES_COLORS["predator"], label="Predators", linewidth=2.0)
    if "resources" in d.columns:
        ax[0].plot(d["day"], d["resources"], color="green", alpha=0.6, label="Resources")
    if "bloom" in d.columns and (d["bloom"] > 0).any():
        ax[0].fill_between(d["day"], 0, 1, where=d["bloom"] > 0, transform=ax[0].get_xaxis_transform(),
                           color="gold", alpha=0.15, label="Bloom")
    ax[0].set_xlabel("Day")
    ax[0].set_ylabel("Count")
    ax[0].legend(loc="best")
    ax[0].grid(alpha=0.25)

    # -------- (2) phase plot --------
    ax[1].plot(d["prey"], d["predators"], color="black", linewidth=1.0)
    if len(d):
        ax[1].scatter(d["prey"].iloc[0], d["predators"].iloc[0], color="tab:green", label="start", zorder=3)
        ax[1].scatter(d["prey"].iloc[-1], d["predators"].iloc[-1], color="tab:red", label="end", zorder=3)
    ax[1].set_xlabel("Prey")
    ax[1].set_ylabel("Predators")
    ax[1].legend(loc="best")
    ax[1].grid(alpha=0.25)

    fig.tight_layout()
    png = os.path.join(outdir, f"overall_trends_{timestamp(tag)}.png")
    fig.savefig(png, dpi=160)
    plt.close(fig)
    print(f"[OK] Saved {png}")


def plot_species(df_species: pd.DataFrame, outdir: str, tag: str | None):
    if df_species is None or len(df_species) == 0:
        print("[INFO] No species CSV provided or rows = 0; skipping per-species plots.")
        return

    d = clean_species(df_species)
    fig, ax = plt.subplots(2, 1, figsize=(10, 9), sharex=True)
    for species, sub in d.groupby("species"):
        color = SPECIES_COLORS.get(species, "gray")
        ax[0].plot(sub["day"], sub["avg_strength"], color=color, label=f"{species} strength")
        ax[0].plot(sub["day"], sub["avg_stealth"], color=color, linestyle="--", label=f"{species} stealth")
        if {"strength_q25", "strength_q75"} <= set(sub.columns):
            ax[0].fill_between(sub["day"], sub["strength_q25"], sub["strength_q75"], color=color, alpha=0.12)
        if "avg_energy_ratio" in sub.columns:
            ax[1].plot(sub["day"], sub["avg_energy_ratio"], color=color, label=species)

    ax[0].set_ylim(0, 1)
    ax[0].set_ylabel("Trait value")
    ax[0].legend(loc="best", ncols=2)
    ax[0].grid(alpha=0.25)
    ax[1].set_ylim(0, 1)
    ax[1].set_xlabel("Day")
    ax[1].set_ylabel("Energy / max")
    ax[1].legend(loc="best")
    ax[1].grid(alpha=0.25)

    fig.tight_layout()
    png = os.path.join(outdir, f"species_traits_{timestamp(tag)}.png")
    fig.savefig(png, dpi=160)
    plt.close(fig)
    print(f"[OK] Saved {png}")


# ------------------------- exports ---------------------------
def export_csv(df: pd.DataFrame, outdir: str, base: str, tag: str | None) -> str:
    ensure_dir(outdir)
    path = os.path.join(outdir, f"{base}_{timestamp(tag)}.csv")
    df.to_csv(path, index=False)
    print(f"[OK] Wrote {path}")
    return path


def clean_overall(df_overall: pd.DataFrame) -> pd.DataFrame:
    d = df_overall.copy()
    keep = [c for c in ("prey", "predators", "resources", "bloom",
                        "prey_spawned", "predators_spawned", "resources_spawned", "extinctions")
            if c in d.columns]
    for col in ["day"] + keep:
        d[col] = pd.to_numeric(d[col], errors="coerce")
    # If multiple sessions are present, average by day
    if "session_id" in d.columns:
        d = d.groupby("day", as_index=False)[keep].mean()
    return d.sort_values("day")


def clean_species(df_species: pd.DataFrame | None) -> pd.DataFrame:
    if df_species is None or len(df_species) == 0:
        return pd.DataFrame()
    d = df_species.copy()
    keep = [c for c in d.columns if c not in ("session_id", "day", "species")]
    for col in ["day"] + keep:
        d[col] = pd.to_numeric(d[col], errors="coerce")
    d = d.groupby(["species", "day"], as_index=False)[keep].mean()
    return d.sort_values(["species", "day"])


def summarize_extinctions(df_overall: pd.DataFrame) -> None:
    d = clean_overall(df_overall)
    for col, label in (("prey", "Prey"), ("predators", "Predators")):
        gone = d[d[col] == 0]
        if len(gone):
            print(f"[INFO] {label} first at zero on day {int(gone['day'].iloc[0])}")


# ------------------------- main ------------------------------
def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--overall", type=str, default="runs/ui_daily.csv",
                    help="Path to the per-day CSV (UI or headless)")
    ap.add_argument("--species", type=str, default="runs/ui_species_daily.csv",
                    help="Path to per-species daily CSV (pass '' to disable)")
    ap.add_argument("--outdir", type=str, default="reports",
                    help="Output directory for plots and exported CSVs")
    ap.add_argument("--tag", type=str, default="",
                    help="Optional label to append to filenames (e.g., 'lowfood')")
    ap.add_argument("--session", type=str, default="",
                    help="Session ID to analyze; use 'latest' to pick the most recent session automatically.")
    args = ap.parse_args()

    df_overall_raw, df_species_raw = load_csvs(args.overall, args.species if args.species else None)
    df_overall = df_overall_raw.copy()
    df_species = df_species_raw.copy() if df_species_raw is not None else None

    if args.session:
        if "session_id" not in df_overall.columns:
            print("[WARN] --session provided but overall CSV has no session_id; ignoring.")
        else:
            sid = args.session
            if sid == "latest":
                sid = _latest_session_id(df_overall_raw)
            if sid:
                df_overall = df_overall[df_overall["session_id"] == sid].copy()
                if df_species is not None and "session_id" in df_species.columns:
                    df_species = df_species[df_species["session_id"] == sid].copy()
                print(f"[OK] Filtering analysis to session_id={sid}")
            else:
                print("[WARN] Could not resolve latest session_id; analyzing all data.")

    print(f"[INFO] Overall rows after filter: {len(df_overall)}")
    tag = args.tag or None
    export_csv(clean_overall(df_overall), args.outdir, base="overall_summary", tag=tag)
    summarize_extinctions(df_overall)
    plot_overall(df_overall, args.outdir, tag=tag)

    if df_species is not None and len(df_species) > 0:
        export_csv(clean_species(df_species), args.outdir, base="species_summary", tag=tag)
        plot_species(df_species, args.outdir, tag=tag)
    else:
        print("[INFO] No per-species rows to plot; skipping species plots.")

    print(f"\nDone. Outputs are in: {args.outdir}")

if __name__ == "__main__":
    main()
