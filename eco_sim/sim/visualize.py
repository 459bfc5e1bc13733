# eco_sim/sim/visualize.py
from __future__ import annotations
from typing import Optional
import matplotlib.pyplot as plt

from .metrics import PopulationHistory
from .models import EntityKind

KIND_COLORS = {
    EntityKind.RESOURCE: "green",
    EntityKind.PREY: "tab:blue",
    EntityKind.PREDATOR: "tab:red",
}

def plot_history(history: PopulationHistory, title: str = "", path: Optional[str] = None):
    """Population counts on top, average strength/stealth per species below."""
    data = history.as_arrays()
    fig, ax = plt.subplots(2, 1, figsize=(10, 8), sharex=True)
    if not data:
        ax[0].set_title(title or "No data")
        return fig

    day = data["day"]
    ax[0].plot(day, data["prey"], color=KIND_COLORS[EntityKind.PREY], label="Prey")
    ax[0].plot(day, data["predators"], color=KIND_COLORS[EntityKind.PREDATOR], label="Predators")
    ax[0].plot(day, data["resources"], color=KIND_COLORS[EntityKind.RESOURCE], alpha=0.6, label="Resources")
    blooms = data["bloom"] > 0
    if blooms.any():
        ax[0].fill_between(day, 0, 1, where=blooms, transform=ax[0].get_xaxis_transform(),
                           color="gold", alpha=0.15, label="Bloom")
    ax[0].set_ylabel("Count")
    ax[0].legend(loc="best")
    ax[0].grid(alpha=0.25)

    for species, color in (("prey", KIND_COLORS[EntityKind.PREY]), ("predator", KIND_COLORS[EntityKind.PREDATOR])):
        ax[1].plot(day, data[f"{species}_strength"], color=color, label=f"{species} strength")
        ax[1].plot(day, data[f"{species}_stealth"], color=color, linestyle="--", label=f"{species} stealth")
    ax[1].set_ylim(0, 1)
    ax[1].set_xlabel("Day")
    ax[1].set_ylabel("Trait value")
    ax[1].legend(loc="best", ncols=2)
    ax[1].grid(alpha=0.25)

    fig.suptitle(title or "Population dynamics")
    fig.tight_layout()
    if path:
        fig.savefig(path, dpi=160)
        plt.close(fig)
    return fig
