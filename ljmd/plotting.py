"""
Built-in plotting utilities for energy logs.

Accepts either an energy log path, the dictionary returned by
``read_energy_log`` or the result of ``EnergyAnalyzer.result()``.

Example:
    >>> from ljmd import plotting
    >>> plotting.energy("argon_108.dat", timestep=5.0, show=False)
    >>> plotting.save("energy.png")
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np

from .analysis.energy import read_energy_log, relative_drift

# Try to import matplotlib, but don't fail if not available
try:
    import matplotlib.pyplot as plt

    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False
    plt = None


def _check_matplotlib():
    """Check if matplotlib is available."""
    if not HAS_MATPLOTLIB:
        raise ImportError(
            "matplotlib is required for plotting. "
            "Install it with: pip install ljmd[plot]"
        )


def _load(log: str | Path | dict[str, Any]) -> dict[str, Any]:
    if isinstance(log, (str, Path)):
        return read_energy_log(log)
    return log


def _time_axis(data: dict[str, Any], timestep: float | None):
    steps = np.asarray(data["step"])
    if timestep is None:
        return steps, "Step"
    return steps * timestep, "Time (fs)"


def energy(
    log: str | Path | dict[str, Any],
    timestep: float | None = None,
    show: bool = True,
    figsize: tuple[float, float] = (10, 6),
) -> None:
    """
    Plot energy time series.

    Shows kinetic, potential, and total energy, and the relative error of
    the total energy.

    Args:
        log: Energy log path or energy dictionary.
        timestep: Timestep in fs; the x axis shows steps when omitted.
        show: Whether to display the plot immediately.
        figsize: Figure size (width, height) in inches.
    """
    _check_matplotlib()
    data = _load(log)
    x, xlabel = _time_axis(data, timestep)
    total = np.asarray(data["total"])

    fig, axes = plt.subplots(1, 2, figsize=figsize)

    ax = axes[0]
    ax.plot(x, data["kinetic"], "b-", label="Kinetic", alpha=0.7, lw=0.8)
    ax.plot(x, data["potential"], "r-", label="Potential", alpha=0.7, lw=0.8)
    ax.plot(x, total, "k-", label="Total", lw=1.5)
    ax.set_xlabel(xlabel)
    ax.set_ylabel("Energy (kcal/mol)")
    ax.set_title("Energy")
    ax.legend()
    ax.grid(True, alpha=0.3)

    ax = axes[1]
    if len(total) > 0:
        e0 = total[0]
        rel_error = (total - e0) / abs(e0) * 100 if e0 != 0 else total * 0
        ax.plot(x, rel_error, "k-", lw=1)
        ax.axhline(y=0, color="r", linestyle="--", alpha=0.5)
    ax.set_xlabel(xlabel)
    ax.set_ylabel("Relative Energy Error (%)")
    ax.set_title(f"Energy Conservation (drift: {relative_drift(total):.2e})")
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    if show:
        plt.show()


def temperature(
    log: str | Path | dict[str, Any],
    timestep: float | None = None,
    show: bool = True,
    figsize: tuple[float, float] = (10, 4),
) -> None:
    """
    Plot temperature time series with its mean.

    Args:
        log: Energy log path or energy dictionary.
        timestep: Timestep in fs; the x axis shows steps when omitted.
        show: Whether to display the plot immediately.
        figsize: Figure size (width, height) in inches.
    """
    _check_matplotlib()
    data = _load(log)
    x, xlabel = _time_axis(data, timestep)
    temp = np.asarray(data["temperature"])

    fig, ax = plt.subplots(figsize=figsize)
    ax.plot(x, temp, "b-", alpha=0.7, lw=0.5)
    if len(temp) > 0:
        ax.axhline(
            y=temp.mean(),
            color="r",
            linestyle="--",
            lw=2,
            label=f"Mean T = {temp.mean():.2f} K",
        )
        ax.legend()

    ax.set_xlabel(xlabel)
    ax.set_ylabel("Temperature (K)")
    ax.set_title("Temperature")
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    if show:
        plt.show()


def save(filename: str | Path, dpi: int = 150) -> None:
    """
    Save the current figure to a file.

    Args:
        filename: Output filename (e.g., "plot.png", "plot.pdf").
        dpi: Resolution in dots per inch.
    """
    _check_matplotlib()
    plt.savefig(filename, dpi=dpi, bbox_inches="tight")
    print(f"Saved plot to {filename}")


def show() -> None:
    """Display all pending plots."""
    _check_matplotlib()
    plt.show()
