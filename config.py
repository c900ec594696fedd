from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class NeighbourhoodConfig:
    hood_size: int = 5                      # neighbours generated per exploration round
    starting_sd: float = 0.5                # initial sd of every Distribution (in index units)
    sd_increment_proportion: float = 0.05   # loosen/tighten step as a fraction of range size
    give_up: int = 10                       # tabu redraws tolerated before loosening


@dataclass
class ConvergenceConfig:
    # Length of each thread's recent-score window; the window must be full
    # before the statistical convergence test is attempted.
    window: int = 10
    significance: float = 0.05


@dataclass
class BacktrackConfig:
    # Backtrack when iterations_since_best / backtrack_count >= cutoff * hood_size
    cutoff: float = 2.0


@dataclass
class TabuSearchConfig:
    threads: int = 1
    seed: Optional[int] = None
    mode: str = "parallel"                  # "parallel" or "adaptive"
    # Sub-configs (use defaults if not set)
    neighbourhood: NeighbourhoodConfig = field(default_factory=NeighbourhoodConfig)
    convergence: ConvergenceConfig = field(default_factory=ConvergenceConfig)
    backtrack: BacktrackConfig = field(default_factory=BacktrackConfig)

    @property
    def bonferroni_level(self) -> float:
        """Per-comparison significance level, adjusted for the number of threads."""
        return self.convergence.significance / self.threads
