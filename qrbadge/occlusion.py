"""Occlusion budget: how much of the symbol the badge hides vs. what the EC level recovers."""

from dataclasses import dataclass
from functools import lru_cache

import numpy as np

from qrbadge.encoder import ECC_RECOVERY, symbol_size
from qrbadge.errors import BadgeOcclusionTooLarge
from qrbadge.logging import audit, get_logger, trace

log = get_logger("occlusion")


@dataclass(frozen=True)
class OcclusionBudget:
    """Badge occlusion analysis for one grid."""

    span: float
    margin: int
    ecc: str
    modules: int
    occluded_modules: int
    fraction: float
    recovery: float

    @property
    def safe(self) -> bool:
        return self.fraction <= self.recovery

    @property
    def budget_used_pct(self) -> float:
        return self.fraction / self.recovery * 100

    def summary(self) -> str:
        side = int(round(self.span)) - 2 * self.margin
        return (
            f"Occlusion budget (EC {self.ecc}, grid {side}x{side}):\n"
            f"  Badge touches: {self.occluded_modules}/{self.modules} modules ({self.fraction:.1%})\n"
            f"  EC recovers:   {self.recovery:.0%}  ({self.budget_used_pct:.1f}% of budget)\n"
            f"  Status: {'SAFE' if self.safe else 'OVER BUDGET'}"
        )


def occluded_module_count(span: float, margin: int, diameter: float) -> tuple[int, int]:
    """Count symbol modules whose cell intersects the centered badge circle.

    Returns (occluded, total). Quiet-zone cells are not counted; a cell
    counts as soon as any part of it lies under the circle.
    """
    side = int(round(span)) - 2 * margin
    if side <= 0:
        return 0, 0
    centre = span / 2
    radius = diameter / 2
    lo = np.arange(side, dtype=float) + margin
    # distance from the centre to the nearest point of each cell, per axis
    d = np.maximum(np.maximum(lo - centre, centre - (lo + 1)), 0.0)
    dist2 = d[:, None] ** 2 + d[None, :] ** 2
    return int(np.count_nonzero(dist2 < radius ** 2)), side * side


@trace
def compute_occlusion_budget(span: float, margin: int, badge_ratio: float, ec_level: str) -> OcclusionBudget:
    """Occlusion budget for a badge of ``badge_ratio * span`` on one grid."""
    ec_level = ec_level.upper()
    occluded, total = occluded_module_count(span, margin, badge_ratio * span)
    budget = OcclusionBudget(
        span=span,
        margin=margin,
        ecc=ec_level,
        modules=total,
        occluded_modules=occluded,
        fraction=occluded / total if total else 1.0,
        recovery=ECC_RECOVERY[ec_level],
    )
    audit("occlusion.budget", logger=log,
          span=span, ecc=ec_level, occluded=occluded, modules=total,
          fraction=f"{budget.fraction:.1%}", safe=budget.safe)
    return budget


@lru_cache(maxsize=64)
def worst_case_occlusion(badge_ratio: float, margin: int, version: int | None = None) -> float:
    """Largest occluded fraction over every reachable QR version.

    With *version* pinned only that grid is considered.
    """
    versions = [version] if version else range(1, 41)
    worst = 0.0
    for v in versions:
        span = symbol_size(v) + 2 * margin
        occluded, total = occluded_module_count(span, margin, badge_ratio * span)
        worst = max(worst, occluded / total)
    return worst


def check_occlusion(badge_ratio: float, margin: int, ec_level: str, version: int | None = None) -> float:
    """Raise BadgeOcclusionTooLarge unless every reachable grid stays within budget."""
    ec_level = ec_level.upper()
    fraction = worst_case_occlusion(badge_ratio, margin, version)
    recovery = ECC_RECOVERY[ec_level]
    if fraction > recovery:
        raise BadgeOcclusionTooLarge(fraction, recovery, ec_level)
    return fraction


def max_badge_ratio(margin: int, ec_level: str, version: int | None = None, step: float = 0.005) -> float:
    """Largest badge ratio (to *step*) that fits the EC budget; 0.0 if none does."""
    recovery = ECC_RECOVERY[ec_level.upper()]
    ratio = 0.0
    candidate = step
    while candidate < 1.0 and worst_case_occlusion(round(candidate, 4), margin, version) <= recovery:
        ratio = round(candidate, 4)
        candidate += step
    return ratio
