"""
Panel layout planning.

Wide murals are printed as several vertical panels, none wider than the
printer allows. The layout is a regular partition of the crop width.
"""
import math
from typing import List

from utils.numeric import is_positive_finite, round_half_up


def panel_count(width: float, panel_target: float, panel_max: float) -> int:
    """
    Number of panels for a wall width.

    Starts from the panel count closest to ``panel_target`` and adds panels
    until each one is at most ``panel_max`` wide.

    Args:
        width: Wall width (same unit as the panel widths)
        panel_target: Preferred panel width
        panel_max: Hard maximum panel width

    Returns:
        Panel count, 0 when the width is not positive

    Raises:
        ValueError: If panel_target or panel_max is not a positive number
    """
    if not is_positive_finite(panel_target) or not is_positive_finite(panel_max):
        raise ValueError(
            f"Panel widths must be positive (target={panel_target}, max={panel_max})"
        )
    if not is_positive_finite(width):
        return 0

    n = max(1, round_half_up(width / panel_target))
    # Skip straight to just below the smallest count that can fit.
    n = max(n, math.ceil(width / panel_max) - 1)
    while width / n > panel_max:
        n += 1
    return n


def plan_panels(width: float, panel_target: float, panel_max: float) -> List[float]:
    """
    Split positions for a wall width, as fractions of the crop width.

    Args:
        width: Wall width (same unit as the panel widths)
        panel_target: Preferred panel width
        panel_max: Hard maximum panel width

    Returns:
        n-1 evenly spaced fractions in (0, 1), left to right; empty for a
        single panel or a non-positive width
    """
    n = panel_count(width, panel_target, panel_max)
    if n <= 1:
        return []
    return [i / n for i in range(1, n)]


class PanelLayoutPlanner:
    """Panel planner bound to one printer's panel widths (inches)."""

    def __init__(self, panel_target: float, panel_max: float):
        if not is_positive_finite(panel_target) or not is_positive_finite(panel_max):
            raise ValueError(
                f"Panel widths must be positive (target={panel_target}, max={panel_max})"
            )
        self.panel_target = panel_target
        self.panel_max = panel_max

    def plan(self, width: float) -> List[float]:
        return plan_panels(width, self.panel_target, self.panel_max)

    def count(self, width: float) -> int:
        return panel_count(width, self.panel_target, self.panel_max)
