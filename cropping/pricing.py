"""
Area-based pricing.

Rates are per square foot in minor currency units (cents). A selection
with no configured rate is reported as such instead of costing zero.
"""
import logging
import math
from typing import Dict, Iterator, Optional

from core.models import PriceQuote
from utils.numeric import coerce_non_negative, round_half_up

logger = logging.getLogger(__name__)


def quote(area_sqft: float, rate: Optional[float]) -> PriceQuote:
    """
    Price a wall area.

    Args:
        area_sqft: Area in square feet; negative values count as 0
        rate: Minor currency units per square foot, or None when the
            active selection has no price

    Returns:
        PriceQuote with the total rounded half-up to a whole minor unit
    """
    area = coerce_non_negative(area_sqft)
    if rate is None:
        return PriceQuote(area_sqft=area, total_cost=0, rate_available=False, rate=None)

    return PriceQuote(
        area_sqft=area,
        total_cost=round_half_up(rate * area),
        rate_available=True,
        rate=rate
    )


class RateTable:
    """
    Per-selection rates (selection key -> minor units per square foot).

    Keys are the product variant identifiers the storefront sends.
    """

    def __init__(self, rates: Optional[Dict[str, float]] = None):
        self._rates: Dict[str, float] = {}
        for key, rate in (rates or {}).items():
            self.set_rate(key, rate)

    @classmethod
    def parse(cls, text: str) -> 'RateTable':
        """
        Parse rates from the "key:cents,key:cents" format.

        Malformed pairs are skipped with a warning.

        Args:
            text: Comma-separated key:rate pairs

        Returns:
            RateTable with the valid pairs
        """
        table = cls()
        for pair in (text or '').split(','):
            pair = pair.strip()
            if not pair:
                continue
            key, sep, value = pair.partition(':')
            key, value = key.strip(), value.strip()
            if not sep or not key or not value:
                logger.warning("Skipping malformed rate entry: %r", pair)
                continue
            try:
                table.set_rate(key, float(value))
            except ValueError as e:
                logger.warning("Skipping rate entry %r: %s", pair, e)
        return table

    def set_rate(self, key: str, rate: float):
        """Add or replace the rate for ``key``."""
        rate = float(rate)
        if not math.isfinite(rate) or rate < 0:
            raise ValueError(f"Rate must be a non-negative number, got {rate}")
        self._rates[str(key)] = int(rate) if rate.is_integer() else rate

    def get_rate(self, key: Optional[str]) -> Optional[float]:
        """Rate for ``key``, or None when no price is configured."""
        if key is None:
            return None
        return self._rates.get(str(key))

    def __contains__(self, key) -> bool:
        return str(key) in self._rates

    def __len__(self) -> int:
        return len(self._rates)

    def __iter__(self) -> Iterator[str]:
        return iter(self._rates)
