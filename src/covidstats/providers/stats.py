from __future__ import annotations

import logging
from typing import Any

from covidstats.models import ProvinceStat, StatsResult
from covidstats.utils import is_number

logger = logging.getLogger(__name__)

STAT_FIELDS = ("confirmed", "deaths", "recovered")


class StatsAggregator:
    @staticmethod
    def aggregate(body: dict[str, Any]) -> StatsResult:
        """Build a national ``StatsResult`` from a decoded stats response.

        Countries reported per province are summed field by field, counting only
        numeric values. A single record is returned as the API sent it.
        """
        data = body["data"]
        last_checked = data["lastChecked"]
        provinces = [ProvinceStat.from_payload(item) for item in data["covid19Stats"]]
        if not provinces:
            raise ValueError("Response contains no province records")

        if len(provinces) == 1:
            only = provinces[0]
            return StatsResult(
                country=only.country,
                last_checked=last_checked,
                confirmed=only.confirmed,
                deaths=only.deaths,
                recovered=only.recovered,
            )

        totals = {name: _sum_numeric(provinces, name) for name in STAT_FIELDS}
        logger.debug("Aggregated %s provinces for %s", len(provinces), provinces[0].country)
        return StatsResult(country=provinces[0].country, last_checked=last_checked, **totals)


def _sum_numeric(provinces: list[ProvinceStat], field_name: str) -> int | float:
    total: int | float = 0
    for province in provinces:
        value = getattr(province, field_name)
        if is_number(value):
            total += value
    return total
