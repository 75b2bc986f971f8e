from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class StatsRequest:
    country: str


@dataclass
class ProvinceStat:
    country: str | None
    province: str | None
    confirmed: Any = None
    deaths: Any = None
    recovered: Any = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ProvinceStat:
        if not isinstance(payload, dict):
            raise TypeError(f"Province record must be an object, got {type(payload).__name__}")
        return cls(
            country=payload.get("country"),
            province=payload.get("province"),
            confirmed=payload.get("confirmed"),
            deaths=payload.get("deaths"),
            recovered=payload.get("recovered"),
        )


@dataclass
class StatsResult:
    country: str | None
    last_checked: str | None
    confirmed: Any
    deaths: Any
    recovered: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "country": self.country,
            "lastChecked": self.last_checked,
            "confirmed": self.confirmed,
            "deaths": self.deaths,
            "recovered": self.recovered,
        }

    def to_csv_row(self) -> dict[str, Any]:
        return {
            "country": self.country,
            "last_checked": self.last_checked,
            "confirmed": self.confirmed,
            "deaths": self.deaths,
            "recovered": self.recovered,
        }
