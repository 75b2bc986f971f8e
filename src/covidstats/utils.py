from __future__ import annotations

import csv
import json
import logging
import math
import os
import re
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://covid19-api.weedmark.systems/api/v1/stats"
# Latin-1 range as the API expects it; also admits × (U+00D7) and ÷ (U+00F7).
DEFAULT_LETTERS = "a-zÁ-ú"

# Characters encodeURIComponent leaves untouched besides alphanumerics.
URI_COMPONENT_SAFE = "-_.!~*'()"


def capitalize(phrase: str, min_length: int = 3, letters: str = DEFAULT_LETTERS) -> str:
    """Upper-case the first letter of every word of at least ``min_length`` letters.

    A word is a run of characters from ``letters`` (a regex character-class body)
    that starts on a word boundary. Shorter words such as "of" or "uk" are kept as is.
    """
    pattern = re.compile(rf"\b[{letters}]{{{min_length},}}")
    return pattern.sub(lambda m: m.group(0)[0].upper() + m.group(0)[1:], phrase)


def encode_country(name: str) -> str:
    return quote(name, safe=URI_COMPONENT_SAFE)


def is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def ensure_output_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def save_json(path: Path, data: dict | list) -> None:
    ensure_output_dir(path)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


@dataclass
class FetcherConfig:
    base_url: str = DEFAULT_API_URL
    timeout: float = 15

    @classmethod
    def from_env(cls) -> FetcherConfig:
        config = cls()
        base_url = os.getenv("COVID_STATS_API_URL")
        if base_url:
            config.base_url = base_url
        timeout = os.getenv("COVID_STATS_TIMEOUT")
        if timeout:
            try:
                config.timeout = float(timeout)
            except ValueError:
                logger.warning("Invalid COVID_STATS_TIMEOUT value: %s", timeout)
        return config


class CountryLoader:
    """Read country names from a CSV file with a ``country`` column."""

    def load(self, path: Path) -> list[str]:
        countries: list[str] = []
        with path.open("r", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            if not reader.fieldnames or "country" not in reader.fieldnames:
                raise ValueError(f"{path} has no 'country' column")
            for line_no, row in enumerate(reader, start=2):
                name = (row.get("country") or "").strip()
                if not name:
                    logger.warning("Skipping empty country on line %s of %s", line_no, path)
                    continue
                countries.append(name)
        return countries
