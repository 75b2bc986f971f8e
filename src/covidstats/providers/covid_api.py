from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

import httpx

from covidstats.errors import (
    CountryNotFound,
    FetchError,
    InvalidInput,
    ServiceUnreachable,
    UnexpectedError,
)
from covidstats.models import StatsRequest, StatsResult
from covidstats.providers.stats import StatsAggregator
from covidstats.utils import FetcherConfig, capitalize, encode_country

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = (
    "Country not found. Returning all stats. "
    "Please use a country name found in the data property."
)


class CovidStatsFetcher:
    """Async client for the covid19-api stats endpoint.

    Every call is independent: pass ``client`` to share a connection pool (or a
    mock transport in tests), otherwise a client is opened and closed per call.
    """

    def __init__(
        self, config: FetcherConfig | None = None, client: httpx.AsyncClient | None = None
    ) -> None:
        self.config = config or FetcherConfig()
        self.client = client

    async def fetch_stats(self, country: Any) -> StatsResult:
        if not isinstance(country, str) or not country:
            raise InvalidInput()
        request = StatsRequest(country=country)

        try:
            url = self.build_url(request)
        except UnicodeEncodeError as exc:
            raise UnexpectedError(str(exc)) from exc
        logger.debug("Requesting %s", url)
        if self.client is not None:
            body = await self._get_json(self.client, url)
        else:
            async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                body = await self._get_json(client, url)

        if isinstance(body, dict) and body.get("message") == NOT_FOUND_MESSAGE:
            logger.warning("Country not recognised by the API: %s", request.country)
            raise CountryNotFound()

        try:
            return StatsAggregator.aggregate(body)
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("Unexpected stats payload for %s: %s", request.country, exc)
            raise UnexpectedError(str(exc)) from exc

    async def fetch_many(self, countries: Iterable[Any]) -> list[StatsResult | FetchError]:
        results = await asyncio.gather(
            *(self.fetch_stats(country) for country in countries), return_exceptions=True
        )
        for item in results:
            if isinstance(item, BaseException) and not isinstance(item, FetchError):
                raise item
        return list(results)

    def build_url(self, request: StatsRequest) -> str:
        encoded = encode_country(capitalize(request.country))
        return f"{self.config.base_url}?country={encoded}"

    async def _get_json(self, client: httpx.AsyncClient, url: str) -> Any:
        try:
            response = await client.get(url, timeout=self.config.timeout)
        except httpx.TransportError as exc:
            logger.warning("Stats service unreachable: %s", exc)
            raise ServiceUnreachable() from exc
        except httpx.HTTPError as exc:
            raise UnexpectedError(str(exc)) from exc
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("Invalid JSON from stats service (HTTP %s)", response.status_code)
            raise UnexpectedError(str(exc)) from exc
