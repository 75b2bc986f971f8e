import asyncio

import httpx
import pytest

from covidstats.errors import (
    CountryNotFound,
    FetchError,
    InvalidInput,
    ServiceUnreachable,
    UnexpectedError,
)
from covidstats.providers.covid_api import NOT_FOUND_MESSAGE, CovidStatsFetcher
from covidstats.utils import FetcherConfig

BASE_URL = "http://stats.test/api/v1/stats"

CANADA = {
    "error": False,
    "statusCode": 200,
    "message": "OK",
    "data": {
        "lastChecked": "2023-03-10T04:21:03+00:00",
        "covid19Stats": [
            {"country": "Canada", "province": "Ontario", "confirmed": 5, "deaths": "NaN", "recovered": 2},
            {"country": "Canada", "province": "Quebec", "confirmed": 3, "deaths": 1, "recovered": "NaN"},
        ],
    },
}


def _fetcher(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CovidStatsFetcher(FetcherConfig(base_url=BASE_URL, timeout=1), client=client)


def test_fetch_stats_aggregates_provinces_and_normalizes_name():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=CANADA)

    result = asyncio.run(_fetcher(handler).fetch_stats("canada"))

    assert result.to_dict() == {
        "country": "Canada",
        "lastChecked": "2023-03-10T04:21:03+00:00",
        "confirmed": 8,
        "deaths": 1,
        "recovered": 2,
    }
    assert len(seen) == 1
    assert seen[0].method == "GET"
    assert seen[0].url.host == "stats.test"
    assert seen[0].url.params["country"] == "Canada"


def test_fetch_stats_percent_encodes_country():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=CANADA)

    asyncio.run(_fetcher(handler).fetch_stats("united kingdom"))

    assert "country=United%20Kingdom" in str(seen[0].url)
    assert seen[0].url.params["country"] == "United Kingdom"


@pytest.mark.parametrize("country", ["", None, 42, ["Nepal"]])
def test_invalid_input_fails_without_network_call(country):
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=CANADA)

    with pytest.raises(InvalidInput) as excinfo:
        asyncio.run(_fetcher(handler).fetch_stats(country))

    assert excinfo.value.message == "Invalid Input"
    assert calls == []


def test_not_found_sentinel_wins_over_data():
    body = {"message": NOT_FOUND_MESSAGE, "data": CANADA["data"]}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    with pytest.raises(CountryNotFound) as excinfo:
        asyncio.run(_fetcher(handler).fetch_stats("atlantis"))

    assert "spelled the name of the country correctly" in excinfo.value.message


def test_similar_message_is_not_treated_as_not_found():
    body = {"message": NOT_FOUND_MESSAGE.lower(), "data": CANADA["data"]}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    result = asyncio.run(_fetcher(handler).fetch_stats("canada"))
    assert result.confirmed == 8


def test_transport_failure_is_service_unreachable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Name or service not known", request=request)

    with pytest.raises(ServiceUnreachable) as excinfo:
        asyncio.run(_fetcher(handler).fetch_stats("Nepal"))

    assert "Cannot connect to the service" in excinfo.value.message
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_timeout_is_service_unreachable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ServiceUnreachable):
        asyncio.run(_fetcher(handler).fetch_stats("Nepal"))


def test_malformed_json_is_unexpected_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>Bad Gateway</html>")

    with pytest.raises(UnexpectedError):
        asyncio.run(_fetcher(handler).fetch_stats("Nepal"))


def test_unexpected_shape_carries_original_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"message": "OK", "data": {"covid19Stats": []}})

    with pytest.raises(UnexpectedError) as excinfo:
        asyncio.run(_fetcher(handler).fetch_stats("Nepal"))

    assert "lastChecked" in excinfo.value.message
    assert isinstance(excinfo.value.__cause__, KeyError)


@pytest.mark.parametrize("provinces", [["Canada", "Nepal"], [1], [["Canada", 5]]])
def test_non_object_province_records_are_unexpected_error(provinces):
    def handler(request: httpx.Request) -> httpx.Response:
        body = {"message": "OK", "data": {"lastChecked": "2023-03-10", "covid19Stats": provinces}}
        return httpx.Response(200, json=body)

    with pytest.raises(UnexpectedError) as excinfo:
        asyncio.run(_fetcher(handler).fetch_stats("canada"))

    assert isinstance(excinfo.value.__cause__, TypeError)


def test_fetch_many_reports_bad_payloads_per_country():
    def handler(request: httpx.Request) -> httpx.Response:
        body = {"message": "OK", "data": {"lastChecked": "2023-03-10", "covid19Stats": [1]}}
        return httpx.Response(200, json=body)

    outcomes = asyncio.run(_fetcher(handler).fetch_many(["canada", "nepal"]))

    assert len(outcomes) == 2
    assert all(isinstance(o, UnexpectedError) for o in outcomes)


def test_unencodable_country_is_unexpected_error_without_request():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=CANADA)

    with pytest.raises(UnexpectedError) as excinfo:
        asyncio.run(_fetcher(handler).fetch_stats("can\ud800ada"))

    assert isinstance(excinfo.value.__cause__, UnicodeEncodeError)
    assert calls == []


def test_repeated_calls_return_identical_results():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=CANADA)

    fetcher = _fetcher(handler)
    first = asyncio.run(fetcher.fetch_stats("canada"))
    second = asyncio.run(fetcher.fetch_stats("canada"))

    assert first == second


def test_fetch_many_keeps_input_order_and_returns_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["country"] == "Atlantis":
            return httpx.Response(200, json={"message": NOT_FOUND_MESSAGE, "data": {}})
        return httpx.Response(200, json=CANADA)

    outcomes = asyncio.run(_fetcher(handler).fetch_many(["canada", "atlantis", ""]))

    assert outcomes[0].confirmed == 8
    assert isinstance(outcomes[1], CountryNotFound)
    assert isinstance(outcomes[2], InvalidInput)
    assert all(isinstance(o, FetchError) for o in outcomes[1:])
