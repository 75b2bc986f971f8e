from __future__ import annotations


class FetchError(Exception):
    """Base class for every failure surfaced by the stats fetcher."""

    default_message = "Failed to fetch statistics"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class InvalidInput(FetchError):
    default_message = "Invalid Input"


class CountryNotFound(FetchError):
    default_message = (
        "Country not found. Please make sure you spelled the name of the country correctly."
    )


class ServiceUnreachable(FetchError):
    default_message = "Cannot connect to the service. Make sure you're connected to the internet."


class UnexpectedError(FetchError):
    default_message = "Unexpected error while fetching statistics"
