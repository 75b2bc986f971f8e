from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import pandas as pd
import typer

from covidstats.errors import FetchError
from covidstats.excel import StatsWorkbook
from covidstats.models import StatsResult
from covidstats.providers.covid_api import CovidStatsFetcher
from covidstats.utils import CountryLoader, FetcherConfig, ensure_output_dir, save_json

app = typer.Typer(help="COVID-19 statistics per country")
logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
logger = logging.getLogger(__name__)


@app.command()
def stats(  # noqa: B008
    country: str = typer.Argument(..., help="Country name, e.g. 'united kingdom'"),
    output: Path | None = typer.Option(None, help="Also save the result as JSON"),  # noqa: B008
):
    """Fetch confirmed cases, deaths and recoveries for a single country."""
    fetcher = _build_fetcher()
    try:
        result = asyncio.run(fetcher.fetch_stats(country))
    except FetchError as exc:
        typer.echo(exc.message, err=True)
        raise typer.Exit(code=1) from exc
    if output:
        save_json(output, result.to_dict())
    typer.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))


@app.command()
def report(  # noqa: B008
    countries_csv: Path = typer.Argument(..., help="CSV with a 'country' column"),  # noqa: B008
    output: Path = typer.Option(Path("outputs/stats.csv"), help="CSV file to write"),  # noqa: B008
):
    """Fetch every country in a CSV concurrently and save the totals."""
    results = _fetch_all(countries_csv)
    df = pd.DataFrame([r.to_csv_row() for r in results])
    ensure_output_dir(output)
    df.to_csv(output, index=False)
    typer.echo(f"Saved stats for {len(results)} countries to {output}")


@app.command()
def update_excel(  # noqa: B008
    countries_csv: Path = typer.Argument(..., help="CSV with a 'country' column"),  # noqa: B008
    workbook: Path = typer.Option(  # noqa: B008
        Path("outputs/stats.xlsx"), help="Tracking workbook, created if missing"
    ),
):
    """Refresh each country's row in the tracking workbook, adding new countries."""
    results = _fetch_all(countries_csv)
    counts = StatsWorkbook(workbook).update(results)
    typer.echo(f"Updated {workbook}: {counts['added']} added, {counts['updated']} refreshed")


def _build_fetcher() -> CovidStatsFetcher:
    return CovidStatsFetcher(FetcherConfig.from_env())


def _fetch_all(countries_csv: Path) -> list[StatsResult]:
    countries = CountryLoader().load(countries_csv)
    fetcher = _build_fetcher()
    outcomes = asyncio.run(fetcher.fetch_many(countries))

    results: list[StatsResult] = []
    for country, outcome in zip(countries, outcomes):
        if isinstance(outcome, FetchError):
            logger.warning("Skipping %s: %s", country, outcome.message)
            continue
        results.append(outcome)
    if not results:
        typer.echo("No statistics could be fetched", err=True)
        raise typer.Exit(code=1)
    return results


if __name__ == "__main__":
    app()
