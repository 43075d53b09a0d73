from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import typer

from .config import Config, configure_logging
from .data_sources import OfferClient, OfferSnapshot, ReferenceDataClient, RentEstimateClient
from .reference import estimate_col_index, extract_state_abbr
from .schemas import MARITAL_STATUSES, SINGLE, WORK_MODES, BenefitItem, CompensationOffer, SimulatedOffer
from .session import ComparisonSession
from .settings_store import JsonFileStore, ScenarioValidationError, link_application
from .tax import estimate_tax_rates

app = typer.Typer(help="Compare job offers by after-tax, cost-of-living adjusted value.")
scenarios_app = typer.Typer(help="Manage simulated offers kept in local settings.")
app.add_typer(scenarios_app, name="scenarios")


def _config() -> Config:
    return Config.from_env()


def _check_marital_status(value: str) -> str:
    if value not in MARITAL_STATUSES:
        raise typer.BadParameter(f"must be one of {', '.join(MARITAL_STATUSES)}")
    return value


def _session(config: Config, offline: bool) -> ComparisonSession:
    store = JsonFileStore(config.settings_path)
    if offline:
        return ComparisonSession(store=store)
    return ComparisonSession(
        store=store,
        reference_client=ReferenceDataClient(config.api_url, timeout=config.timeout),
        rent_client=RentEstimateClient(config.api_url, timeout=config.timeout),
    )


def _load_snapshot(config: Config, offers_file: Optional[Path], offline: bool) -> OfferSnapshot:
    if offers_file is not None:
        payload = json.loads(offers_file.read_text(encoding="utf-8"))
        return OfferSnapshot.from_payload(payload.get("offers", []), payload.get("applications", []))
    if offline:
        raise typer.BadParameter("an offers file is required with --offline")
    return OfferClient(config.api_url, timeout=config.timeout).fetch_snapshot()


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None, help="Logging level (env OFFER_COMPARE_LOG_LEVEL if omitted)."
    ),
) -> None:
    configure_logging(log_level or _config().log_level)


@app.command()
def compare(
    offers_file: Optional[Path] = typer.Argument(
        None,
        exists=True,
        dir_okay=False,
        help="JSON file with 'offers' and 'applications' lists. Fetched from the API if omitted.",
    ),
    marital_status: Optional[str] = typer.Option(
        None, help="Filing status; defaults to the saved setting."
    ),
    offline: bool = typer.Option(
        False, help="Skip reference-data and rent lookups and use built-in tables."
    ),
    as_json: bool = typer.Option(False, "--json", help="Dump ranked rows as JSON."),
) -> None:
    """Rank real and simulated offers by adjusted value."""
    config = _config()
    session = _session(config, offline)
    session.load()
    if marital_status:
        session.set_marital_status(_check_marital_status(marital_status))

    snapshot = _load_snapshot(config, offers_file, offline)
    session.set_offers(snapshot.offers, snapshot.applications)

    rent = session.refresh_rent()
    result = session.recompute()

    if as_json:
        typer.echo(json.dumps([asdict(row) for row in result.rows], indent=2))
        return

    typer.echo(f"Reference location: {session.reference_location}")
    if rent.error:
        typer.echo(f"Baseline rent: unavailable ({rent.provider})")
    else:
        typer.echo(f"Baseline rent: ${session.baseline_monthly_rent:,.0f}/mo ({rent.provider})")
    typer.echo("")
    if not result.rows:
        typer.echo("No offers to compare.")
        return
    for rank, row in enumerate(result.rows, start=1):
        marker = " (current)" if row.is_current else ""
        kind = "" if row.kind == "real" else " [simulated]"
        typer.echo(f"{rank}. {row.name}{marker}{kind}")
        typer.echo(
            f"   {row.location} | COL {row.col_index:.0f} | rent ${row.monthly_rent:,.0f}/mo | "
            f"tax {row.used_base_tax_rate:.0f}/{row.used_bonus_tax_rate:.0f}/{row.used_equity_tax_rate:.0f}%"
        )
        typer.echo(
            f"   total comp ${row.total_comp:,.0f} | adjusted ${row.adjusted_value:,.0f} "
            f"({row.delta_vs_current:+,.0f} vs current)"
        )


@app.command()
def tax(
    income: float = typer.Argument(..., help="Gross annual income."),
    location: str = typer.Argument(..., help="Location, e.g. 'Austin, TX'."),
    marital_status: str = typer.Option(SINGLE, callback=_check_marital_status),
) -> None:
    """Estimate base, bonus and equity tax rates."""
    rates = estimate_tax_rates(income, marital_status, location)
    state = extract_state_abbr(location) or "none"
    typer.echo(f"State: {state}")
    typer.echo(f"Base: {rates.base:.0f}%  Bonus: {rates.bonus:.0f}%  Equity: {rates.equity:.0f}%")


@app.command()
def col(location: str = typer.Argument(..., help="Location, e.g. 'Seattle, WA'.")) -> None:
    """Look up the cost-of-living index for a location."""
    typer.echo(f"{estimate_col_index(location):.0f}")


@scenarios_app.command("list")
def list_scenarios() -> None:
    session = _session(_config(), offline=True)
    session.load()
    scenarios = session.scenarios.list()
    if not scenarios:
        typer.echo("No simulated offers saved.")
        return
    for scenario in scenarios:
        offer = scenario.offer
        label = (
            f"application #{scenario.application_id}"
            if scenario.application_id is not None
            else scenario.custom_name
        )
        typer.echo(
            f"{scenario.draft_id}: {label} | {scenario.location or '-'} | "
            f"base ${offer.base_salary:,.0f} | total comp ${offer.total_comp:,.0f}"
        )


@scenarios_app.command("add")
def add_scenario(
    company: str = typer.Option("", help="Custom company name."),
    role: str = typer.Option("", help="Custom role title."),
    application: Optional[int] = typer.Option(None, help="Link to an existing application id."),
    location: Optional[str] = typer.Option(None, help="Location; inherited when omitted."),
    base_salary: float = typer.Option(0.0),
    bonus: float = typer.Option(0.0),
    equity: float = typer.Option(0.0, help="Annual equity value."),
    sign_on: float = typer.Option(0.0),
    benefits: float = typer.Option(0.0, help="Yearly benefits value."),
    work_mode: Optional[str] = typer.Option(None, help="REMOTE, HYBRID or ONSITE."),
    rto_days: Optional[float] = typer.Option(None, help="Office days per week."),
    pto_days: float = typer.Option(15.0),
    offers_file: Optional[Path] = typer.Option(
        None,
        exists=True,
        dir_okay=False,
        help="JSON file to look up --application in. Fetched from the API if omitted.",
    ),
    offline: bool = typer.Option(
        False, help="Skip reference-data and rent lookups when linking an application."
    ),
) -> None:
    """Save a simulated offer.

    With --application the draft is pre-filled from that application; options
    given explicitly still win.
    """
    if work_mode is not None and work_mode not in WORK_MODES:
        raise typer.BadParameter(f"must be one of {', '.join(WORK_MODES)}", param_hint="--work-mode")
    config = _config()
    session = _session(config, offline or application is None)
    session.load()
    items = [BenefitItem("scenario-benefit-cli", "Benefits", benefits)] if benefits else []
    try:
        scenario = SimulatedOffer(
            draft_id="",
            application_id=application,
            custom_company_name=company,
            custom_role_title=role,
            location=location,
            offer=CompensationOffer(
                base_salary=base_salary,
                bonus=bonus,
                equity=equity,
                sign_on=sign_on,
                benefit_items=items,
                benefits_value=benefits,
                work_mode=work_mode,
                rto_days_per_week=rto_days,
                pto_days=pto_days,
            ),
        )
        if application is not None:
            snapshot = _load_snapshot(config, offers_file, offline)
            linked_app = snapshot.applications.get(application)
            if linked_app is None:
                raise ScenarioValidationError(f"No application with id {application}")
            session.set_offers(snapshot.offers, snapshot.applications)
            session.refresh_rent()
            scenario = link_application(scenario, linked_app, session.context())
            if location:
                scenario.location = location
            if work_mode is not None:
                scenario.offer.work_mode = work_mode
            if rto_days is not None:
                scenario.offer.rto_days_per_week = rto_days
        session.scenarios.add(scenario)
    except (ScenarioValidationError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    session.save()
    typer.echo(f"Added {scenario.draft_id}")


@scenarios_app.command("remove")
def remove_scenario(draft_id: str = typer.Argument(...)) -> None:
    session = _session(_config(), offline=True)
    session.load()
    if not session.scenarios.remove(draft_id):
        typer.echo(f"No simulated offer {draft_id}", err=True)
        raise typer.Exit(code=1)
    session.save()
    typer.echo(f"Removed {draft_id}")


if __name__ == "__main__":
    app()
