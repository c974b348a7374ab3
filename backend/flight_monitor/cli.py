"""CLI per avviare, fermare e consultare i monitor tramite l'API HTTP."""
import logging

import click
import httpx

from flight_monitor.models.schemas import CabinClass, PollInterval

logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

DEFAULT_API_URL = "http://localhost:8000"

_POLL_CHOICES = {interval.label: interval for interval in PollInterval}


def _request(ctx: click.Context, method: str, path: str, **kwargs) -> httpx.Response:
    api_url = ctx.obj["api_url"]
    try:
        with httpx.Client(base_url=api_url, timeout=60) as client:
            resp = client.request(method, path, **kwargs)
    except httpx.HTTPError as exc:
        raise click.ClickException(f"Cannot reach {api_url}: {exc}") from exc

    if resp.is_error:
        raise click.ClickException(f"HTTP {resp.status_code}: {resp.text}")
    return resp


def _price_change(history: list[float]) -> str:
    if len(history) < 2:
        return "-"
    delta = history[-1] - history[-2]
    if delta == 0:
        return "-"
    return click.style(f"{delta:+.2f}", fg="red" if delta > 0 else "green")


def _print_flights(flights: list[dict]) -> None:
    if not flights:
        click.secho("No flights found", fg="yellow")
        return

    header = f"{'ID':<6} {'Airline':<28} {'Price':>10} {'Departure':<20} {'Duration':<9} Changes"
    click.echo(header)
    click.echo("-" * len(header))
    for f in flights:
        outbound = f["outbound"]
        departure = outbound["departure"] + (" *" if outbound.get("alternativeDate") else "")
        click.echo(
            f"{f['id']:<6} {f['airline'][:28]:<28} {f['price']:>10.2f} "
            f"{departure:<20} {outbound['duration']:<9} {_price_change(f['priceHistory'])}"
        )
    click.echo("\n* = alternative date (flex search)")


@click.group()
@click.option(
    "--api-url",
    envvar="FLIGHT_MONITOR_API_URL",
    default=DEFAULT_API_URL,
    show_default=True,
    help="Base URL of the flight monitor API",
)
@click.pass_context
def cli(ctx: click.Context, api_url: str) -> None:
    """Monitor flight prices."""
    ctx.ensure_object(dict)
    ctx.obj["api_url"] = api_url.rstrip("/")


@cli.command()
@click.option("--client-id", prompt="Amadeus Client ID", help="Amadeus API client id")
@click.option("--client-secret", prompt="Amadeus Client Secret", hide_input=True, help="Amadeus API client secret")
@click.option("--origin", prompt="Origin airport code (e.g. VCE)", help="IATA code")
@click.option("--destination", prompt="Destination airport code (e.g. TFS)", help="IATA code")
@click.option("--depart-date", prompt="Departure date (YYYY-MM-DD)", type=click.DateTime(["%Y-%m-%d"]))
@click.option("--return-date", prompt="Return date (YYYY-MM-DD)", type=click.DateTime(["%Y-%m-%d"]))
@click.option("--depart-flex", prompt="Departure flex days (0-3)", type=click.IntRange(0, 3), default=2)
@click.option("--return-flex", prompt="Return flex days (0-3)", type=click.IntRange(0, 3), default=2)
@click.option(
    "--poll-interval",
    prompt="Polling interval",
    type=click.Choice(list(_POLL_CHOICES)),
    default=PollInterval.FIVE_MINUTES.label,
)
@click.option("--max-price", type=float, default=None, help="Only track offers up to this price")
@click.option(
    "--cabin",
    "cabins",
    multiple=True,
    type=click.Choice([c.value for c in CabinClass], case_sensitive=False),
    help="Preferred cabin class (repeatable)",
)
@click.pass_context
def start(
    ctx: click.Context,
    client_id: str,
    client_secret: str,
    origin: str,
    destination: str,
    depart_date,
    return_date,
    depart_flex: int,
    return_flex: int,
    poll_interval: str,
    max_price: float | None,
    cabins: tuple[str, ...],
) -> None:
    """Start monitoring flight prices."""
    details: dict = {
        "origin": origin.upper(),
        "destination": destination.upper(),
        "departDate": depart_date.date().isoformat(),
        "returnDate": return_date.date().isoformat(),
        "departFlexDays": depart_flex,
        "returnFlexDays": return_flex,
        "pollInterval": _POLL_CHOICES[poll_interval].value,
    }
    if max_price is not None:
        details["maxPrice"] = max_price
    if cabins:
        details["preferredCabins"] = [c.upper() for c in cabins]

    click.echo("Starting flight monitor...")
    resp = _request(
        ctx,
        "POST",
        "/monitor/start",
        json={
            "credentials": {"clientId": client_id, "clientSecret": client_secret},
            "details": details,
        },
    )
    monitor_id = resp.json()["id"]

    click.secho(f"Monitor started! ID: {monitor_id}", fg="green")
    click.secho("\nUse this ID to check flights or stop monitoring:", fg="blue")
    click.secho(f"  flight-monitor flights {monitor_id}", fg="yellow")
    click.secho(f"  flight-monitor stop {monitor_id}", fg="yellow")


@cli.command()
@click.argument("monitor_id")
@click.pass_context
def stop(ctx: click.Context, monitor_id: str) -> None:
    """Stop monitoring flight prices."""
    _request(ctx, "POST", f"/monitor/{monitor_id}/stop")
    click.secho("Monitor stopped successfully!", fg="green")


@cli.command()
@click.argument("monitor_id")
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_context
def flights(ctx: click.Context, monitor_id: str, json_output: bool) -> None:
    """Show the flights tracked by a monitor."""
    resp = _request(ctx, "GET", f"/monitor/{monitor_id}/flights")
    if json_output:
        click.echo(resp.text)
        return
    _print_flights(resp.json())


@cli.command()
@click.argument("monitor_id")
@click.argument("flight_id")
@click.pass_context
def history(ctx: click.Context, monitor_id: str, flight_id: str) -> None:
    """Show the price history of a tracked flight, oldest first."""
    prices = _request(ctx, "GET", f"/monitor/{monitor_id}/flights/{flight_id}/history").json()
    if not prices:
        click.secho("No price history found", fg="yellow")
        return
    for i, price in enumerate(prices, 1):
        click.echo(f"  {i:>3}. {price:.2f}")


if __name__ == "__main__":
    cli()
