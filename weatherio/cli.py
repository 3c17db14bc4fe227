"""Command-line front end: show the merged forecast and manage overrides."""

from __future__ import annotations

import argparse
import sys
from typing import Any, Sequence

from weatherio.core.config import settings
from weatherio.core.logging_config import setup_logging
from weatherio.models import ConditionIcon
from weatherio.services.forecast import DayOffset, ForecastSession, ForecastView, Location
from weatherio.services.overrides_client import OverrideServiceClient
from weatherio.services.weather import ForecastCache


def render(view: ForecastView) -> str:
    if not view.visible or view.snapshot is None:
        return view.status or "No forecast available."
    data = view.snapshot
    try:
        glyph = ConditionIcon(data.condition_icon).glyph
    except ValueError:
        glyph = data.condition_icon
    lines = [
        f"{view.day.value.capitalize()} ({view.date})",
        f"  {glyph}  {data.condition_text}",
        f"  Temperature: {data.temp_c:.1f}°C",
        f"  Humidity:    {data.humidity_pct}%",
        f"  Wind:        {data.wind_kph:.1f} km/h",
        f"  Precip:      {data.precip_mm:.1f} mm",
        f"  Source: {view.provenance}",
    ]
    if view.status:
        lines.append(view.status)
    return "\n".join(lines)


def _add_location_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--lat", default=settings.default_lat, help="Latitude, used verbatim as part of the key.")
    parser.add_argument("--lon", default=settings.default_lon, help="Longitude, used verbatim as part of the key.")
    parser.add_argument("--tz", default=settings.default_tz, help="IANA time zone used to pick the calendar date.")
    parser.add_argument(
        "--day",
        choices=[day.value for day in DayOffset],
        default=DayOffset.TODAY.value,
        help="Which day to show (default: today).",
    )
    parser.add_argument("--server", default=None, help="Override service URL (default from settings).")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="weatherio", description="Daily forecast with shared manual overrides.")
    commands = parser.add_subparsers(dest="command", required=True)

    show = commands.add_parser("show", help="Show the forecast for a day.")
    _add_location_args(show)

    update = commands.add_parser("set", help="Store an override for a day.")
    _add_location_args(update)
    update.add_argument("--temp", type=float, dest="tempC", help="Temperature in °C.")
    update.add_argument("--humidity", type=int, dest="humidityPct", help="Relative humidity in percent.")
    update.add_argument("--wind", type=float, dest="windKph", help="Wind speed in km/h.")
    update.add_argument("--precip", type=float, dest="precipMm", help="Precipitation in mm.")
    update.add_argument("--condition", dest="conditionText", help="Condition description.")

    clear = commands.add_parser("clear", help="Remove the active override for a day.")
    _add_location_args(clear)

    serve = commands.add_parser("serve", help="Run the override HTTP service.")
    serve.add_argument("--host", default=settings.host)
    serve.add_argument("--port", type=int, default=settings.port)
    return parser


def _session(args: argparse.Namespace) -> ForecastSession:
    return ForecastSession(
        location=Location(lat=args.lat, lon=args.lon, tz=args.tz),
        cache=ForecastCache(path=settings.cache_path),
        overrides=OverrideServiceClient(base_url=args.server),
        day=DayOffset(args.day),
    )


def _override_values(args: argparse.Namespace) -> dict[str, Any]:
    fields = ("tempC", "humidityPct", "windKph", "precipMm", "conditionText")
    values = {name: getattr(args, name) for name in fields if getattr(args, name) is not None}
    if "conditionText" in values:
        values["conditionText"] = values["conditionText"].strip()
    return values


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        import uvicorn

        uvicorn.run("weatherio.main:app", host=args.host, port=args.port, reload=False)
        return 0

    setup_logging(service_name="weatherio-cli", level="WARNING")
    session = _session(args)
    if args.command == "set":
        view = session.save_override(_override_values(args))
    elif args.command == "clear":
        view = session.remove_override()
    else:
        view = session.load()
    print(render(view))
    return 1 if view.is_error else 0


if __name__ == "__main__":
    sys.exit(main())
