#!/usr/bin/env python
"""Lightweight CLI: generate a report for a product and chat about it."""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date
from pathlib import Path
from typing import Iterable

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pharma_forecast.core.config import get_settings  # noqa: E402
from pharma_forecast.core.logging import configure_logging  # noqa: E402
from pharma_forecast.schemas import DateRange  # noqa: E402
from pharma_forecast.services import ForecastSession, Sender  # noqa: E402


def _print_blocks(role: str, parts: Iterable[str]) -> None:
    print(f"{role}: ")
    for part in parts:
        print(part)
    print()


def _print_report(session: ForecastSession) -> None:
    snapshot = session.snapshot
    _print_blocks(
        "Artifacts",
        [f"- {key} ({artifact.kind.value})" for key, artifact in snapshot.bundle.items()],
    )
    if snapshot.context.historical_summary:
        _print_blocks("Historical summary", [snapshot.context.historical_summary])
    if snapshot.context.forecast_summary:
        _print_blocks("Forecast summary", [snapshot.context.forecast_summary])


async def _ask(session: ForecastSession, message: str) -> int:
    reply = await session.ask(message)
    if session.banner:
        print(session.banner, file=sys.stderr)
        return 1
    if reply is not None:
        label = "Assistant" if reply.sender is Sender.ASSISTANT else "You"
        print(f"{label}: {reply.text}\n")
    return 0


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)

    async with ForecastSession.from_settings(settings.api) as session:
        product = args.product
        if not product:
            await session.load_catalog()
            if session.banner:
                print(session.banner, file=sys.stderr)
                return 1
            product = session.selected_product

        await session.generate(
            product,
            summary_range=DateRange(start=args.from_date, end=args.to_date),
            forecast_range=DateRange(start=args.forecast_from, end=args.forecast_to),
        )
        if session.banner:
            print(session.banner, file=sys.stderr)
            return 1
        _print_report(session)

        if args.export_dir:
            for path in (
                session.export_archive(args.export_dir),
                session.export_custom_forecast(args.export_dir),
            ):
                if path is not None:
                    print(f"Saved {path}")

        if args.message:
            return await _ask(session, args.message)

        print("Interactive report chat. Type 'exit' or 'quit' to end.\n")
        while True:
            try:
                message = await asyncio.to_thread(input, "You: ")
            except (EOFError, KeyboardInterrupt):
                print("\nGoodbye!")
                return 0
            if message.strip().lower() in {"exit", "quit"}:
                print("Goodbye!")
                return 0
            if not message.strip():
                continue
            await _ask(session, message)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Generate a sales forecast report and ask questions about it."
    )
    parser.add_argument(
        "message",
        nargs="?",
        help="Single question to ask. If omitted, interactive mode is started.",
    )
    parser.add_argument(
        "--product",
        default=None,
        help="Product to analyse. Defaults to the first product offered by the API.",
    )
    parser.add_argument("--from", dest="from_date", type=date.fromisoformat)
    parser.add_argument("--to", dest="to_date", type=date.fromisoformat)
    parser.add_argument("--forecast-from", dest="forecast_from", type=date.fromisoformat)
    parser.add_argument("--forecast-to", dest="forecast_to", type=date.fromisoformat)
    parser.add_argument(
        "--export-dir",
        type=Path,
        default=None,
        help="Directory to save the report archive and custom forecast CSV.",
    )
    parser.add_argument("--log-level", default=None)

    args = parser.parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
