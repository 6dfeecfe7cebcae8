#!/usr/bin/env python3
"""
Stockboard command line

Usage:
    stockboard serve
    stockboard market
    stockboard quotes AAPL,MSFT
    stockboard portfolio --live --sort-by gain_loss --desc
    stockboard add AAPL 150 10 --sector Technology
    stockboard remove AAPL
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from stockboard.bootstrap import Services, build_services
from stockboard.config import settings
from stockboard.core.logging import setup_logging
from stockboard.domain.errors import StockboardError
from stockboard.presentation.formatters import (
    render_market_overview,
    render_portfolio_table,
    render_quote_cards,
)
from stockboard.services.quote_service import parse_symbols

logger = logging.getLogger(__name__)


async def _market(services: Services, args: argparse.Namespace) -> str:
    overview = await services.quote_service.fetch_market_overview()
    return render_market_overview(overview)


async def _quotes(services: Services, args: argparse.Namespace) -> str:
    symbols = parse_symbols(args.symbols) or services.config_engine.popular_symbols
    quotes = await services.quote_service.fetch_quotes(symbols)
    return render_quote_cards(quotes[s] for s in symbols if s in quotes)


async def _portfolio(services: Services, args: argparse.Namespace) -> str:
    prices = None
    symbols = services.repository.symbols()
    if args.live and symbols:
        snapshot = await services.quote_service.fetch_snapshot(symbols)
        services.portfolio_service.apply_snapshot(snapshot)
        prices = snapshot.prices()
    view = services.portfolio_service.view(prices, sort_by=args.sort_by, descending=args.desc)
    return render_portfolio_table(view)


async def _add(services: Services, args: argparse.Namespace) -> str:
    holding = await services.portfolio_service.add_holding(
        symbol=args.symbol,
        sector=args.sector,
        exchange=args.exchange,
        purchase_price=args.price,
        quantity=args.quantity,
    )
    return f"✅ Added {holding.symbol}: {holding.quantity} @ ${holding.purchase_price} ({holding.sector})"


async def _remove(services: Services, args: argparse.Namespace) -> str:
    removed = services.portfolio_service.remove_holding(args.symbol)
    return f"🗑️ Removed {removed.symbol}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stockboard", description="Stock quotes and portfolio tracker")
    parser.add_argument("--storage", type=str, default=None, help="Path of the local storage file")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", type=str, default=settings.API_HOST)
    serve.add_argument("--port", type=int, default=settings.API_PORT)

    sub.add_parser("market", help="Show index levels and market status").set_defaults(handler=_market)

    quotes = sub.add_parser("quotes", help="Show quotes for comma-separated symbols")
    quotes.add_argument("symbols", nargs="?", default="", help="e.g. AAPL,MSFT (defaults to popular stocks)")
    quotes.set_defaults(handler=_quotes)

    portfolio = sub.add_parser("portfolio", help="Show holdings grouped by sector")
    portfolio.add_argument("--live", action="store_true", help="Refresh prices before rendering")
    portfolio.add_argument("--sort-by", type=str, default=None)
    portfolio.add_argument("--desc", action="store_true")
    portfolio.set_defaults(handler=_portfolio)

    add = sub.add_parser("add", help="Add a holding")
    add.add_argument("symbol", type=str)
    add.add_argument("price", type=str, help="Purchase price")
    add.add_argument("quantity", type=str)
    add.add_argument("--sector", type=str, default="")
    add.add_argument("--exchange", type=str, default="S&P", choices=["S&P", "DOW", "NASDAQ"])
    add.set_defaults(handler=_add)

    remove = sub.add_parser("remove", help="Remove a holding")
    remove.add_argument("symbol", type=str)
    remove.set_defaults(handler=_remove)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(settings.LOG_LEVEL, log_file=settings.LOG_FILE)

    if args.command == "serve":
        import uvicorn
        uvicorn.run("stockboard.main:app", host=args.host, port=args.port)
        return 0

    services = build_services(storage_path=args.storage)
    try:
        output = asyncio.run(args.handler(services, args))
    except (StockboardError, ValueError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
