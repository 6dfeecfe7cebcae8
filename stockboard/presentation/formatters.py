"""
Plain-text rendering of quotes, market overview and the portfolio table.
"""

from decimal import Decimal
from typing import Iterable, List, Optional, Union

from stockboard.domain.models import MarketOverview, PortfolioView, StockQuote

Number = Union[int, float, Decimal]

INDEX_LABELS = {
    "sp500": "S&P 500",
    "nasdaq": "NASDAQ",
    "dow": "Dow Jones",
}

_LARGE_UNITS = (
    (Decimal("1e12"), "T"),
    (Decimal("1e9"), "B"),
    (Decimal("1e6"), "M"),
    (Decimal("1e3"), "K"),
)


def format_currency(value: Number) -> str:
    amount = Decimal(str(value))
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_percentage(value: Number) -> str:
    amount = Decimal(str(value))
    sign = "+" if amount > 0 else ""
    return f"{sign}{amount:.2f}%"


def format_number(value: Number, decimals: int = 2) -> str:
    return f"{Decimal(str(value)):,.{decimals}f}"


def format_large_number(value: Number) -> str:
    """1_500_000_000 -> '1.50B'"""
    amount = Decimal(str(value))
    for threshold, suffix in _LARGE_UNITS:
        if abs(amount) >= threshold:
            return f"{amount / threshold:.2f}{suffix}"
    return format_number(amount)


def _signed(value: Number) -> str:
    text = format_number(value)
    return f"+{text}" if Decimal(str(value)) > 0 else text


def render_market_overview(overview: MarketOverview) -> str:
    lines = [f"📊 Market Overview ({overview.market_status.value.upper()})", ""]
    for name, level in overview.indices.items():
        label = INDEX_LABELS.get(name, name)
        lines.append(
            f"{label:<10} {format_number(level.value):>12}  "
            f"{_signed(level.change)} ({format_percentage(level.change_percent)})"
        )
    lines.append("")
    lines.append(f"Last updated: {overview.last_updated.strftime('%H:%M:%S %Z').strip()}")
    return "\n".join(lines)


def render_quote_cards(quotes: Iterable[StockQuote]) -> str:
    cards: List[str] = []
    for quote in quotes:
        arrow = "🟢" if quote.change >= 0 else "🔴"
        cards.append(
            f"{arrow} {quote.symbol} - {quote.name}\n"
            f"   Price: {format_currency(quote.price)}  "
            f"{_signed(quote.change)} ({format_percentage(quote.change_percent)})\n"
            f"   Volume: {format_large_number(quote.volume)}  "
            f"Mkt Cap: {format_large_number(quote.market_cap)}  "
            f"P/E: {format_number(quote.pe_ratio)}"
        )
    if not cards:
        return "No quotes available."
    return "\n\n".join(cards)


def render_portfolio_table(view: PortfolioView, title: Optional[str] = None) -> str:
    if not view.valuations:
        return "💼 No holdings yet. Add one with `stockboard add`."

    header = (
        f"{'Symbol':<8}{'Qty':>6}{'Buy':>12}{'CMP':>12}"
        f"{'Investment':>14}{'Value':>14}{'Gain/Loss':>14}{'G/L %':>9}{'Port %':>9}"
    )
    lines = [title or "💼 Portfolio", ""]

    for sector, members in view.grouped_by_sector().items():
        summary = view.sectors[sector]
        lines.append(
            f"▸ {sector} ({summary.count}): {format_currency(summary.investment)} → "
            f"{format_currency(summary.present_value)} "
            f"[{format_percentage(summary.gain_loss_percent)}]"
        )
        lines.append(header)
        for v in members:
            lines.append(
                f"{v.symbol:<8}{v.holding.quantity:>6}"
                f"{format_currency(v.holding.purchase_price):>12}"
                f"{format_currency(v.cmp):>12}"
                f"{format_currency(v.investment):>14}"
                f"{format_currency(v.present_value):>14}"
                f"{format_currency(v.gain_loss):>14}"
                f"{format_percentage(v.gain_loss_percent):>9}"
                f"{format_number(v.portfolio_percent) + '%':>9}"
            )
        lines.append("")

    total = view.summary
    lines.append(f"Total Investment: {format_currency(total.total_investment)}")
    lines.append(f"Present Value:    {format_currency(total.total_present_value)}")
    lines.append(
        f"Gain/Loss:        {format_currency(total.total_gain_loss)} "
        f"({format_percentage(total.total_gain_loss_percent)})"
    )
    return "\n".join(lines)
