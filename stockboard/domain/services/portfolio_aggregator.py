"""
PORTFOLIO AGGREGATOR
Holdings + latest prices → valuations, portfolio totals, sector totals

RESPONSIBILITIES:
- Resolve the price in use for each holding
- Compute investment, present value, gain/loss and percentages
- Fold valuations into portfolio and per-sector summaries

RULES:
❌ No storage access
❌ No market data fetching
❌ Never fails on missing prices
✅ Percentages are zero when investment is zero
✅ Deterministic output, recomputed on every call
"""

from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from stockboard.domain.models import (
    Holding,
    HoldingValuation,
    PortfolioSummary,
    PortfolioView,
    SectorSummary,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

SORTABLE_FIELDS = (
    "symbol",
    "sector",
    "purchase_price",
    "quantity",
    "cmp",
    "investment",
    "present_value",
    "gain_loss",
    "gain_loss_percent",
    "portfolio_percent",
)


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole as a percentage; zero when whole is zero."""
    if whole == ZERO:
        return ZERO
    return part / whole * HUNDRED


def resolve_price(holding: Holding, prices: Mapping[str, Decimal]) -> Decimal:
    """
    Price in use for a holding.

    Order: latest snapshot price, cached CMP on the holding, purchase price.
    Missing or non-positive values fall through to the next source.
    """
    live = prices.get(holding.symbol)
    if live is not None and live > ZERO:
        return live
    if holding.cmp is not None and holding.cmp > ZERO:
        return holding.cmp
    return holding.purchase_price


class PortfolioAggregator:
    """
    Portfolio Aggregator
    Pure fold over holdings and a price mapping
    """

    def value_holdings(
        self,
        holdings: Iterable[Holding],
        prices: Optional[Mapping[str, Decimal]] = None,
    ) -> List[HoldingValuation]:
        holdings = list(holdings)
        prices = prices or {}
        total_investment = sum((h.investment for h in holdings), ZERO)

        valuations = []
        for holding in holdings:
            cmp = resolve_price(holding, prices)
            investment = holding.investment
            present_value = holding.present_value(cmp)
            gain_loss = present_value - investment
            valuations.append(
                HoldingValuation(
                    holding=holding,
                    cmp=cmp,
                    investment=investment,
                    present_value=present_value,
                    gain_loss=gain_loss,
                    gain_loss_percent=percent_of(gain_loss, investment),
                    portfolio_percent=percent_of(investment, total_investment),
                )
            )
        return valuations

    def summarize(self, valuations: Iterable[HoldingValuation]) -> PortfolioSummary:
        total_investment = ZERO
        total_present_value = ZERO
        count = 0
        for valuation in valuations:
            total_investment += valuation.investment
            total_present_value += valuation.present_value
            count += 1

        total_gain_loss = total_present_value - total_investment
        return PortfolioSummary(
            total_investment=total_investment,
            total_present_value=total_present_value,
            total_gain_loss=total_gain_loss,
            total_gain_loss_percent=percent_of(total_gain_loss, total_investment),
            count=count,
        )

    def summarize_sectors(
        self,
        valuations: Iterable[HoldingValuation],
    ) -> Dict[str, SectorSummary]:
        """
        Per-sector totals, keyed in first-seen order.
        """
        grouped: Dict[str, List[HoldingValuation]] = {}
        for valuation in valuations:
            grouped.setdefault(valuation.sector, []).append(valuation)

        sectors: Dict[str, SectorSummary] = {}
        for sector, members in grouped.items():
            totals = self.summarize(members)
            sectors[sector] = SectorSummary(
                sector=sector,
                investment=totals.total_investment,
                present_value=totals.total_present_value,
                gain_loss=totals.total_gain_loss,
                gain_loss_percent=totals.total_gain_loss_percent,
                count=totals.count,
            )
        return sectors

    def aggregate(
        self,
        holdings: Iterable[Holding],
        prices: Optional[Mapping[str, Decimal]] = None,
    ) -> PortfolioView:
        valuations = self.value_holdings(holdings, prices)
        return PortfolioView(
            valuations=valuations,
            summary=self.summarize(valuations),
            sectors=self.summarize_sectors(valuations),
        )

    @staticmethod
    def sort_valuations(
        valuations: Iterable[HoldingValuation],
        sort_by: str,
        descending: bool = False,
    ) -> List[HoldingValuation]:
        if sort_by not in SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort by {sort_by!r}; choose one of {', '.join(SORTABLE_FIELDS)}")

        def key(valuation: HoldingValuation):
            if hasattr(valuation, sort_by):
                return getattr(valuation, sort_by)
            return getattr(valuation.holding, sort_by)

        return sorted(valuations, key=key, reverse=descending)
