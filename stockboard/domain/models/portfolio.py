"""
DOMAIN MODELS — PORTFOLIO VALUATION

Immutable views produced by the portfolio aggregator.
No storage access. No market data fetching.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List

from stockboard.domain.models.holding import Holding

ZERO = Decimal("0")


@dataclass(frozen=True)
class HoldingValuation:
    """
    A holding priced at a specific CMP.
    """
    holding: Holding
    cmp: Decimal
    investment: Decimal
    present_value: Decimal
    gain_loss: Decimal
    gain_loss_percent: Decimal
    portfolio_percent: Decimal

    @property
    def symbol(self) -> str:
        return self.holding.symbol

    @property
    def sector(self) -> str:
        return self.holding.sector

    def to_dict(self) -> Dict[str, Any]:
        data = self.holding.to_storage_dict()
        data.update({
            "symbol": self.holding.symbol,
            "cmp": float(self.cmp),
            "investment": float(self.investment),
            "presentValue": float(self.present_value),
            "gainLoss": float(self.gain_loss),
            "gainLossPercent": float(self.gain_loss_percent),
            "portfolioPercent": float(self.portfolio_percent),
        })
        return data


@dataclass(frozen=True)
class PortfolioSummary:
    total_investment: Decimal = ZERO
    total_present_value: Decimal = ZERO
    total_gain_loss: Decimal = ZERO
    total_gain_loss_percent: Decimal = ZERO
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalInvestment": float(self.total_investment),
            "totalPresentValue": float(self.total_present_value),
            "totalGainLoss": float(self.total_gain_loss),
            "totalGainLossPercent": float(self.total_gain_loss_percent),
            "count": self.count,
        }


@dataclass(frozen=True)
class SectorSummary:
    sector: str
    investment: Decimal = ZERO
    present_value: Decimal = ZERO
    gain_loss: Decimal = ZERO
    gain_loss_percent: Decimal = ZERO
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sector": self.sector,
            "investment": float(self.investment),
            "presentValue": float(self.present_value),
            "gainLoss": float(self.gain_loss),
            "gainLossPercent": float(self.gain_loss_percent),
            "count": self.count,
        }


@dataclass(frozen=True)
class PortfolioView:
    """
    Everything the portfolio page renders, in holding order.
    """
    valuations: List[HoldingValuation] = field(default_factory=list)
    summary: PortfolioSummary = field(default_factory=PortfolioSummary)
    sectors: Dict[str, SectorSummary] = field(default_factory=dict)

    def grouped_by_sector(self) -> Dict[str, List[HoldingValuation]]:
        groups: Dict[str, List[HoldingValuation]] = {}
        for valuation in self.valuations:
            groups.setdefault(valuation.sector, []).append(valuation)
        return groups

    def to_dict(self) -> Dict[str, Any]:
        return {
            "holdings": [v.to_dict() for v in self.valuations],
            "summary": self.summary.to_dict(),
            "sectors": {name: s.to_dict() for name, s in self.sectors.items()},
        }
