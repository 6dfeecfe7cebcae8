"""
Portfolio service.

Ties holdings storage, live quotes and the aggregator together: adding and
removing holdings, seeding new holdings from a live quote, folding fresh
snapshots into cached holding fields, and building the portfolio view.
"""

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from stockboard.domain.errors import HoldingValidationError
from stockboard.domain.models import Exchange, Holding, PortfolioView, QuoteSnapshot
from stockboard.domain.models.holding import to_decimal
from stockboard.domain.services.config_engine import ConfigEngine
from stockboard.domain.services.portfolio_aggregator import PortfolioAggregator
from stockboard.infrastructure.repositories.holding_repository import HoldingRepository
from stockboard.services.quote_service import QuoteService

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class PortfolioService:
    def __init__(
        self,
        repository: HoldingRepository,
        quote_service: QuoteService,
        config_engine: ConfigEngine,
        aggregator: Optional[PortfolioAggregator] = None,
    ):
        self.repository = repository
        self.quote_service = quote_service
        self.config_engine = config_engine
        self.aggregator = aggregator or PortfolioAggregator()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add_holding(
        self,
        symbol: str,
        sector: str,
        exchange: str,
        purchase_price: Any,
        quantity: Any,
    ) -> Holding:
        """
        Validate, seed from a live quote, and persist a new holding.

        Raises:
            HoldingValidationError: bad input
            DuplicateHoldingError: symbol already held
        """
        symbol = (symbol or "").strip().upper()
        if not symbol:
            raise HoldingValidationError("Symbol is required")

        price = to_decimal(purchase_price)
        if price <= ZERO:
            raise HoldingValidationError("Purchase price must be greater than zero")

        qty = to_decimal(quantity)
        if qty <= ZERO or qty != qty.to_integral_value():
            raise HoldingValidationError("Quantity must be a positive whole number")

        try:
            exchange_code = Exchange(exchange)
        except ValueError as e:
            raise HoldingValidationError(f"Unknown exchange: {exchange}") from e

        sector = (sector or "").strip() or self.config_engine.sector_for(symbol)

        cmp = price
        pe_ratio = 0.0
        earnings = 0.0
        try:
            quote = await self.quote_service.get_quote(symbol)
        except Exception as e:
            logger.error(f"Error fetching live quote for new holding {symbol}: {e!r}")
            quote = None
        if quote is not None:
            if quote.price > 0:
                cmp = to_decimal(quote.price)
            pe_ratio = quote.pe_ratio
            earnings = quote.earnings

        holding = Holding(
            symbol=symbol,
            sector=sector,
            exchange=exchange_code,
            purchase_price=price,
            quantity=int(qty),
            cmp=cmp,
            pe_ratio=pe_ratio,
            latest_earnings=earnings,
        )
        self.repository.add(holding)
        logger.info(f"Added holding {symbol}: {qty} @ {price} ({sector}, {exchange_code.value})")
        return holding

    def remove_holding(self, symbol: str) -> Holding:
        removed = self.repository.remove(symbol)
        logger.info(f"Removed holding {removed.symbol}")
        return removed

    async def prefill(self, symbol: str) -> Dict[str, Any]:
        """
        Suggested form values for the quick-add flow.

        The purchase price defaults to the live price; 0 when unavailable.
        """
        symbol = (symbol or "").strip().upper()
        if not symbol:
            raise HoldingValidationError("Symbol is required")

        price = 0.0
        try:
            quote = await self.quote_service.get_quote(symbol)
        except Exception as e:
            logger.error(f"Error fetching stock price for {symbol}: {e!r}")
            quote = None
        if quote is not None:
            price = quote.price

        return {
            "symbol": symbol,
            "sector": self.config_engine.sector_for(symbol),
            "exchange": Exchange.SP.value,
            "purchasePrice": price,
            "quantity": 0,
        }

    # ------------------------------------------------------------------
    # Snapshot application
    # ------------------------------------------------------------------

    def apply_snapshot(self, snapshot: QuoteSnapshot) -> int:
        """
        Copy price, P/E and earnings from a snapshot onto held positions.

        Holdings missing from the snapshot keep their cached values.

        Returns:
            Number of holdings updated
        """
        updated = 0
        holdings = []
        for holding in self.repository.list():
            quote = snapshot.get(holding.symbol)
            if quote is None:
                holdings.append(holding)
                continue
            holdings.append(
                replace(
                    holding,
                    cmp=to_decimal(quote.price) if quote.price > 0 else holding.cmp,
                    pe_ratio=quote.pe_ratio,
                    latest_earnings=quote.earnings,
                )
            )
            updated += 1

        if updated:
            self.repository.replace_all(holdings)
        return updated

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def view(
        self,
        prices: Optional[Mapping[str, Decimal]] = None,
        sort_by: Optional[str] = None,
        descending: bool = False,
    ) -> PortfolioView:
        view = self.aggregator.aggregate(self.repository.list(), prices)
        if sort_by:
            view = replace(
                view,
                valuations=self.aggregator.sort_valuations(view.valuations, sort_by, descending),
            )
        return view
