"""
Holding repository.

Holdings live as a JSON array under one fixed storage key. The array is
rewritten on every mutation. An absent or corrupt value means an empty
portfolio; it is logged, never raised.
"""

import json
import logging
from typing import Iterable, List, Optional

from stockboard.domain.errors import DuplicateHoldingError, HoldingNotFoundError, HoldingValidationError
from stockboard.domain.models import Holding
from stockboard.infrastructure.storage.local_storage import LocalStorage

logger = logging.getLogger(__name__)

DEFAULT_KEY = "portfolio-holdings"


class HoldingRepository:
    """Repository for portfolio holdings"""

    def __init__(self, storage: LocalStorage, key: str = DEFAULT_KEY):
        self.storage = storage
        self.key = key
        self._holdings: Optional[List[Holding]] = None

    def load(self) -> List[Holding]:
        """Read holdings from storage, replacing anything held in memory"""
        raw = self.storage.get_item(self.key)
        holdings: List[Holding] = []

        if raw:
            try:
                entries = json.loads(raw)
            except json.JSONDecodeError as e:
                logger.error(f"Error loading holdings: {e}")
                entries = []

            if not isinstance(entries, list):
                logger.error("Error loading holdings: stored value is not a list")
                entries = []

            seen = set()
            for entry in entries:
                try:
                    holding = Holding.from_storage_dict(entry)
                except (HoldingValidationError, TypeError, ValueError) as e:
                    logger.warning(f"Skipping malformed holding {entry!r}: {e}")
                    continue
                if holding.symbol in seen:
                    logger.warning(f"Skipping duplicate holding {holding.symbol}")
                    continue
                seen.add(holding.symbol)
                holdings.append(holding)

        self._holdings = holdings
        logger.info(f"Loaded {len(holdings)} holdings")
        return list(holdings)

    def _cached(self) -> List[Holding]:
        if self._holdings is None:
            self.load()
        return self._holdings

    def _persist(self) -> None:
        payload = json.dumps([h.to_storage_dict() for h in self._holdings])
        self.storage.set_item(self.key, payload)

    def list(self) -> List[Holding]:
        return list(self._cached())

    def symbols(self) -> List[str]:
        return [h.symbol for h in self._cached()]

    def get(self, symbol: str) -> Optional[Holding]:
        symbol = symbol.strip().upper()
        for holding in self._cached():
            if holding.symbol == symbol:
                return holding
        return None

    def add(self, holding: Holding) -> Holding:
        if self.get(holding.symbol) is not None:
            raise DuplicateHoldingError(holding.symbol)
        self._holdings.append(holding)
        self._persist()
        return holding

    def remove(self, symbol: str) -> Holding:
        existing = self.get(symbol)
        if existing is None:
            raise HoldingNotFoundError(symbol.strip().upper())
        self._holdings = [h for h in self._holdings if h.symbol != existing.symbol]
        self._persist()
        return existing

    def replace_all(self, holdings: Iterable[Holding]) -> None:
        self._holdings = list(holdings)
        self._persist()
