"""
Quote provider protocol for type hints.
"""

from __future__ import annotations

from typing import Any, Dict, Protocol


class QuoteProvider(Protocol):
    async def get_quote(self, symbol: str) -> Dict[str, Any]:
        """
        Provider-native quote fields for one symbol.

        Raises when the provider has no quote for the symbol.
        """
        ...
