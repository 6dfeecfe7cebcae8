"""
Quote provider factory (config-driven).

The provider name comes from, in order: the explicit argument, the
MARKET_DATA_PROVIDER environment setting, `market_data.provider` in
app.yml, and finally yfinance.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from stockboard.config import settings
from stockboard.domain.services.config_engine import ConfigEngine
from stockboard.infrastructure.market_data.types import QuoteProvider
from stockboard.infrastructure.market_data.yfinance_provider import YFinanceProvider


def _load_app_config(config_engine: Optional[ConfigEngine] = None) -> Dict[str, Any]:
    if config_engine is not None:
        return config_engine.get_app_setting("market_data") or {}

    app_file = Path(__file__).resolve().parents[3] / "config" / "app.yml"
    if not app_file.exists():
        return {}
    with open(app_file, "r") as f:
        data = yaml.safe_load(f) or {}
    return data.get("market_data") or {}


def get_quote_provider(
    name: Optional[str] = None,
    config_engine: Optional[ConfigEngine] = None,
) -> QuoteProvider:
    if not name:
        app_config = _load_app_config(config_engine)
        name = settings.MARKET_DATA_PROVIDER or app_config.get("provider") or "yfinance"
    name = str(name).lower()
    if name == "yfinance":
        return YFinanceProvider()
    raise ValueError(f"Unsupported market data provider: {name}")
