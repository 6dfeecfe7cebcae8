"""
CONFIG ENGINE
Load, validate, and expose dashboard configuration

RESPONSIBILITIES:
- Load config/app.yml
- Validate configuration integrity
- Expose read-only typed objects

RULES:
❌ No defaults if config missing
✅ Fail fast on invalid config
✅ Deterministic output
"""

import yaml
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from stockboard.domain.models import Exchange


@dataclass(frozen=True)
class PopularStock:
    """Quick-add entry shown on the dashboard"""
    symbol: str
    name: str
    sector: str

    def to_dict(self) -> Dict[str, str]:
        return {"symbol": self.symbol, "name": self.name, "sector": self.sector}


@dataclass(frozen=True)
class ExchangeInfo:
    code: Exchange
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code.value, "name": self.name}


@dataclass(frozen=True)
class RefreshIntervals:
    """Polling periods in seconds"""
    market_overview: int
    popular_stocks: int
    portfolio: int

    def __post_init__(self):
        for name in ("market_overview", "popular_stocks", "portfolio"):
            if getattr(self, name) <= 0:
                raise ValueError(f"Refresh interval '{name}' must be positive")


class ConfigEngine:
    """
    Configuration Engine
    Single source of truth for static dashboard configuration
    """

    def __init__(self, config_dir: Path):
        """Initialize with config directory"""
        self.config_dir = Path(config_dir)
        self._app_config: Optional[Dict[str, Any]] = None
        self._indices: Dict[str, str] = {}
        self._popular_stocks: List[PopularStock] = []
        self._sectors: List[str] = []
        self._default_sector: str = ""
        self._exchanges: List[ExchangeInfo] = []
        self._refresh: Optional[RefreshIntervals] = None
        self._holidays: List[date] = []

    def load_all(self) -> None:
        """Load and validate all configuration"""
        self._load_app_config()
        self._load_market_data()
        self._load_popular_stocks()
        self._load_sectors_and_exchanges()
        self._load_refresh()
        self._load_holidays()

    def _load_app_config(self) -> None:
        """Load application config from app.yml"""
        app_file = self.config_dir / "app.yml"
        if not app_file.exists():
            raise FileNotFoundError(f"App config not found: {app_file}")

        with open(app_file, 'r') as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise ValueError(f"App config must be a mapping: {app_file}")
        self._app_config = data

    def _section(self, name: str) -> Any:
        if name not in self._app_config:
            raise ValueError(f"Missing config section: {name}")
        return self._app_config[name]

    def _load_market_data(self) -> None:
        indices = (self._section("market_data") or {}).get("indices") or {}
        if not indices:
            raise ValueError("market_data.indices must list at least one index")
        self._indices = {str(k): str(v) for k, v in indices.items()}

    def _load_popular_stocks(self) -> None:
        stocks = []
        for entry in self._section("popular_stocks") or []:
            stocks.append(
                PopularStock(
                    symbol=str(entry["symbol"]).upper(),
                    name=str(entry["name"]),
                    sector=str(entry["sector"]),
                )
            )

        symbols = [s.symbol for s in stocks]
        if len(symbols) != len(set(symbols)):
            raise ValueError("Duplicate popular stock symbols found in configuration")
        self._popular_stocks = stocks

    def _load_sectors_and_exchanges(self) -> None:
        sectors = [str(s) for s in self._section("sectors") or []]
        if not sectors:
            raise ValueError("At least one sector must be configured")
        self._sectors = sectors

        default_sector = str(self._app_config.get("default_sector") or sectors[0])
        if default_sector not in sectors:
            raise ValueError(f"default_sector '{default_sector}' is not a configured sector")
        self._default_sector = default_sector

        self._exchanges = [
            ExchangeInfo(code=Exchange(str(e["code"])), name=str(e["name"]))
            for e in self._section("exchanges") or []
        ]

    def _load_refresh(self) -> None:
        refresh = self._section("refresh") or {}
        self._refresh = RefreshIntervals(
            market_overview=int(refresh["market_overview"]),
            popular_stocks=int(refresh["popular_stocks"]),
            portfolio=int(refresh["portfolio"]),
        )

    def _load_holidays(self) -> None:
        holidays = []
        for raw in self._app_config.get("market_holidays") or []:
            holidays.append(raw if isinstance(raw, date) else date.fromisoformat(str(raw)))
        self._holidays = holidays

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def indices(self) -> Dict[str, str]:
        return dict(self._indices)

    @property
    def popular_stocks(self) -> List[PopularStock]:
        return list(self._popular_stocks)

    @property
    def popular_symbols(self) -> List[str]:
        return [s.symbol for s in self._popular_stocks]

    @property
    def sectors(self) -> List[str]:
        return list(self._sectors)

    @property
    def default_sector(self) -> str:
        return self._default_sector

    @property
    def exchanges(self) -> List[ExchangeInfo]:
        return list(self._exchanges)

    @property
    def refresh(self) -> RefreshIntervals:
        return self._refresh

    @property
    def market_holidays(self) -> List[date]:
        return list(self._holidays)

    def sector_for(self, symbol: str) -> str:
        """Configured sector for a popular stock, else the default sector"""
        symbol = symbol.upper()
        for stock in self._popular_stocks:
            if stock.symbol == symbol:
                return stock.sector
        return self._default_sector

    def get_app_setting(self, section: str, key: Optional[str] = None) -> Any:
        value = (self._app_config or {}).get(section, {})
        if key is None:
            return value
        return (value or {}).get(key)
