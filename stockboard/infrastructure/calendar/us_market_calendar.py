"""
US equity market calendar (NYSE / NASDAQ regular and extended sessions)
"""

from datetime import date, datetime, time
from typing import Iterable, Optional, Set
import logging

from stockboard.domain.models import MarketStatus
from stockboard.utils.time import now_utc, to_eastern

logger = logging.getLogger(__name__)


class USMarketCalendar:
    """
    US Market Calendar
    Session boundaries are in US/Eastern local time
    """

    def __init__(self, holidays: Optional[Iterable[date]] = None):
        """Initialize calendar"""
        self.pre_market_open = time(4, 0)    # 4:00 AM
        self.market_open = time(9, 30)       # 9:30 AM
        self.market_close = time(16, 0)      # 4:00 PM
        self.after_hours_close = time(20, 0)  # 8:00 PM

        self._holidays: Set[date] = set(holidays or [])

    def add_holiday(self, holiday_date: date) -> None:
        self._holidays.add(holiday_date)
        logger.info(f"Added market holiday: {holiday_date}")

    def is_trading_day(self, check_date: date) -> bool:
        """
        Check if a date is a trading day

        Args:
            check_date: Date to check (exchange local)

        Returns:
            True if trading day, False otherwise
        """
        # Saturday=5, Sunday=6
        if check_date.weekday() >= 5:
            return False
        return check_date not in self._holidays

    def get_status(self, check_time: Optional[datetime] = None) -> MarketStatus:
        """
        Session state at a moment in time

        Args:
            check_time: Any datetime; naive values are read as UTC.
                Defaults to now.

        Returns:
            MarketStatus for that moment
        """
        local = to_eastern(check_time or now_utc())
        if not self.is_trading_day(local.date()):
            return MarketStatus.CLOSED

        current_time = local.time()
        if self.market_open <= current_time < self.market_close:
            return MarketStatus.OPEN
        if self.pre_market_open <= current_time < self.market_open:
            return MarketStatus.PRE_MARKET
        if self.market_close <= current_time < self.after_hours_close:
            return MarketStatus.AFTER_HOURS
        return MarketStatus.CLOSED

    def is_market_open(self, check_time: Optional[datetime] = None) -> bool:
        return self.get_status(check_time) == MarketStatus.OPEN
