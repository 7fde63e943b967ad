"""Exchange calendars for the two catalog markets."""

from datetime import date, datetime, timedelta

import pandas_market_calendars as mcal
import pytz

from stockwhisperer.logging import logger
from stockwhisperer.models import MarketType

MARKET_CALENDARS: dict[MarketType, str] = {
    "US": "NYSE",
    "India": "NSE",
}

MARKET_TIMEZONES: dict[MarketType, str] = {
    "US": "America/New_York",
    "India": "Asia/Kolkata",
}


def market_timezone(market: MarketType) -> pytz.BaseTzInfo:
    return pytz.timezone(MARKET_TIMEZONES[market])


def _normalize_to_market_timezone(check_time: datetime, market: MarketType) -> datetime:
    """Convert a datetime to the market's zone; naive values are assumed local to it."""
    tz = market_timezone(market)

    if check_time.tzinfo is None:
        return tz.localize(check_time)
    return check_time.astimezone(tz)


def _get_market_schedule(
    market: MarketType, target_date: date
) -> tuple[datetime, datetime] | None:
    """
    Get market open and close times for a specific date.

    Returns:
        (market_open, market_close) or None if the exchange is closed that day
    """
    calendar = mcal.get_calendar(MARKET_CALENDARS[market])
    schedule = calendar.schedule(
        start_date=target_date, end_date=target_date + timedelta(days=1)
    )

    if schedule.empty:
        return None

    market_open = schedule.iloc[0]["market_open"].to_pydatetime()
    market_close = schedule.iloc[0]["market_close"].to_pydatetime()
    return market_open, market_close


def is_market_open(market: MarketType, check_time: datetime | None = None) -> bool:
    """
    Returns True if the market's exchange is in its regular session.

    Args:
        market: "US" (NYSE) or "India" (NSE)
        check_time: Moment to check, defaults to now
    """
    local_time = _normalize_to_market_timezone(
        check_time or datetime.now(pytz.UTC), market
    )

    market_schedule = _get_market_schedule(market, local_time.date())
    if market_schedule is None:
        logger.debug(
            "Exchange closed for the day market={market} date={date}",
            market=market,
            date=str(local_time.date()),
        )
        return False

    market_open, market_close = market_schedule
    return market_open <= local_time <= market_close
