"""Synthetic price series for the demo catalog.

Values are random; only the shape is guaranteed: prices stay positive,
historical series skip weekends and ascend by date, and tick series
end at "now".
"""

import random
from datetime import date, datetime, timedelta, tzinfo

import pytz

from stockwhisperer.logging import logger
from stockwhisperer.models import PricePoint, Tick

MIN_PRICE = 0.01
TREND_CYCLE_DAYS = 30
TREND_WEIGHT = 0.3
TICK_VOLATILITY = 0.1


def _is_weekend(d: date) -> bool:
    return d.weekday() >= 5


def generate_historical_data(
    base_price: float,
    volatility: float,
    days: int,
    include_volume: bool = False,
    *,
    rng: random.Random | None = None,
    today: date | None = None,
) -> list[PricePoint]:
    """
    Simulate a daily closing-price path ending yesterday.

    Args:
        base_price: Starting price of the walk
        volatility: Scale of the daily move
        days: Calendar days to cover (weekends produce no entry)
        include_volume: Also simulate a traded volume per day
        rng: Random source, defaults to a fresh ``random.Random()``
        today: Reference date, defaults to ``date.today()``

    Returns:
        Trading-day price points in ascending date order

    Each ~30-day cycle gets a trend bias in [-1, 1] that tilts the daily
    moves, so the path shows monthly up and down swings.
    """
    if base_price <= 0:
        raise ValueError(f"base_price must be positive, got {base_price}")
    if volatility <= 0:
        raise ValueError(f"volatility must be positive, got {volatility}")
    if days <= 0:
        raise ValueError(f"days must be positive, got {days}")

    rng = rng or random.Random()
    today = today or date.today()

    cycles = days // TREND_CYCLE_DAYS + 1
    trend_bias = [rng.uniform(-1, 1) for _ in range(cycles)]

    data: list[PricePoint] = []
    price = base_price
    for offset in range(days, 0, -1):
        day = today - timedelta(days=offset)
        if _is_weekend(day):
            continue

        bias = trend_bias[(days - offset) // TREND_CYCLE_DAYS]
        change = (rng.random() - 0.5 + TREND_WEIGHT * bias) * volatility
        price = max(MIN_PRICE, price + change)

        volume = None
        if include_volume:
            volume = base_price * 1000 * rng.uniform(0.75, 1.25)
            if abs(change) > volatility / 2:
                volume *= 1.5
            volume = int(volume)

        data.append(PricePoint(date=day, price=round(price, 2), volume=volume))

    logger.debug(
        "Generated historical series base_price={base_price} days={days} points={points}",
        base_price=base_price,
        days=days,
        points=len(data),
    )
    return data


def generate_realtime_data(
    current_price: float,
    points: int = 60,
    *,
    rng: random.Random | None = None,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[Tick]:
    """
    Simulate one tick per minute for the last ``points`` minutes.

    The walk starts at ``current_price`` and applies a symmetric move of at
    most 0.1 per tick. Timestamps are timezone-aware; naive ``now`` values
    are taken to be in ``tz`` (UTC when no zone is given).
    """
    if current_price <= 0:
        raise ValueError(f"current_price must be positive, got {current_price}")
    if points <= 0:
        raise ValueError(f"points must be positive, got {points}")

    rng = rng or random.Random()
    zone = tz or pytz.UTC
    if now is None:
        now = datetime.now(zone)
    elif now.tzinfo is None:
        now = zone.localize(now) if hasattr(zone, "localize") else now.replace(tzinfo=zone)

    ticks: list[Tick] = []
    price = current_price
    for minutes_ago in range(points - 1, -1, -1):
        move = rng.uniform(-TICK_VOLATILITY, TICK_VOLATILITY)
        new_price = round(max(MIN_PRICE, price + move), 2)
        ticks.append(
            Tick(
                timestamp=now - timedelta(minutes=minutes_ago),
                price=new_price,
                change=round(new_price - price, 2),
            )
        )
        price = new_price

    return ticks


def next_tick(
    last_price: float,
    last_timestamp: datetime | None = None,
    *,
    rng: random.Random | None = None,
) -> Tick:
    """Produce the tick that follows ``last_price`` one minute later."""
    rng = rng or random.Random()
    timestamp = (
        last_timestamp + timedelta(minutes=1)
        if last_timestamp is not None
        else datetime.now(pytz.UTC)
    )
    new_price = round(
        max(MIN_PRICE, last_price + rng.uniform(-TICK_VOLATILITY, TICK_VOLATILITY)), 2
    )
    return Tick(
        timestamp=timestamp,
        price=new_price,
        change=round(new_price - last_price, 2),
    )
