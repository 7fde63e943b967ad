"""The in-memory catalog of demo symbols and their synthetic metrics."""

import random
from dataclasses import dataclass, field
from datetime import date, timedelta
from functools import lru_cache

from stockwhisperer.config import settings
from stockwhisperer.logging import logger
from stockwhisperer.market_hours import market_timezone
from stockwhisperer.mock_data import (
    generate_historical_data,
    generate_realtime_data,
    next_tick,
)
from stockwhisperer.models import (
    MarketType,
    NewsItem,
    Prediction,
    Sentiment,
    StockRecord,
)


@dataclass(frozen=True)
class NewsSeed:
    title: str
    sentiment: str
    source: str
    days_ago: int


@dataclass(frozen=True)
class StockSeed:
    """Fixed parameters a catalog entry is generated from."""

    symbol: str
    name: str
    market: MarketType
    price: float
    change: float
    change_percent: float
    direction: str
    target_price: float
    confidence: float
    base_price: float
    volatility: float
    sentiment_score: float
    analysis: str
    news: tuple[NewsSeed, ...] = field(default_factory=tuple)


STOCK_SEEDS: tuple[StockSeed, ...] = (
    StockSeed(
        symbol="AAPL",
        name="Apple Inc.",
        market="US",
        price=182.63,
        change=1.25,
        change_percent=0.69,
        direction="up",
        target_price=195.50,
        confidence=0.78,
        base_price=180,
        volatility=2,
        sentiment_score=0.65,
        analysis="Positive sentiment driven by strong iPhone sales and services growth.",
        news=(
            NewsSeed("Apple services revenue hits record high", "positive", "Bloomberg", 1),
            NewsSeed("iPhone demand steady ahead of product refresh", "neutral", "Reuters", 3),
            NewsSeed("Regulators question App Store fee structure", "negative", "WSJ", 5),
        ),
    ),
    StockSeed(
        symbol="MSFT",
        name="Microsoft Corporation",
        market="US",
        price=418.24,
        change=-2.31,
        change_percent=-0.55,
        direction="up",
        target_price=440.00,
        confidence=0.65,
        base_price=380,
        volatility=5,
        sentiment_score=0.72,
        analysis="Bullish sentiment around Azure growth and AI product integration.",
        news=(
            NewsSeed("Azure growth beats analyst expectations", "positive", "CNBC", 1),
            NewsSeed("Copilot adoption accelerates across enterprises", "positive", "The Verge", 2),
            NewsSeed("Cloud spending slowdown weighs on sector", "negative", "Reuters", 6),
        ),
    ),
    StockSeed(
        symbol="GOOGL",
        name="Alphabet Inc.",
        market="US",
        price=157.73,
        change=0.42,
        change_percent=0.27,
        direction="up",
        target_price=175.00,
        confidence=0.72,
        base_price=140,
        volatility=2,
        sentiment_score=0.45,
        analysis="Mixed sentiment: ad revenue recovery offset by antitrust concerns.",
        news=(
            NewsSeed("Search advertising rebounds in latest quarter", "positive", "Bloomberg", 2),
            NewsSeed("Antitrust ruling looms over search business", "negative", "NYT", 4),
            NewsSeed("Gemini rollout expands to more markets", "neutral", "TechCrunch", 7),
        ),
    ),
    StockSeed(
        symbol="AMZN",
        name="Amazon.com Inc.",
        market="US",
        price=178.15,
        change=-1.05,
        change_percent=-0.59,
        direction="up",
        target_price=190.00,
        confidence=0.68,
        base_price=160,
        volatility=3,
        sentiment_score=0.55,
        analysis="Moderately positive sentiment on AWS margins and retail efficiency.",
        news=(
            NewsSeed("AWS operating margin expands", "positive", "CNBC", 1),
            NewsSeed("Retail unit faces labor cost pressure", "negative", "Reuters", 3),
        ),
    ),
    StockSeed(
        symbol="META",
        name="Meta Platforms Inc.",
        market="US",
        price=472.01,
        change=5.63,
        change_percent=1.21,
        direction="up",
        target_price=500.00,
        confidence=0.81,
        base_price=430,
        volatility=6,
        sentiment_score=0.6,
        analysis="Positive sentiment from the advertising rebound and cost discipline.",
        news=(
            NewsSeed("Ad impressions grow across Family of Apps", "positive", "Bloomberg", 2),
            NewsSeed("Reality Labs losses widen", "negative", "The Information", 5),
        ),
    ),
    StockSeed(
        symbol="TSLA",
        name="Tesla Inc.",
        market="US",
        price=177.50,
        change=-2.95,
        change_percent=-1.63,
        direction="neutral",
        target_price=180.00,
        confidence=0.55,
        base_price=190,
        volatility=4,
        sentiment_score=-0.2,
        analysis="Cautious sentiment amid EV price competition and delivery misses.",
        news=(
            NewsSeed("Quarterly deliveries fall short of estimates", "negative", "Reuters", 1),
            NewsSeed("Price cuts pressure automotive margins", "negative", "WSJ", 4),
            NewsSeed("Energy storage deployments reach new high", "positive", "Electrek", 6),
        ),
    ),
    StockSeed(
        symbol="RELIANCE.NS",
        name="Reliance Industries Ltd.",
        market="India",
        price=2915.40,
        change=18.35,
        change_percent=0.63,
        direction="up",
        target_price=3150.00,
        confidence=0.74,
        base_price=2750,
        volatility=30,
        sentiment_score=0.58,
        analysis="Positive sentiment on retail and telecom expansion.",
        news=(
            NewsSeed("Jio subscriber additions beat estimates", "positive", "Economic Times", 1),
            NewsSeed("Refining margins soften", "negative", "Mint", 3),
        ),
    ),
    StockSeed(
        symbol="TCS.NS",
        name="Tata Consultancy Services Ltd.",
        market="India",
        price=3890.15,
        change=-22.60,
        change_percent=-0.58,
        direction="neutral",
        target_price=3950.00,
        confidence=0.62,
        base_price=3800,
        volatility=35,
        sentiment_score=0.1,
        analysis="Neutral sentiment as deal wins offset weak discretionary spending.",
        news=(
            NewsSeed("Large deal wins lift order book", "positive", "Business Standard", 2),
            NewsSeed("US clients trim discretionary IT budgets", "negative", "Moneycontrol", 4),
        ),
    ),
    StockSeed(
        symbol="INFY.NS",
        name="Infosys Ltd.",
        market="India",
        price=1502.80,
        change=-12.45,
        change_percent=-0.82,
        direction="down",
        target_price=1420.00,
        confidence=0.58,
        base_price=1550,
        volatility=18,
        sentiment_score=-0.3,
        analysis="Negative sentiment after a revenue guidance cut.",
        news=(
            NewsSeed("Revenue guidance trimmed for the year", "negative", "Economic Times", 1),
            NewsSeed("Generative AI practice gains traction", "positive", "Mint", 5),
        ),
    ),
    StockSeed(
        symbol="HDFCBANK.NS",
        name="HDFC Bank Ltd.",
        market="India",
        price=1548.25,
        change=9.80,
        change_percent=0.64,
        direction="up",
        target_price=1700.00,
        confidence=0.7,
        base_price=1480,
        volatility=15,
        sentiment_score=0.42,
        analysis="Improving sentiment as merger integration progresses.",
        news=(
            NewsSeed("Deposit growth picks up after merger", "positive", "Business Standard", 2),
            NewsSeed("Net interest margin under pressure", "negative", "Moneycontrol", 3),
        ),
    ),
)


def build_stock(
    seed: StockSeed,
    *,
    days: int,
    realtime_points: int,
    rng: random.Random,
    today: date,
) -> StockRecord:
    return StockRecord(
        symbol=seed.symbol,
        name=seed.name,
        market=seed.market,
        price=seed.price,
        change=seed.change,
        change_percent=seed.change_percent,
        prediction=Prediction(
            direction=seed.direction,
            target_price=seed.target_price,
            confidence=seed.confidence,
            time_frame="3 months",
        ),
        sentiment=Sentiment(
            score=seed.sentiment_score,
            analysis=seed.analysis,
            news_items=[
                NewsItem(
                    title=news.title,
                    sentiment=news.sentiment,
                    source=news.source,
                    date=today - timedelta(days=news.days_ago),
                )
                for news in seed.news
            ],
        ),
        historical_data=generate_historical_data(
            seed.base_price,
            seed.volatility,
            days,
            include_volume=True,
            rng=rng,
            today=today,
        ),
        realtime_data=generate_realtime_data(
            seed.price,
            realtime_points,
            rng=rng,
            tz=market_timezone(seed.market),
        ),
    )


class StockCatalog:
    """
    🗂️ Ordered, symbol-unique collection of stock records.

    Lookups never raise for unknown symbols; they return None (or an empty
    list) and callers are expected to check.
    """

    def __init__(self, stocks: list[StockRecord]) -> None:
        self._stocks: list[StockRecord] = []
        self._by_symbol: dict[str, StockRecord] = {}
        for stock in stocks:
            key = stock.symbol.upper()
            if key in self._by_symbol:
                raise ValueError(f"Duplicate symbol in catalog: {stock.symbol}")
            self._by_symbol[key] = stock
            self._stocks.append(stock)

    def __len__(self) -> int:
        return len(self._stocks)

    def __iter__(self):
        return iter(self._stocks)

    def symbols(self) -> list[str]:
        return [stock.symbol for stock in self._stocks]

    def search(self, query: str) -> list[StockRecord]:
        """Case-insensitive substring match on symbol or name, in catalog order."""
        if not query:
            return []

        normalized = query.lower()
        return [
            stock
            for stock in self._stocks
            if normalized in stock.symbol.lower() or normalized in stock.name.lower()
        ]

    def get_by_symbol(self, symbol: str) -> StockRecord | None:
        return self._by_symbol.get(symbol.upper())

    def get_by_market(self, market: MarketType) -> list[StockRecord]:
        return [stock for stock in self._stocks if stock.market == market]

    def append_tick(
        self, symbol: str, rng: random.Random | None = None
    ) -> StockRecord | None:
        """
        Extend a stock's real-time series by one synthetic tick.

        The stock's price and change fields follow the new tick. Returns the
        updated record, or None for unknown symbols.
        """
        stock = self.get_by_symbol(symbol)
        if stock is None:
            return None

        ticks = stock.realtime_data or []
        last_timestamp = ticks[-1].timestamp if ticks else None
        last_price = ticks[-1].price if ticks else stock.price
        tick = next_tick(last_price, last_timestamp, rng=rng)

        previous_close = stock.price - stock.change
        stock.realtime_data = [*ticks, tick]
        stock.price = tick.price
        stock.change = round(tick.price - previous_close, 2)
        stock.change_percent = (
            round(stock.change / previous_close * 100, 2) if previous_close else 0.0
        )
        return stock


def build_catalog(
    seeds: tuple[StockSeed, ...] = STOCK_SEEDS,
    *,
    days: int | None = None,
    realtime_points: int | None = None,
    rng: random.Random | None = None,
    today: date | None = None,
) -> StockCatalog:
    """Generate a catalog from its seed table."""
    rng = rng or random.Random()
    today = today or date.today()
    days = days or settings.history_days
    realtime_points = realtime_points or settings.realtime_points

    catalog = StockCatalog(
        [
            build_stock(
                seed, days=days, realtime_points=realtime_points, rng=rng, today=today
            )
            for seed in seeds
        ]
    )
    logger.info(
        "Generated stock catalog symbols={count} days={days}",
        count=len(catalog),
        days=days,
    )
    return catalog


@lru_cache(maxsize=1)
def get_catalog() -> StockCatalog:
    """The process-wide catalog, generated on first use."""
    return build_catalog()


def reset_catalog() -> StockCatalog:
    """Discard the cached catalog and generate a fresh one."""
    get_catalog.cache_clear()
    return get_catalog()
