"""Figures and wording shown next to a selected stock."""

from dataclasses import dataclass

import polars as pl

from stockwhisperer.models import MarketType, StockRecord

CURRENCY_SYMBOLS: dict[MarketType, str] = {"US": "$", "India": "₹"}

LABEL_EVERY = 7
SMA_WINDOW = 20


@dataclass(frozen=True)
class Insight:
    summary: str
    risk: str
    recommendation: str
    sentiment: str


def format_number(num: float | int | None) -> str:
    """Format large numbers with K, M, B suffixes"""
    if num is None:
        return "N/A"
    if num >= 1_000_000_000:
        return f"{num / 1_000_000_000:.1f}B"
    elif num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    elif num >= 1_000:
        return f"{num / 1_000:.0f}K"
    else:
        return str(int(num))


def format_price(stock: StockRecord) -> str:
    """e.g. ``$182.63 +1.25 (0.69%)``"""
    currency = CURRENCY_SYMBOLS[stock.market]
    sign = "+" if stock.change >= 0 else ""
    return (
        f"{currency}{stock.price:,.2f} {sign}{stock.change:.2f} "
        f"({stock.change_percent:.2f}%)"
    )


def percent_to_target(stock: StockRecord) -> float:
    """Percent move from the current price to the predicted target."""
    return (stock.prediction.target_price - stock.price) / stock.price * 100


def confidence_label(confidence: float) -> str:
    if confidence >= 0.75:
        return "High Confidence"
    if confidence >= 0.5:
        return "Moderate Confidence"
    return "Low Confidence"


def sentiment_label(score: float) -> str:
    """
    Classify a [-1, 1] sentiment score.

    The score is rescaled to [0, 1] first; 0.6 and above is bullish, 0.4 and
    above neutral, anything lower bearish.
    """
    scaled = (score + 1) / 2
    if scaled >= 0.6:
        return "Bullish"
    if scaled >= 0.4:
        return "Neutral"
    return "Bearish"


def chart_frame(stock: StockRecord) -> pl.DataFrame:
    """
    Historical prices prepared for a line chart.

    Only every 7th date (and the last one) carries a ``display_date`` label
    so the axis stays readable. ``sma_20`` is null until 20 points exist.
    """
    if not stock.historical_data:
        return pl.DataFrame(
            schema={
                "date": pl.Date,
                "price": pl.Float64,
                "volume": pl.Int64,
                "display_date": pl.Utf8,
                "sma_20": pl.Float64,
            }
        )

    last_index = len(stock.historical_data) - 1
    return (
        pl.DataFrame(
            [point.model_dump() for point in stock.historical_data],
            schema={"date": pl.Date, "price": pl.Float64, "volume": pl.Int64},
        )
        .with_row_index("index")
        .with_columns(
            pl.when((pl.col("index") % LABEL_EVERY == 0) | (pl.col("index") == last_index))
            .then(pl.col("date").dt.strftime("%Y-%m-%d"))
            .otherwise(pl.lit(""))
            .alias("display_date")
        )
        .with_columns(pl.col("price").rolling_mean(window_size=SMA_WINDOW).alias("sma_20"))
        .drop("index")
    )


def price_domain(stock: StockRecord) -> tuple[float, float]:
    """Y-axis bounds with 5% padding, wide enough to include the target price."""
    prices = [point.price for point in stock.historical_data] or [stock.price]
    low = min(prices) * 0.95
    high = max(max(prices), stock.prediction.target_price) * 1.05
    return low, high


def investment_insight(stock: StockRecord) -> Insight:
    prediction = stock.prediction
    if prediction.direction == "up":
        outlook = "positive momentum with strong fundamentals"
        recommendation = "Consider Buy"
    elif prediction.direction == "down":
        outlook = "concerning trends with potential downside risk"
        recommendation = "Consider Sell"
    else:
        outlook = "mixed signals with unclear directional bias"
        recommendation = "Hold/Monitor"

    if prediction.confidence > 0.7:
        risk = "Lower"
    elif prediction.confidence > 0.5:
        risk = "Moderate"
    else:
        risk = "Higher"

    scaled = (stock.sentiment.score + 1) / 2
    if scaled >= 0.6:
        sentiment = "Positive"
    elif scaled >= 0.4:
        sentiment = "Neutral"
    else:
        sentiment = "Negative"

    return Insight(
        summary=f"{stock.name} ({stock.symbol}) shows {outlook}.",
        risk=risk,
        recommendation=recommendation,
        sentiment=sentiment,
    )
