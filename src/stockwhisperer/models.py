"""Data models for stockwhisperer."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MarketType = Literal["US", "India"]
DirectionType = Literal["up", "down", "neutral"]
PolarityType = Literal["positive", "negative", "neutral"]
SenderType = Literal["user", "bot"]
MessageKind = Literal["text", "suggestion", "prediction"]


class PricePoint(BaseModel):
    """One daily entry of a historical price series."""

    date: date
    price: float = Field(..., gt=0, description="Closing price")
    volume: int | None = Field(None, ge=0, description="Traded volume, if simulated")


class Tick(BaseModel):
    """One synthetic real-time price sample."""

    timestamp: datetime
    price: float = Field(..., gt=0)
    change: float = Field(..., description="Delta from the previous tick")


class Prediction(BaseModel):
    direction: DirectionType
    target_price: float = Field(..., gt=0)
    confidence: float = Field(..., ge=0, le=1)
    time_frame: str = Field("3 months", description="Horizon label, e.g. '3 months'")


class NewsItem(BaseModel):
    title: str
    sentiment: PolarityType
    source: str
    date: date


class Sentiment(BaseModel):
    """
    Aggregate sentiment for a stock.

    The score uses the canonical [-1, 1] scale: -1 is fully bearish,
    1 is fully bullish.
    """

    score: float = Field(..., ge=-1, le=1)
    analysis: str
    news_items: list[NewsItem] = Field(default_factory=list)


class StockRecord(BaseModel):
    """
    📈 A catalog entry with its synthetic market data.

    Everything except ``realtime_data`` (and the price fields that follow
    the last tick) is fixed once the catalog has been generated.
    """

    symbol: str = Field(..., description="Ticker symbol (e.g., 'AAPL', 'TCS.NS')")
    name: str = Field(..., description="Company name (e.g., 'Apple Inc.')")
    market: MarketType
    price: float = Field(..., gt=0, description="Current price")
    change: float = Field(..., description="Absolute change since previous close")
    change_percent: float = Field(..., description="Percent change since previous close")
    prediction: Prediction
    sentiment: Sentiment
    historical_data: list[PricePoint] = Field(default_factory=list)
    realtime_data: list[Tick] | None = None


class TrendPrediction(BaseModel):
    """Prediction payload attached to bot replies that mention a stock."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    direction: DirectionType
    target_price: float
    confidence: float = Field(..., ge=0, le=1)
    time_frame: str
    percent_change: float = Field(..., description="Target vs current price, in percent")


class ChatMessage(BaseModel):
    """A transcript entry. Messages are never mutated once created."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1)
    text: str
    sender: SenderType
    timestamp: datetime
    kind: MessageKind | None = None
    sentiment: float | None = Field(None, ge=-1, le=1)
    detected_symbols: list[str] | None = None
    trend_prediction: TrendPrediction | None = None


class Reply(BaseModel):
    """Terminal record produced by the response resolver."""

    text: str
    sentiment: float | None = Field(None, ge=-1, le=1)
    detected_symbols: list[str] = Field(default_factory=list)
    market: MarketType | None = None
    trend_prediction: TrendPrediction | None = None
    used_ai: bool = False
    degraded: bool = Field(
        False, description="True when enrichment was attempted but failed"
    )
