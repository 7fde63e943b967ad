"""
Bot replies for free-text chat input.

Every lookup here is an ordered table scanned top to bottom, and the first
match wins. Table order therefore decides which reply a message gets
("Apple vs Microsoft" answers about Apple) and must not be reshuffled.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

import sentry_sdk

from stockwhisperer.catalog import StockCatalog, get_catalog
from stockwhisperer.inference import InferenceClient, normalize_sentiment
from stockwhisperer.insights import percent_to_target
from stockwhisperer.logging import logger
from stockwhisperer.models import MarketType, Reply, StockRecord, TrendPrediction

APOLOGY_TEXT = (
    "I apologize, but I'm having trouble analyzing your request right now. "
    "Could you please try again?"
)

PROMPT_TEMPLATE = "As a stock market expert, {context}answer this question: {message}"


@dataclass(frozen=True)
class StockMention:
    symbol: str
    market: MarketType
    patterns: tuple[re.Pattern[str], ...]


@dataclass(frozen=True)
class MarketMention:
    market: MarketType
    pattern: re.Pattern[str]


@dataclass(frozen=True)
class ResponseRule:
    """A (predicate, handler) pair; the handler runs only if the predicate matches."""

    name: str
    predicate: Callable[[str], bool]
    handler: Callable[[str], str]


def _words(*words: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(rf"\b{re.escape(w)}\b", re.IGNORECASE) for w in words)


def _matches(pattern: str) -> Callable[[str], bool]:
    compiled = re.compile(pattern, re.IGNORECASE)
    return lambda text: compiled.search(text) is not None


def _canned(text: str) -> Callable[[str], str]:
    return lambda _message: text


STOCK_MENTIONS: tuple[StockMention, ...] = (
    StockMention("AAPL", "US", _words("aapl", "apple")),
    StockMention("MSFT", "US", _words("msft", "microsoft")),
    StockMention("GOOGL", "US", _words("googl", "google", "alphabet")),
    StockMention("AMZN", "US", _words("amzn", "amazon")),
    StockMention("META", "US", _words("meta", "facebook", "fb")),
    StockMention("TSLA", "US", _words("tsla", "tesla")),
    StockMention("RELIANCE.NS", "India", _words("reliance.ns", "reliance")),
    StockMention("TCS.NS", "India", _words("tcs.ns", "tcs", "tata consultancy")),
    StockMention("INFY.NS", "India", _words("infy.ns", "infy", "infosys")),
    StockMention("HDFCBANK.NS", "India", _words("hdfcbank.ns", "hdfcbank", "hdfc")),
)

MARKET_MENTIONS: tuple[MarketMention, ...] = (
    MarketMention(
        "India",
        re.compile(r"\b(indian?\s+(stock\s+)?market|india|nifty|sensex|nse|bse)\b", re.IGNORECASE),
    ),
    MarketMention(
        "US",
        re.compile(
            r"(?-i:\bUS\b|\bU\.S\.)\s+(stock\s+)?market\b"
            r"|\b(american\s+market|wall\s+street|s&p|nasdaq|dow)\b",
            re.IGNORECASE,
        ),
    ),
)

RESPONSE_RULES: tuple[ResponseRule, ...] = (
    ResponseRule(
        "apple",
        _matches(r"apple|aapl"),
        _canned(
            "Based on my analysis, Apple (AAPL) shows strong fundamentals with potential "
            "upside. Their consistent innovation in product lines and services suggests "
            "continued growth. I predict a target price of $195.50 in the next 3 months "
            "with 78% confidence."
        ),
    ),
    ResponseRule(
        "microsoft",
        _matches(r"microsoft|msft"),
        _canned(
            "Microsoft (MSFT) appears well-positioned for growth due to their cloud "
            "business expansion and strategic AI investments. My analysis indicates a "
            "target price of $440.00 in the next 3 months with 65% confidence."
        ),
    ),
    ResponseRule(
        "alphabet",
        _matches(r"google|alphabet|googl"),
        _canned(
            "Alphabet (GOOGL) shows positive momentum from their advertising business "
            "recovery and AI advancements. My prediction points to a target price of "
            "$175.00 over the next 3 months with 72% confidence."
        ),
    ),
    ResponseRule(
        "amazon",
        _matches(r"amazon|amzn"),
        _canned(
            "Amazon (AMZN) demonstrates continued e-commerce dominance and AWS growth "
            "potential. I project a target price of $190.00 in the next 3 months with 68% "
            "confidence based on market trends and company performance."
        ),
    ),
    ResponseRule(
        "meta",
        _matches(r"meta|fb|facebook"),
        _canned(
            "Meta Platforms (META) is showing strong performance with their advertising "
            "business rebound and metaverse investments. I predict a target price of "
            "$500.00 in the next 3 months with 81% confidence."
        ),
    ),
    ResponseRule(
        "tesla",
        _matches(r"tesla|tsla"),
        _canned(
            "Tesla (TSLA) faces both opportunities and challenges in the current market. "
            "My analysis suggests a neutral outlook with a target price of $180.00 in the "
            "next 3 months with 55% confidence due to increased EV competition and "
            "production concerns."
        ),
    ),
    ResponseRule(
        "reliance",
        _matches(r"\breliance\b"),
        _canned(
            "Reliance Industries (RELIANCE.NS) benefits from steady growth in its retail "
            "and Jio telecom businesses. I predict a target price of ₹3,150.00 in the "
            "next 3 months with 74% confidence."
        ),
    ),
    ResponseRule(
        "tcs",
        _matches(r"\btcs\b|tata consultancy"),
        _canned(
            "Tata Consultancy Services (TCS.NS) has a healthy order book, but weak "
            "discretionary IT spending limits near-term upside. My outlook is neutral "
            "with a target price of ₹3,950.00 in the next 3 months with 62% confidence."
        ),
    ),
    ResponseRule(
        "infosys",
        _matches(r"\binfosys\b|\binfy\b"),
        _canned(
            "Infosys (INFY.NS) faces pressure after trimming its revenue guidance. I see "
            "potential downside to ₹1,420.00 over the next 3 months with 58% confidence."
        ),
    ),
    ResponseRule(
        "hdfc",
        _matches(r"\bhdfc(bank)?\b"),
        _canned(
            "HDFC Bank (HDFCBANK.NS) is regaining momentum as its merger integration "
            "progresses. I predict a target price of ₹1,700.00 in the next 3 months with "
            "70% confidence."
        ),
    ),
    ResponseRule(
        "indian_market",
        _matches(r"\b(indian?|nifty|sensex|nse|bse)\b"),
        _canned(
            "The Indian market remains resilient, with the Nifty 50 and Sensex supported "
            "by strong domestic inflows. Banking and consumption names look well placed, "
            "while IT services may stay range-bound until global tech spending recovers."
        ),
    ),
    ResponseRule(
        "market",
        _matches(r"market|outlook|general|overall"),
        _canned(
            "The overall market outlook appears cautiously optimistic with potential "
            "volatility due to interest rate policies and global economic factors. "
            "Technology and AI-related sectors may outperform over the next quarter, while "
            "traditional retail and energy sectors face challenges."
        ),
    ),
    ResponseRule(
        "prediction",
        _matches(r"prediction|forecast|estimate"),
        _canned(
            "When making predictions, I analyze historical data patterns, company "
            "fundamentals, market trends, and sector performance. Keep in mind that all "
            "predictions involve uncertainty and should be considered as one input among "
            "many for investment decisions."
        ),
    ),
    ResponseRule(
        "help",
        _matches(r"help|how|what can you do"),
        _canned(
            "I'm the Stock Whisperer Bot! You can ask me about stock predictions for "
            "popular companies (like AAPL, MSFT, GOOGL), Indian stocks (like TCS or "
            "Reliance), market trends, or search for specific stocks. I provide price "
            "targets based on historical data analysis."
        ),
    ),
)

FALLBACK_RULES: tuple[ResponseRule, ...] = (
    ResponseRule(
        "sentiment",
        _matches(r"\bsentiment"),
        _canned(
            "Sentiment analysis scores recent news and market chatter from -1 (bearish) "
            "to 1 (bullish). Select a stock to see its sentiment breakdown and the "
            "headlines behind it, or ask me about a specific company."
        ),
    ),
    ResponseRule(
        "realtime",
        _matches(r"real[\s-]?time|live\s+(price|data|quote)"),
        _canned(
            "Real-time prices are simulated minute by minute during market hours. Pick a "
            "stock to follow its live ticks, or ask me about a specific company for a "
            "price prediction."
        ),
    ),
)


def build_no_match_text(catalog: StockCatalog) -> str:
    """The final fallback reply, listing every symbol the bot knows about."""
    known = ", ".join(f"{stock.name} ({stock.symbol})" for stock in catalog)
    return (
        "I don't have specific information about that stock or topic yet. You can ask "
        f"about popular stocks like {known}, or about general market trends."
    )


@dataclass
class Detection:
    """Stocks and markets mentioned in a message, in detection order."""

    symbols: list[str] = field(default_factory=list)
    markets: list[MarketType] = field(default_factory=list)

    @property
    def market(self) -> MarketType | None:
        return self.markets[0] if self.markets else None


class MentionListener(Protocol):
    """
    🎭 Protocol for whoever follows what the user is talking about.

    The resolver calls these hooks during detection, e.g. so a dashboard
    can switch its chart to the mentioned stock.
    """

    def on_stock_mentioned(self, symbol: str) -> None: ...

    def on_market_selected(self, market: MarketType) -> None: ...


class ResponseResolver:
    """
    🤖 Turns chat messages into bot replies.

    ``resolve`` is a pure lookup over the rule tables. ``respond`` adds
    detection and a trend prediction; ``resolve_with_enrichment``
    additionally consults the inference client when it is ready.
    """

    def __init__(
        self,
        catalog: StockCatalog | None = None,
        *,
        inference: InferenceClient | None = None,
        rules: tuple[ResponseRule, ...] = RESPONSE_RULES,
        fallback_rules: tuple[ResponseRule, ...] = FALLBACK_RULES,
        stock_mentions: tuple[StockMention, ...] = STOCK_MENTIONS,
        market_mentions: tuple[MarketMention, ...] = MARKET_MENTIONS,
        listeners: list[MentionListener] | None = None,
    ) -> None:
        self.catalog = catalog if catalog is not None else get_catalog()
        self.inference = inference
        self.rules = rules
        self.fallback_rules = fallback_rules
        self.stock_mentions = stock_mentions
        self.market_mentions = market_mentions
        self.listeners: list[MentionListener] = list(listeners or [])
        self.no_match_text = build_no_match_text(self.catalog)

    def add_listener(self, listener: MentionListener) -> None:
        self.listeners.append(listener)

    def detect(self, text: str) -> Detection:
        """
        Find mentioned stocks and markets, notifying listeners as they are found.

        A stock is recorded once even if several of its patterns match.
        Market names are picked up independently of stock mentions.
        """
        detection = Detection()

        for mention in self.stock_mentions:
            if any(pattern.search(text) for pattern in mention.patterns):
                detection.symbols.append(mention.symbol)
                for listener in self.listeners:
                    listener.on_stock_mentioned(mention.symbol)
                self._add_market(detection, mention.market)

        for market_mention in self.market_mentions:
            if market_mention.pattern.search(text):
                self._add_market(detection, market_mention.market)

        if detection.symbols or detection.markets:
            sentry_sdk.add_breadcrumb(
                category="chat",
                message="Detected mentions",
                level="info",
                data={"symbols": detection.symbols, "markets": detection.markets},
            )
        return detection

    def _add_market(self, detection: Detection, market: MarketType) -> None:
        if market in detection.markets:
            return
        detection.markets.append(market)
        for listener in self.listeners:
            listener.on_market_selected(market)

    def resolve(self, text: str) -> str:
        """Return the canned reply of the first matching rule."""
        for rule in (*self.rules, *self.fallback_rules):
            if rule.predicate(text):
                logger.debug("Matched response rule rule={rule}", rule=rule.name)
                return rule.handler(text)

        logger.debug("No response rule matched")
        return self.no_match_text

    def trend_prediction(self, symbol: str) -> TrendPrediction | None:
        stock = self.catalog.get_by_symbol(symbol)
        if stock is None:
            return None

        return TrendPrediction(
            symbol=stock.symbol,
            direction=stock.prediction.direction,
            target_price=stock.prediction.target_price,
            confidence=stock.prediction.confidence,
            time_frame=stock.prediction.time_frame,
            percent_change=round(percent_to_target(stock), 2),
        )

    def respond(self, text: str, detection: Detection | None = None) -> Reply:
        """
        Canned reply with detected symbols and the first symbol's prediction.

        Pass ``detection`` when the message was already scanned, so listeners
        are not notified twice.
        """
        if detection is None:
            detection = self.detect(text)
        trend = self.trend_prediction(detection.symbols[0]) if detection.symbols else None
        return Reply(
            text=self.resolve(text),
            detected_symbols=detection.symbols,
            market=detection.market,
            trend_prediction=trend,
        )

    def build_prompt(self, text: str, stock: StockRecord | None = None) -> str:
        context = ""
        if stock is not None:
            prediction = stock.prediction
            context = (
                f"given that {stock.name} ({stock.symbol}) trades at {stock.price:.2f} "
                f"({stock.change_percent:+.2f}% today) with a {prediction.direction} "
                f"outlook, a {prediction.time_frame} target of "
                f"{prediction.target_price:.2f} and {prediction.confidence:.0%} "
                "confidence, "
            )
        return PROMPT_TEMPLATE.format(context=context, message=text)

    async def resolve_with_enrichment(
        self, text: str, *, enrich: bool = True, detection: Detection | None = None
    ) -> Reply:
        """
        Reply to a message, using the inference client when it is ready.

        Falls back to ``respond`` unless enrichment is requested and both
        models report loaded. Errors from the inference client are logged
        and turned into an apology reply; they are never raised.
        """
        reply = self.respond(text, detection)

        if not enrich or self.inference is None:
            return reply
        if not self.inference.status.is_ready():
            logger.debug(
                "Inference not ready, using canned reply status={status}",
                status=self.inference.status.snapshot(),
            )
            return reply

        stock = (
            self.catalog.get_by_symbol(reply.detected_symbols[0])
            if reply.detected_symbols
            else None
        )
        sentry_sdk.add_breadcrumb(
            category="inference",
            message="Enriching chat reply",
            level="info",
            data={"symbols": reply.detected_symbols},
        )

        try:
            sentiment = normalize_sentiment(await self.inference.classify_sentiment(text))
            generated = await self.inference.generate_text(self.build_prompt(text, stock))
        except Exception as e:
            logger.error("Enrichment failed error={error}", error=str(e))
            sentry_sdk.capture_exception(e)
            return reply.model_copy(update={"text": APOLOGY_TEXT, "degraded": True})

        return reply.model_copy(
            update={
                "text": generated or reply.text,
                "sentiment": sentiment,
                "used_ai": True,
            }
        )
