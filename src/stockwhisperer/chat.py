"""Chat transcript, selection state and delayed bot replies."""

import asyncio
import itertools
from datetime import datetime

import pytz

from stockwhisperer.catalog import StockCatalog
from stockwhisperer.config import settings
from stockwhisperer.logging import logger
from stockwhisperer.models import ChatMessage, MarketType, MessageKind, Reply, StockRecord
from stockwhisperer.resolver import ResponseResolver

GREETING = (
    "Hello! I'm the Stock Whisperer Bot. I can provide stock predictions and market "
    "insights. Ask me about a stock like AAPL or MSFT, Indian stocks like TCS, or "
    "about general market trends!"
)


class Selection:
    """
    Which stock and market the user is looking at.

    Implements the resolver's MentionListener hooks, so mentioning a stock in
    chat selects it.
    """

    def __init__(self, catalog: StockCatalog, market: MarketType = "US") -> None:
        self.catalog = catalog
        self.selected_symbol: str | None = None
        self.selected_market: MarketType = market

    @property
    def selected_stock(self) -> StockRecord | None:
        if self.selected_symbol is None:
            return None
        return self.catalog.get_by_symbol(self.selected_symbol)

    def select_stock(self, symbol: str) -> StockRecord | None:
        stock = self.catalog.get_by_symbol(symbol)
        if stock is not None:
            self.selected_symbol = stock.symbol
            self.selected_market = stock.market
        return stock

    def select_market(self, market: MarketType) -> None:
        """Switch market, moving the selection to that market's first stock if needed."""
        self.selected_market = market

        current = self.selected_stock
        if current is None or current.market != market:
            stocks = self.catalog.get_by_market(market)
            if stocks:
                self.selected_symbol = stocks[0].symbol

    def on_stock_mentioned(self, symbol: str) -> None:
        self.select_stock(symbol)

    def on_market_selected(self, market: MarketType) -> None:
        self.select_market(market)


class PendingReply:
    """Handle to a bot reply that has been scheduled but may not have landed yet."""

    def __init__(self, text: str, task: asyncio.Task) -> None:
        self.text = text
        self._task = task

    def cancel(self) -> bool:
        """Stop the reply from landing. Returns False if it already landed."""
        return self._task.cancel()

    def cancelled(self) -> bool:
        return self._task.cancelled()

    def done(self) -> bool:
        return self._task.done()

    async def wait(self) -> ChatMessage | None:
        """The delivered bot message, or None if the reply was cancelled."""
        try:
            return await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if self._task.cancelled():
                return None
            raise


class ChatSession:
    """
    💬 One user's conversation with the bot.

    Messages get increasing ids in transcript order. Each ``send`` schedules
    the bot's answer after ``reply_delay`` seconds; answers land in the order
    their questions were sent even when a later one resolves first.
    """

    def __init__(
        self,
        resolver: ResponseResolver,
        *,
        reply_delay: float | None = None,
        enrich: bool | None = None,
        selection: Selection | None = None,
    ) -> None:
        self.resolver = resolver
        self.reply_delay = (
            settings.reply_delay_seconds if reply_delay is None else reply_delay
        )
        self.enrich = settings.ai_enabled if enrich is None else enrich
        self.selection = selection or Selection(resolver.catalog)
        resolver.add_listener(self.selection)

        self._ids = itertools.count(1)
        self._transcript: list[ChatMessage] = []
        self._pending: list[PendingReply] = []
        self._last_task: asyncio.Task | None = None

        self._append(GREETING, "bot", kind="text")

    @property
    def transcript(self) -> tuple[ChatMessage, ...]:
        return tuple(self._transcript)

    @property
    def pending(self) -> list[PendingReply]:
        return [reply for reply in self._pending if not reply.done()]

    def _append(
        self,
        text: str,
        sender: str,
        *,
        kind: MessageKind | None = None,
        reply: Reply | None = None,
    ) -> ChatMessage:
        message = ChatMessage(
            id=next(self._ids),
            text=text,
            sender=sender,
            timestamp=datetime.now(pytz.UTC),
            kind=kind,
            sentiment=reply.sentiment if reply else None,
            detected_symbols=reply.detected_symbols if reply else None,
            trend_prediction=reply.trend_prediction if reply else None,
        )
        self._transcript.append(message)
        return message

    def send(self, text: str) -> PendingReply:
        """
        Add a user message and schedule the bot's reply.

        Must be called from a running event loop. Mentioned stocks and
        markets update ``selection`` immediately; the reply follows later.
        """
        if not text.strip():
            raise ValueError("Cannot send an empty message")

        self._append(text, "user")
        detection = self.resolver.detect(text)
        logger.info(
            "User message received symbols={symbols} market={market}",
            symbols=detection.symbols,
            market=detection.market,
        )

        task = asyncio.ensure_future(self._deliver(text, detection, self._last_task))
        self._last_task = task
        pending = PendingReply(text, task)
        self._pending.append(pending)
        return pending

    async def _deliver(self, text, detection, previous: asyncio.Task | None) -> ChatMessage:
        await asyncio.sleep(self.reply_delay)
        reply = await self.resolver.resolve_with_enrichment(
            text, enrich=self.enrich, detection=detection
        )

        # Earlier replies land first, whether they finish or get cancelled
        if previous is not None and not previous.done():
            await asyncio.wait([previous])

        if reply.trend_prediction is not None:
            kind = "prediction"
        elif reply.text == self.resolver.no_match_text:
            kind = "suggestion"
        else:
            kind = "text"
        return self._append(reply.text, "bot", kind=kind, reply=reply)

    def cancel_pending(self) -> int:
        """Cancel every reply that has not landed. Returns how many were cancelled."""
        cancelled = sum(1 for reply in self.pending if reply.cancel())
        if cancelled:
            logger.info("Cancelled pending replies count={count}", count=cancelled)
        return cancelled

    async def drain(self) -> list[ChatMessage]:
        """Wait for all scheduled replies; returns the ones that landed."""
        delivered = []
        for reply in list(self._pending):
            message = await reply.wait()
            if message is not None:
                delivered.append(message)
        self._pending = []
        return delivered
