"""Tests for chat sessions and selection state."""

import asyncio
from unittest.mock import patch

import pytest

from stockwhisperer.chat import GREETING, ChatSession, Selection
from stockwhisperer.resolver import ResponseResolver


@pytest.fixture(autouse=True)
def mock_sentry():
    with patch("stockwhisperer.resolver.sentry_sdk"):
        yield


@pytest.fixture
def resolver(catalog):
    return ResponseResolver(catalog)


@pytest.fixture
def session(resolver):
    return ChatSession(resolver, reply_delay=0, enrich=False)


class TestSelection:
    """Test cases for dashboard selection state."""

    def test_defaults(self, catalog):
        selection = Selection(catalog)
        assert selection.selected_stock is None
        assert selection.selected_market == "US"

    def test_stock_mention_selects_stock_and_market(self, catalog):
        selection = Selection(catalog)
        selection.on_stock_mentioned("TCS.NS")
        assert selection.selected_symbol == "TCS.NS"
        assert selection.selected_market == "India"

    def test_unknown_stock_mention_is_ignored(self, catalog):
        selection = Selection(catalog)
        selection.on_stock_mentioned("NOPE")
        assert selection.selected_stock is None

    def test_market_switch_selects_first_stock(self, catalog):
        selection = Selection(catalog)
        selection.select_stock("AAPL")

        selection.on_market_selected("India")

        assert selection.selected_market == "India"
        assert selection.selected_symbol == "RELIANCE.NS"

    def test_market_switch_keeps_matching_stock(self, catalog):
        selection = Selection(catalog)
        selection.select_stock("MSFT")

        selection.select_market("US")

        assert selection.selected_symbol == "MSFT"


class TestChatSession:
    """Test cases for ChatSession."""

    def test_starts_with_greeting(self, session):
        assert len(session.transcript) == 1
        greeting = session.transcript[0]
        assert greeting.id == 1
        assert greeting.sender == "bot"
        assert greeting.text == GREETING

    @pytest.mark.asyncio
    async def test_send_appends_user_then_bot(self, session):
        pending = session.send("What about Apple?")

        user = session.transcript[-1]
        assert user.sender == "user"
        assert user.text == "What about Apple?"

        message = await pending.wait()

        assert message.sender == "bot"
        assert message.kind == "prediction"
        assert message.detected_symbols == ["AAPL"]
        assert message.trend_prediction.symbol == "AAPL"
        assert message.sentiment is None
        assert [m.id for m in session.transcript] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_selection_updates_on_send(self, session):
        session.send("how is the sensex?")
        assert session.selection.selected_market == "India"
        assert session.selection.selected_symbol == "RELIANCE.NS"
        await session.drain()

    @pytest.mark.asyncio
    async def test_no_match_reply_is_suggestion(self, session, resolver):
        message = await session.send("xyzzy").wait()
        assert message.kind == "suggestion"
        assert message.text == resolver.no_match_text

    @pytest.mark.asyncio
    async def test_plain_reply_kind(self, session):
        message = await session.send("help").wait()
        assert message.kind == "text"

    def test_blank_message_rejected(self, session):
        with pytest.raises(ValueError):
            session.send("   ")
        assert len(session.transcript) == 1

    @pytest.mark.asyncio
    async def test_reply_waits_for_delay(self, resolver):
        session = ChatSession(resolver, reply_delay=0.05, enrich=False)

        pending = session.send("tesla")
        await asyncio.sleep(0)
        assert not pending.done()
        assert session.transcript[-1].sender == "user"

        await pending.wait()
        assert session.transcript[-1].sender == "bot"

    @pytest.mark.asyncio
    async def test_cancelled_reply_never_lands(self, resolver):
        session = ChatSession(resolver, reply_delay=0.05, enrich=False)

        pending = session.send("tesla")
        assert pending.cancel() is True

        assert await pending.wait() is None
        assert pending.cancelled()
        assert [m.sender for m in session.transcript] == ["bot", "user"]

    @pytest.mark.asyncio
    async def test_cancel_pending(self, resolver):
        session = ChatSession(resolver, reply_delay=0.05, enrich=False)
        session.send("apple")
        session.send("tesla")

        assert session.cancel_pending() == 2
        assert await session.drain() == []
        assert [m.sender for m in session.transcript] == ["bot", "user", "user"]

    @pytest.mark.asyncio
    async def test_drain_includes_replies_landed_before_pending_read(self, session):
        pending = session.send("apple")
        await pending.wait()

        assert session.pending == []
        delivered = await session.drain()

        assert [m.detected_symbols for m in delivered] == [["AAPL"]]
        assert len(session.transcript) == 3

    @pytest.mark.asyncio
    async def test_cancel_pending_keeps_landed_replies_for_drain(self, session):
        await session.send("apple").wait()

        assert session.cancel_pending() == 0
        assert len(await session.drain()) == 1

    @pytest.mark.asyncio
    async def test_replies_land_in_send_order(self, catalog, fake_inference):
        # The first answer takes longer to generate than the second
        fake_inference.delays = {"Apple": 0.1}
        fake_inference.generated = "generated"
        resolver = ResponseResolver(catalog, inference=fake_inference)
        session = ChatSession(resolver, reply_delay=0, enrich=True)

        first = session.send("Apple?")
        second = session.send("Tesla?")
        delivered = await session.drain()

        assert [m.detected_symbols for m in delivered] == [["AAPL"], ["TSLA"]]
        assert (await first.wait()).id < (await second.wait()).id
        assert [m.sender for m in session.transcript] == ["bot", "user", "user", "bot", "bot"]
        ids = [m.id for m in session.transcript]
        assert ids == sorted(ids)
        assert delivered[0].sentiment == pytest.approx(0.9)

    @pytest.mark.asyncio
    async def test_cancelled_earlier_reply_does_not_block_later(self, resolver):
        session = ChatSession(resolver, reply_delay=0.05, enrich=False)
        first = session.send("apple")
        second = session.send("tesla")
        first.cancel()

        message = await second.wait()

        assert message.detected_symbols == ["TSLA"]
        assert first.cancelled()

    def test_defaults_come_from_settings(self, resolver):
        with patch("stockwhisperer.chat.settings") as mock_settings:
            mock_settings.reply_delay_seconds = 2.5
            mock_settings.ai_enabled = True
            session = ChatSession(resolver)

        assert session.reply_delay == 2.5
        assert session.enrich is True
