import argparse
import asyncio
import sys

import sentry_sdk

from stockwhisperer.catalog import get_catalog
from stockwhisperer.chat import ChatSession
from stockwhisperer.config import settings
from stockwhisperer.inference import TransformersInference
from stockwhisperer.insights import (
    confidence_label,
    format_number,
    format_price,
    investment_insight,
    percent_to_target,
    sentiment_label,
)
from stockwhisperer.logging import logger
from stockwhisperer.market_hours import is_market_open
from stockwhisperer.models import StockRecord
from stockwhisperer.resolver import ResponseResolver

DISCLAIMER = (
    "Predictions and sentiment are simulated for demonstration purposes only and "
    "are not financial advice."
)


def init_sentry() -> None:
    if not settings.sentry_dsn:
        return

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.sentry_environment,
        traces_sample_rate=settings.sentry_traces_sample_rate,
        integrations=[],
        attach_stacktrace=True,
    )
    logger.info(
        "Sentry initialized environment={environment} traces_sample_rate={traces_sample_rate}",
        environment=settings.sentry_environment,
        traces_sample_rate=settings.sentry_traces_sample_rate,
    )


def describe_stock(stock: StockRecord) -> str:
    """Multi-line quote card for the terminal."""
    prediction = stock.prediction
    insight = investment_insight(stock)
    last_volume = stock.historical_data[-1].volume if stock.historical_data else None
    lines = [
        f"{stock.name} ({stock.symbol}) · {stock.market}",
        f"Price: {format_price(stock)}",
        f"Volume (last session): {format_number(last_volume)}",
        f"Market: {'open' if is_market_open(stock.market) else 'closed'}",
        (
            f"Prediction: {prediction.direction} to {prediction.target_price:,.2f} "
            f"({percent_to_target(stock):+.2f}%) in {prediction.time_frame}, "
            f"{confidence_label(prediction.confidence)}"
        ),
        (
            f"Sentiment: {stock.sentiment.score:+.2f} "
            f"{sentiment_label(stock.sentiment.score)} · {stock.sentiment.analysis}"
        ),
        f"Insight: {insight.summary} Risk: {insight.risk}. {insight.recommendation}.",
    ]
    for news in stock.sentiment.news_items:
        lines.append(f"  [{news.sentiment}] {news.title} ({news.source}, {news.date})")
    return "\n".join(lines)


def build_resolver() -> ResponseResolver:
    inference = TransformersInference() if settings.ai_enabled else None
    return ResponseResolver(get_catalog(), inference=inference)


async def chat_loop(session: ChatSession) -> None:
    """Interactive chat on stdin/stdout until EOF or 'quit'."""
    inference = session.resolver.inference
    loading = asyncio.ensure_future(inference.initialize()) if inference else None

    print(session.transcript[0].text)
    try:
        while True:
            try:
                text = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            if text.strip().lower() in {"quit", "exit"}:
                break
            if not text.strip():
                continue

            message = await session.send(text).wait()
            if message is not None:
                print(message.text)
    finally:
        session.cancel_pending()
        if loading is not None and not loading.done():
            loading.cancel()


def show_status(resolver: ResponseResolver) -> None:
    if resolver.inference is None:
        print("AI enrichment disabled (set AI_ENABLED=true to load models)")
    else:
        status = resolver.inference.status
        for name, state in status.snapshot().items():
            print(f"{name}: {state}")
        print(f"progress: {status.progress()}%")

    for market in ("US", "India"):
        state = "open" if is_market_open(market) else "closed"
        print(f"{market} market: {state}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stockwhisperer", description="Stock Whisperer demo bot"
    )
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("chat", help="Chat with the bot (default)")
    quote = subparsers.add_parser("quote", help="Show a stock's card")
    quote.add_argument("symbol")
    search = subparsers.add_parser("search", help="Search symbols and names")
    search.add_argument("query")
    subparsers.add_parser("status", help="Show model and market status")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    init_sentry()

    logger.info("Starting Stock Whisperer command={command}", command=args.command or "chat")
    catalog = get_catalog()

    if args.command == "quote":
        stock = catalog.get_by_symbol(args.symbol)
        if stock is None:
            print(f"Unknown symbol: {args.symbol}", file=sys.stderr)
            return 1
        print(describe_stock(stock))
        print(DISCLAIMER)
        return 0

    if args.command == "search":
        results = catalog.search(args.query)
        if not results:
            print(f"No stocks match '{args.query}'")
            return 1
        for stock in results:
            print(f"{stock.symbol:<12} {stock.name} ({stock.market})")
        return 0

    resolver = build_resolver()
    if args.command == "status":
        show_status(resolver)
        return 0

    try:
        asyncio.run(chat_loop(ChatSession(resolver)))
    except KeyboardInterrupt:  # pragma: no cover
        logger.info("Stopping chat")
    print(DISCLAIMER)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
