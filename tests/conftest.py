"""Shared pytest fixtures for stockwhisperer tests."""

import asyncio
import random
from datetime import date

import pytest
from loguru import logger

from stockwhisperer.catalog import build_catalog
from stockwhisperer.inference import ModelStatus, SentimentResult


@pytest.fixture(autouse=True)
def disable_loguru():
    """Disable loguru output during tests for cleaner output."""
    logger.disable("stockwhisperer")
    yield
    logger.enable("stockwhisperer")


@pytest.fixture
def catalog():
    """A small catalog with reproducible random data."""
    return build_catalog(
        days=45, realtime_points=5, rng=random.Random(42), today=date(2024, 12, 2)
    )


class FakeInference:
    """In-memory stand-in for the Hugging Face client."""

    def __init__(self, ready=True, label="POS", score=0.9, generated="Looks strong."):
        self.status = ModelStatus()
        if ready:
            for name in ("sentiment", "generation"):
                self.status.mark_loading(name)
                self.status.mark_loaded(name)
        self.label = label
        self.score = score
        self.generated = generated
        self.prompts = []
        self.error = None
        self.delays = {}

    async def initialize(self):
        return self.status.is_ready()

    async def classify_sentiment(self, text):
        if self.error is not None:
            raise self.error
        return SentimentResult(label=self.label, score=self.score)

    async def generate_text(self, prompt, **options):
        self.prompts.append(prompt)
        for keyword, delay in self.delays.items():
            if keyword in prompt:
                await asyncio.sleep(delay)
        return self.generated


@pytest.fixture
def fake_inference():
    return FakeInference()


@pytest.fixture
def inference_factory():
    return FakeInference
