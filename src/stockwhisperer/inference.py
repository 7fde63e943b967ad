"""
Hugging Face inference for chat enrichment.

Model load state lives on a ``ModelStatus`` owned by each client instance,
so callers (and tests) can inject or inspect it instead of reading
module-level globals.
"""

import asyncio
from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol

import sentry_sdk
from pydantic import BaseModel

from stockwhisperer.config import settings
from stockwhisperer.logging import logger

SUB_MODELS = ("sentiment", "generation")

SENTIMENT_TASK = "sentiment-analysis"
GENERATION_TASK = "text-generation"


class LoadState(str, Enum):
    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class SentimentResult(BaseModel):
    label: str
    score: float


class ModelStatus:
    """
    Load state of the sentiment and generation models.

    Each sub-model moves ``not_loaded -> loading -> loaded | failed``; a
    failed model may go back to ``loading`` on a retry.
    """

    def __init__(self) -> None:
        self._states: dict[str, LoadState] = {
            name: LoadState.NOT_LOADED for name in SUB_MODELS
        }

    def get(self, name: str) -> LoadState:
        return self._states[name]

    def _set(self, name: str, state: LoadState) -> None:
        if name not in self._states:
            raise KeyError(f"Unknown sub-model: {name}")
        logger.debug(
            "Model state change model={model} old={old} new={new}",
            model=name,
            old=self._states[name].value,
            new=state.value,
        )
        self._states[name] = state

    def mark_loading(self, name: str) -> None:
        self._set(name, LoadState.LOADING)

    def mark_loaded(self, name: str) -> None:
        self._set(name, LoadState.LOADED)

    def mark_failed(self, name: str) -> None:
        self._set(name, LoadState.FAILED)

    def is_ready(self) -> bool:
        return all(state is LoadState.LOADED for state in self._states.values())

    def progress(self) -> int:
        """Overall load progress as a percentage (0, 25, 50 or 100)."""
        states = list(self._states.values())
        if all(state is LoadState.LOADED for state in states):
            return 100
        if any(state is LoadState.LOADED for state in states):
            return 50
        if any(state is LoadState.LOADING for state in states):
            return 25
        return 0

    def snapshot(self) -> dict[str, str]:
        return {name: state.value for name, state in self._states.items()}


class InferenceClient(Protocol):
    """
    🎭 Protocol for the model runtime the resolver delegates to.

    Any object with these members can enrich chat replies; tests use
    simple fakes.
    """

    status: ModelStatus

    async def initialize(self) -> bool: ...

    async def classify_sentiment(self, text: str) -> SentimentResult: ...

    async def generate_text(self, prompt: str, **options: Any) -> str: ...


def normalize_sentiment(result: SentimentResult) -> float:
    """
    Map a classifier result onto the canonical [-1, 1] sentiment scale.

    Positive labels become ``+score``, negative labels ``-score`` and
    anything else (neutral) 0. Labels are matched on their first three
    letters, which covers both ``POSITIVE`` and ``POS`` style models.
    """
    label = result.label.strip().lower()[:3]
    score = max(0.0, min(1.0, result.score))
    if label == "pos":
        return score
    if label == "neg":
        return -score
    return 0.0


def _default_pipeline_factory(task: str, model: str) -> Callable[..., Any]:
    from transformers import pipeline

    return pipeline(task, model=model)


class TransformersInference:
    """
    🤗 Sentiment and generation backed by ``transformers.pipeline``.

    Pipelines are built on first ``initialize()``. Blocking model calls run
    in a worker thread so the event loop keeps serving the chat.
    """

    def __init__(
        self,
        sentiment_model: str | None = None,
        generation_model: str | None = None,
        *,
        status: ModelStatus | None = None,
        pipeline_factory: Callable[[str, str], Callable[..., Any]] | None = None,
    ) -> None:
        self.sentiment_model = sentiment_model or settings.sentiment_model
        self.generation_model = generation_model or settings.generation_model
        self.status = status or ModelStatus()
        self._pipeline_factory = pipeline_factory or _default_pipeline_factory
        self._pipelines: dict[str, Callable[..., Any]] = {}
        self._loads: dict[str, asyncio.Task] = {}

    def _task_and_model(self, name: str) -> tuple[str, str]:
        if name == "sentiment":
            return SENTIMENT_TASK, self.sentiment_model
        return GENERATION_TASK, self.generation_model

    async def _load(self, name: str) -> None:
        task, model = self._task_and_model(name)
        self.status.mark_loading(name)
        logger.info("Loading model task={task} model={model}", task=task, model=model)
        try:
            self._pipelines[name] = await asyncio.to_thread(
                self._pipeline_factory, task, model
            )
        except Exception:
            self.status.mark_failed(name)
            raise
        self.status.mark_loaded(name)
        logger.info("Model loaded task={task} model={model}", task=task, model=model)

    async def _ensure_loaded(self, name: str) -> None:
        if name in self._pipelines:
            return

        load = self._loads.get(name)
        if load is None or (
            load.done() and (load.cancelled() or load.exception() is not None)
        ):
            load = asyncio.ensure_future(self._load(name))
            self._loads[name] = load
        await asyncio.shield(load)

    async def initialize(self) -> bool:
        """
        Load both pipelines.

        Safe to call repeatedly: loaded models are kept, and a load already
        in progress is awaited rather than restarted. Failed loads are
        retried. Returns True when both models are ready.
        """
        success = True
        for name in SUB_MODELS:
            try:
                await self._ensure_loaded(name)
            except Exception as e:
                logger.error(
                    "Failed to load model model={model} error={error}",
                    model=name,
                    error=str(e),
                )
                sentry_sdk.capture_exception(e)
                success = False
        return success

    async def classify_sentiment(self, text: str) -> SentimentResult:
        await self._ensure_loaded("sentiment")
        result = await asyncio.to_thread(self._pipelines["sentiment"], text)
        return SentimentResult.model_validate(result[0])

    async def generate_text(self, prompt: str, **options: Any) -> str:
        await self._ensure_loaded("generation")
        options = {
            "max_length": settings.generation_max_length,
            "temperature": settings.generation_temperature,
            "top_p": settings.generation_top_p,
            "do_sample": True,
            **options,
        }
        result = await asyncio.to_thread(
            self._pipelines["generation"], prompt, **options
        )
        generated = result[0]["generated_text"]
        return generated.replace(prompt, "", 1).strip()
