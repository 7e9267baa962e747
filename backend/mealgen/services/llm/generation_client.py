"""
Resilient single-prompt calls to the generation provider.

GenerationClient retries transient provider failures with capped exponential
backoff and +/- jitter, aborts immediately on anything else, and bounds each
attempt with its own deadline. The transport is injected, so tests drive it
with a fake and a no-op sleep.
"""

import asyncio
import random
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

from mealgen.config import settings
from mealgen.errors import GenerationError
from mealgen.logging import get_logger
from mealgen.utils.timing import time_span

logger = get_logger(__name__)


class RetryDecision(str, Enum):
    RETRY = "retry"
    ABORT = "abort"


RETRYABLE_STATUS_CODES = ("503", "429", "500", "502", "504")
RETRYABLE_PHRASES = (
    "overloaded",
    "rate limit",
    "too many requests",
    "service unavailable",
    "temporarily unavailable",
    "try again later",
    "timeout",
    "econnreset",
    "enotfound",
    "etimedout",
)

# "503", "[503 Service Unavailable]", "status 503" - but not "15030"
_STATUS_RE = re.compile(r"(?<!\d)\[?(?:%s)(?!\d)" % "|".join(RETRYABLE_STATUS_CODES))


def classify_error(error: Union[BaseException, str]) -> RetryDecision:
    message = error if isinstance(error, str) else str(error)
    if _STATUS_RE.search(message):
        return RetryDecision.RETRY
    lowered = message.lower()
    if any(phrase in lowered for phrase in RETRYABLE_PHRASES):
        return RetryDecision.RETRY
    return RetryDecision.ABORT


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 4
    initial_delay_ms: int = 1000
    multiplier: float = 2.0
    max_delay_ms: int = 30000
    jitter_ratio: float = 0.25

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_retries=settings.retry_max_retries,
            initial_delay_ms=settings.retry_initial_delay_ms,
            multiplier=settings.retry_multiplier,
            max_delay_ms=settings.retry_max_delay_ms,
            jitter_ratio=settings.retry_jitter_ratio,
        )

    def base_delay_ms(self, retry_index: int) -> float:
        """Delay before retry number ``retry_index`` (0-based), capped, without jitter."""
        return min(self.initial_delay_ms * (self.multiplier ** retry_index), self.max_delay_ms)

    def delay_ms(self, retry_index: int, rng: random.Random) -> float:
        base = self.base_delay_ms(retry_index)
        return base + rng.uniform(-self.jitter_ratio, self.jitter_ratio) * base


@dataclass
class ProviderReply:
    text: str
    usage: Optional[dict[str, Any]] = None


class ProviderTransport(Protocol):
    model: str

    def call(self, prompt: str, *, prompt_name: str, prompt_version: str) -> Union[ProviderReply, str]:
        ...


def normalize_usage(raw: Optional[dict[str, Any]]) -> dict[str, Optional[int]]:
    """Map OpenAI-style, Gemini-style or Anthropic-style usage blocks to input/output/total."""
    raw = raw or {}

    def _first(*keys: str) -> Optional[int]:
        for key in keys:
            value = raw.get(key)
            if value is not None:
                return int(value)
        return None

    usage = {
        "input_tokens": _first("input_tokens", "prompt_tokens", "promptTokenCount"),
        "output_tokens": _first("output_tokens", "completion_tokens", "candidatesTokenCount"),
        "total_tokens": _first("total_tokens", "totalTokenCount"),
    }
    if usage["total_tokens"] is None and usage["input_tokens"] is not None and usage["output_tokens"] is not None:
        usage["total_tokens"] = usage["input_tokens"] + usage["output_tokens"]
    return usage


class GenerationClient:
    def __init__(
        self,
        transport: ProviderTransport,
        policy: Optional[RetryPolicy] = None,
        timeout_s: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.transport = transport
        self.policy = policy or RetryPolicy.from_settings()
        self.timeout_s = timeout_s if timeout_s is not None else settings.llm_timeout_s
        self._sleep = sleep
        self._rng = rng or random.Random()

    async def _call_once(self, prompt: str, prompt_name: str, prompt_version: str) -> ProviderReply:
        call = asyncio.to_thread(
            self.transport.call, prompt, prompt_name=prompt_name, prompt_version=prompt_version
        )
        try:
            reply = await asyncio.wait_for(call, timeout=self.timeout_s)
        except asyncio.TimeoutError as exc:
            raise TimeoutError(f"provider call timeout after {self.timeout_s}s") from exc
        if isinstance(reply, str):
            reply = ProviderReply(text=reply)
        return reply

    async def generate(self, prompt: str, *, prompt_name: str = "generation", prompt_version: str = "v1") -> str:
        """Return provider text, or raise GenerationError once retries are exhausted or the error is fatal."""
        attempt = 0
        while True:
            attempt += 1
            try:
                with time_span("llm.generate.attempt", prompt=prompt_name, attempt=attempt):
                    reply = await self._call_once(prompt, prompt_name, prompt_version)
            except Exception as exc:
                decision = classify_error(exc)
                retries_used = attempt - 1
                if decision is RetryDecision.ABORT or retries_used >= self.policy.max_retries:
                    logger.error(
                        "llm.generate.failure name=%s attempts=%s decision=%s error=%s",
                        prompt_name,
                        attempt,
                        decision.value,
                        exc,
                    )
                    raise GenerationError(exc, attempts=attempt, retryable=decision is RetryDecision.RETRY) from exc
                delay_ms = self.policy.delay_ms(retries_used, self._rng)
                logger.warning(
                    "llm.generate.retry name=%s attempt=%s delay_ms=%.0f error=%s",
                    prompt_name,
                    attempt,
                    delay_ms,
                    exc,
                )
                await self._sleep(delay_ms / 1000)
                continue

            usage = normalize_usage(reply.usage)
            if any(v is not None for v in usage.values()):
                logger.info(
                    "llm.usage name=%s model=%s input_tokens=%s output_tokens=%s total_tokens=%s",
                    prompt_name,
                    getattr(self.transport, "model", "unknown"),
                    usage["input_tokens"],
                    usage["output_tokens"],
                    usage["total_tokens"],
                )
            logger.info("llm.generate.success name=%s attempts=%s chars=%s", prompt_name, attempt, len(reply.text))
            return reply.text


def get_generation_client() -> GenerationClient:
    """Build a client over the configured dspy transport (one per request/task, nothing shared)."""
    from mealgen.services.llm.dspy_client import DspyTransport

    return GenerationClient(DspyTransport(), policy=RetryPolicy.from_settings())
