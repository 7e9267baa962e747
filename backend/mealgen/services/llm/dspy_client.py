import time
from typing import Any, Optional

import dspy
from sqlalchemy.exc import SQLAlchemyError

from mealgen.config import settings
from mealgen.errors import ServiceUnavailableError
from mealgen.logging import get_logger
from mealgen.services.llm.generation_client import ProviderReply, normalize_usage
from mealgen.storage.db import get_session
from mealgen.storage.repositories import log_llm_call
from mealgen.utils.timing import elapsed_ms, format_duration

logger = get_logger(__name__)


def model_name(model: Optional[str] = None) -> str:
    return f"{settings.llm_provider}/{model or settings.llm_model}"


def make_lm(model: Optional[str] = None, max_tokens: Optional[int] = None) -> dspy.LM:
    return dspy.LM(
        model_name(model),
        api_key=settings.llm_api_key or None,
        temperature=settings.llm_temperature,
        max_tokens=max_tokens or settings.llm_max_tokens,
        timeout=settings.llm_timeout_s,
        num_retries=0,  # GenerationClient owns the retry policy
        cache=False,
    )


def check_llm_configuration() -> bool:
    ok = bool(settings.llm_api_key)
    if ok:
        logger.info("llm.configure provider=%s model=%s", settings.llm_provider, settings.llm_model)
    else:
        logger.warning("llm.configure.missing_api_key provider=%s model=%s", settings.llm_provider, settings.llm_model)
    return ok


def _first_text(outputs: Any) -> str:
    if not outputs:
        return ""
    first = outputs[0]
    if isinstance(first, dict):
        return str(first.get("text") or "")
    return str(first)


class DspyTransport:
    """Raw provider transport: one prompt in, text plus token usage out. No retries here."""

    def __init__(self, lm: Optional[dspy.LM] = None) -> None:
        self._lm = lm
        self.model = lm.model if lm is not None else model_name()

    @property
    def lm(self) -> dspy.LM:
        if self._lm is None:
            if not settings.llm_api_key:
                raise ServiceUnavailableError("LLM API key is not configured")
            self._lm = make_lm()
        return self._lm

    def call(self, prompt: str, *, prompt_name: str, prompt_version: str) -> ProviderReply:
        lm = self.lm
        start = time.perf_counter()
        logger.info("[TIMING] llm.call.start name=%s version=%s model=%s", prompt_name, prompt_version, self.model)
        outputs = lm(prompt)
        latency_ms = elapsed_ms(start)
        text = _first_text(outputs)
        history = getattr(lm, "history", None) or []
        usage = dict(history[-1].get("usage") or {}) if history else {}
        self._record(prompt_name, prompt_version, prompt, text, latency_ms, usage)
        logger.info(
            "[TIMING] llm.call.end name=%s latency_ms=%s (%s)",
            prompt_name,
            latency_ms,
            format_duration(latency_ms),
        )
        return ProviderReply(text=text, usage=usage)

    def _record(
        self, prompt_name: str, prompt_version: str, prompt: str, text: str, latency_ms: int, usage: dict
    ) -> None:
        try:
            with get_session() as session:
                log_llm_call(
                    session=session,
                    prompt_name=prompt_name,
                    prompt_version=prompt_version,
                    model=self.model,
                    input_payload=prompt,
                    output_payload=text,
                    latency_ms=latency_ms,
                    usage=normalize_usage(usage),
                )
        except SQLAlchemyError as exc:
            # call log is best-effort
            logger.warning("llm.call_log.failed name=%s error=%s", prompt_name, exc)
