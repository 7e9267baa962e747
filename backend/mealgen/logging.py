import logging
import sys
from typing import Optional


LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
)

# Provider SDKs log every request at INFO; our own llm.call lines cover that.
_NOISY_LOGGERS = ("LiteLLM", "litellm", "httpx", "httpcore")


def configure_logging(level: Optional[str] = None) -> None:
    root = logging.getLogger()
    if root.handlers:
        return
    if level is None:
        from mealgen.config import settings

        level = settings.log_level
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "mealgen")
