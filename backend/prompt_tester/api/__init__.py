"""API routers."""

from prompt_tester.api import (
    chat,
    keys,
    models,
    pricing,
    prompts,
    realtime,
    sessions,
)

__all__ = [
    "chat",
    "keys",
    "models",
    "pricing",
    "prompts",
    "realtime",
    "sessions",
]
