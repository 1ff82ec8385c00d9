"""Utility helpers."""

from .stream_process import (
    ChainedMiddleware,
    OutputMiddleware,
    PassthroughMiddleware,
    create_chained_middleware,
    run_command,
)


__all__ = [
    "ChainedMiddleware",
    "OutputMiddleware",
    "PassthroughMiddleware",
    "create_chained_middleware",
    "run_command",
]
