"""Status vocabulary shared by every asynchronous unit of work."""

from __future__ import annotations

from enum import Enum


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    OK = "ok"
    ERROR = "error"


__all__ = ["LoadState"]
