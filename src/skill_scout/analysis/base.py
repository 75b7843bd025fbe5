"""Ports: Analysis progress delivery."""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Protocol

from skill_scout.models import AnalysisProgress


class ProgressObserver(Protocol):
    """Receives progress notifications while a project is analyzed.

    Plain functions and coroutine functions both satisfy this port.
    """

    def __call__(self, progress: AnalysisProgress) -> Awaitable[None] | None: ...
