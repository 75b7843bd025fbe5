"""Ports: Project technology and pattern detection."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from skill_scout.models import DetectedPattern, DetectedTechnology


class TechnologyDetectorPort(Protocol):
    """Port for detecting technologies from project files."""

    async def __call__(self, root: str | Path) -> list[DetectedTechnology]:
        """Scan a project directory and return consolidated technologies."""
        ...


class PatternDetectorPort(Protocol):
    """Port for detecting structural and process patterns in a project tree."""

    async def __call__(self, root: str | Path) -> list[DetectedPattern]:
        """Scan a project directory and return retained patterns."""
        ...
