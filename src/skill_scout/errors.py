"""Exception hierarchy for skill-scout.

All exceptions inherit from SkillScoutError (single catch point).
Messages are written for the caller's UI or LLM -- clear, actionable, no stack traces.

Filesystem probe failures never surface as exceptions: they are folded into
negative results inside ``skill_scout.scanner.probe``.
"""

from __future__ import annotations


class SkillScoutError(Exception):
    """Base exception for all skill-scout errors."""


class InvalidInputError(SkillScoutError):
    """A request was made without a usable project path."""


class AnalysisNotFoundError(SkillScoutError):
    """No cached analysis exists for the requested project."""


class CatalogError(SkillScoutError):
    """The skill template catalog is missing or malformed."""
