"""Domain models for skill-scout.

Frozen dataclasses, except SkillRecommendation whose ``selected`` flag is
toggled by callers after synthesis.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

# ─── Enumerations ─────────────────────────────────────────────


class TechnologyCategory(StrEnum):
    LANGUAGE = "language"
    FRAMEWORK = "framework"
    LIBRARY = "library"
    TOOL = "tool"
    PLATFORM = "platform"
    DATABASE = "database"
    INFRASTRUCTURE = "infrastructure"
    CI_CD = "ci-cd"


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AnalysisStatus(StrEnum):
    IDLE = "idle"
    CACHE_CHECK = "cache-check"
    DETECTING_TECHNOLOGIES = "detecting-technologies"
    DETECTING_PATTERNS = "detecting-patterns"
    SYNTHESIZING = "synthesizing"
    COMPLETE = "complete"
    ERROR = "error"


# ─── Scanner Models ──────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class DetectionSignal:
    """A single piece of evidence produced by one detection strategy."""

    technology: str
    category: TechnologyCategory
    confidence: float
    evidence: str
    version: str | None = None


@dataclass(frozen=True, slots=True)
class DetectedTechnology:
    """A technology consolidated from one or more detection signals."""

    name: str
    category: TechnologyCategory
    confidence: float
    evidence: list[str] = field(default_factory=list)
    version: str | None = None


@dataclass(frozen=True, slots=True)
class PatternCheck:
    """Raw outcome of a single pattern definition."""

    detected: bool = False
    confidence: float = 0.0
    evidence: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class DetectedPattern:
    """An organizational or process pattern found in the project tree."""

    id: str
    name: str
    description: str
    confidence: float
    evidence: list[str] = field(default_factory=list)


# ─── Catalog Models ──────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class RecommendationTemplate:
    """Reference data: a skill recommended for a set of technologies."""

    name: str
    description: str
    prompt: str
    default_priority: Priority
    technologies: tuple[str, ...] = ()
    related_technologies: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class PriorityBoost:
    """Raise a skill's priority when every listed technology is present."""

    skill_name: str
    technologies: tuple[str, ...]
    boost: float


@dataclass(frozen=True, slots=True)
class PatternSkill:
    """A skill suggested by a detected pattern."""

    name: str
    priority: Priority
    reason: str


# ─── Recommendation / Analysis Models ────────────────────────


@dataclass(slots=True)
class SkillRecommendation:
    """A prioritized skill suggestion.

    Only ``selected`` is expected to change after synthesis; it is flipped
    by the caller when the user picks recommendations to act on.
    """

    id: str
    name: str
    description: str
    reason: str
    priority: Priority
    suggested_prompt: str
    based_on: list[str] = field(default_factory=list)
    selected: bool = False


@dataclass(frozen=True, slots=True)
class ProjectAnalysis:
    """Complete classification result for one project."""

    project_id: str
    project_path: str
    created_at: datetime
    technologies: list[DetectedTechnology] = field(default_factory=list)
    patterns: list[DetectedPattern] = field(default_factory=list)
    recommendations: list[SkillRecommendation] = field(default_factory=list)
    summary: str = ""


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """An analysis together with the monotonic time it was stored."""

    analysis: ProjectAnalysis
    timestamp: float


@dataclass(frozen=True, slots=True)
class AnalysisProgress:
    """Progress notification broadcast to analysis observers."""

    project_id: str
    status: AnalysisStatus
    message: str
    percent: int
