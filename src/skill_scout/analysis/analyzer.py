"""Project analysis orchestrator: cache, classify, synthesize, report progress."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path

from skill_scout.analysis.base import ProgressObserver
from skill_scout.analysis.cache import AnalysisCache
from skill_scout.errors import AnalysisNotFoundError, InvalidInputError
from skill_scout.models import (
    AnalysisProgress,
    AnalysisStatus,
    DetectedPattern,
    DetectedTechnology,
    Priority,
    ProjectAnalysis,
    SkillRecommendation,
)
from skill_scout.scanner.base import PatternDetectorPort, TechnologyDetectorPort
from skill_scout.scanner.patterns import detect_patterns as _detect_patterns
from skill_scout.scanner.recommendations import synthesize
from skill_scout.scanner.technologies import detect_technologies as _detect_technologies
from skill_scout.scanner.templates import TemplateCatalog

logger = logging.getLogger(__name__)

SUMMARY_TECHNOLOGY_CONFIDENCE = 0.8
SUMMARY_PATTERN_CONFIDENCE = 0.6
SUMMARY_MAX_TECHNOLOGIES = 5
SUMMARY_MAX_PATTERNS = 3


def build_summary(
    technologies: Sequence[DetectedTechnology],
    patterns: Sequence[DetectedPattern],
    recommendations: Sequence[SkillRecommendation],
) -> str:
    """Build a one-line human-readable summary of an analysis.

    Segments with nothing to report are left out, so an empty project
    yields an empty string.
    """
    parts: list[str] = []

    strong_techs = [t.name for t in technologies if t.confidence >= SUMMARY_TECHNOLOGY_CONFIDENCE]
    if strong_techs:
        parts.append(f"Technologies: {', '.join(strong_techs[:SUMMARY_MAX_TECHNOLOGIES])}")

    strong_patterns = [p.name for p in patterns if p.confidence >= SUMMARY_PATTERN_CONFIDENCE]
    if strong_patterns:
        parts.append(f"Patterns: {', '.join(strong_patterns[:SUMMARY_MAX_PATTERNS])}")

    if recommendations:
        high = sum(1 for r in recommendations if r.priority == Priority.HIGH)
        parts.append(f"{len(recommendations)} skill recommendations ({high} high priority)")

    return ". ".join(parts)


def _require_path(project_path: str | Path | None) -> Path:
    if project_path is None or not str(project_path).strip():
        raise InvalidInputError(
            "Project path not provided. Pass the absolute path of a local project directory."
        )
    return Path(project_path)


class ProjectAnalyzer:
    """Entry point for analyzing projects.

    Runs the technology and pattern classifiers concurrently, feeds both into
    the recommendation synthesizer and caches the result per project id.
    Progress is broadcast to registered observers; an observer that fails is
    logged and skipped.
    """

    def __init__(
        self,
        cache: AnalysisCache | None = None,
        *,
        technology_detector: TechnologyDetectorPort = _detect_technologies,
        pattern_detector: PatternDetectorPort = _detect_patterns,
        catalog: TemplateCatalog | None = None,
    ) -> None:
        self.cache = cache if cache is not None else AnalysisCache()
        self._technology_detector = technology_detector
        self._pattern_detector = pattern_detector
        self._catalog = catalog
        self._observers: list[ProgressObserver] = []

    # ─── Analysis ────────────────────────────────────────────

    async def analyze(
        self,
        project_id: str,
        project_path: str | Path,
        *,
        force_refresh: bool = False,
        observer: ProgressObserver | None = None,
    ) -> ProjectAnalysis:
        """Analyze *project_path*, reusing a fresh cached result when allowed.

        Args:
            project_id: Cache key for the project.
            project_path: Local directory to scan.
            force_refresh: Skip the cache lookup and always re-run the pipeline.
            observer: Receives the progress of this call only, after the
                registered observers.

        Raises:
            InvalidInputError: If *project_path* is empty.
        """
        root = _require_path(project_path)

        async def report(status: AnalysisStatus, message: str, percent: int) -> None:
            await self._notify(project_id, status, message, percent, observer)

        if not force_refresh:
            await report(AnalysisStatus.CACHE_CHECK, "Checking for cached analysis", 0)
            cached = self.cache.get(project_id)
            if cached is not None:
                logger.debug("Returning cached analysis for %s", project_id)
                await report(AnalysisStatus.COMPLETE, "Using cached analysis", 100)
                return cached

        logger.info("Analyzing project %s at %s", project_id, root)
        finished = 0

        async def run_stage(
            status: AnalysisStatus,
            detector: Callable[[Path], Awaitable[list]],
            noun: str,
        ) -> list:
            nonlocal finished
            try:
                found = await detector(root)
            except Exception:
                logger.warning("%s detection failed for %s", noun.capitalize(), root, exc_info=True)
                finished += 1
                await report(
                    AnalysisStatus.ERROR,
                    f"{noun.capitalize()} detection failed; continuing without {noun}",
                    20 + 20 * finished,
                )
                return []
            finished += 1
            await report(status, f"Detected {len(found)} {noun}", 20 + 20 * finished)
            return found

        # Both stages announce themselves before either starts; they finish in any order.
        await report(AnalysisStatus.DETECTING_TECHNOLOGIES, "Detecting technologies...", 10)
        await report(AnalysisStatus.DETECTING_PATTERNS, "Detecting patterns...", 20)
        technologies, patterns = await asyncio.gather(
            run_stage(
                AnalysisStatus.DETECTING_TECHNOLOGIES, self._technology_detector, "technologies"
            ),
            run_stage(AnalysisStatus.DETECTING_PATTERNS, self._pattern_detector, "patterns"),
        )

        await report(AnalysisStatus.SYNTHESIZING, "Generating skill recommendations...", 70)
        try:
            recommendations = synthesize(technologies, patterns, catalog=self._catalog)
        except Exception:
            logger.warning("Recommendation synthesis failed for %s", root, exc_info=True)
            recommendations = []
        await report(
            AnalysisStatus.SYNTHESIZING,
            f"Generated {len(recommendations)} skill recommendations",
            90,
        )

        analysis = ProjectAnalysis(
            project_id=project_id,
            project_path=str(project_path),
            created_at=datetime.now(UTC),
            technologies=technologies,
            patterns=patterns,
            recommendations=recommendations,
            summary=build_summary(technologies, patterns, recommendations),
        )
        self.cache.set(project_id, analysis)

        await report(AnalysisStatus.COMPLETE, "Analysis complete", 100)
        return analysis

    async def detect_technologies(self, project_path: str | Path) -> list[DetectedTechnology]:
        return await self._technology_detector(_require_path(project_path))

    async def detect_patterns(self, project_path: str | Path) -> list[DetectedPattern]:
        return await self._pattern_detector(_require_path(project_path))

    # ─── Cache access ────────────────────────────────────────

    def get_cached(self, project_id: str) -> ProjectAnalysis | None:
        return self.cache.get(project_id)

    def invalidate(self, project_id: str) -> bool:
        return self.cache.invalidate(project_id)

    def invalidate_all(self) -> None:
        self.cache.clear()

    # ─── Recommendation selection ────────────────────────────

    def get_recommendations(self, project_id: str) -> list[SkillRecommendation]:
        """Return the cached recommendations for *project_id*.

        Raises:
            AnalysisNotFoundError: If the project has no live cached analysis.
        """
        analysis = self.cache.get(project_id)
        if analysis is None:
            raise AnalysisNotFoundError(
                f"No analysis found for project '{project_id}'. Run analyze_project first."
            )
        return analysis.recommendations

    def set_recommendation_selected(
        self, project_id: str, recommendation_id: str, selected: bool
    ) -> SkillRecommendation | None:
        """Flip the selection flag of one recommendation; None if the id is unknown."""
        for rec in self.get_recommendations(project_id):
            if rec.id == recommendation_id:
                rec.selected = selected
                return rec
        return None

    def select_all_recommendations(
        self, project_id: str, selected: bool = True
    ) -> list[SkillRecommendation]:
        recommendations = self.get_recommendations(project_id)
        for rec in recommendations:
            rec.selected = selected
        return recommendations

    def selected_recommendation_ids(self, project_id: str) -> list[str]:
        return [r.id for r in self.get_recommendations(project_id) if r.selected]

    # ─── Observers ───────────────────────────────────────────

    def add_observer(self, observer: ProgressObserver) -> Callable[[], None]:
        """Register *observer* and return a callable that unregisters it."""
        self._observers.append(observer)
        return lambda: self.remove_observer(observer)

    def remove_observer(self, observer: ProgressObserver) -> None:
        try:
            self._observers.remove(observer)
        except ValueError:
            pass

    async def _notify(
        self,
        project_id: str,
        status: AnalysisStatus,
        message: str,
        percent: int,
        extra: ProgressObserver | None = None,
    ) -> None:
        progress = AnalysisProgress(
            project_id=project_id, status=status, message=message, percent=percent
        )
        observers = list(self._observers)
        if extra is not None:
            observers.append(extra)
        for observer in observers:
            try:
                result = observer(progress)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.warning("Progress observer %r failed", observer, exc_info=True)
