"""Turn detected technologies and patterns into skill recommendations."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from skill_scout.models import (
    DetectedPattern,
    DetectedTechnology,
    Priority,
    SkillRecommendation,
)
from skill_scout.scanner.templates import TemplateCatalog, load_catalog

logger = logging.getLogger(__name__)

# ─── Thresholds and ordering ─────────────────────────────────

MIN_TECHNOLOGY_CONFIDENCE = 0.5
MIN_PATTERN_CONFIDENCE = 0.5
STRONG_RELATION_CONFIDENCE = 0.8
DEFAULT_MAX_RECOMMENDATIONS = 10

_PRIORITY_ORDER: dict[str, int] = {"high": 0, "medium": 1, "low": 2}
_PRIORITY_VALUE: dict[str, int] = {"high": 3, "medium": 2, "low": 1}

RELATED_REASON = "Recommended based on related technologies in the project"


def new_recommendation_id() -> str:
    return f"rec_{uuid.uuid4().hex[:12]}"


# ─── Public API ──────────────────────────────────────────────


def synthesize(
    technologies: Sequence[DetectedTechnology],
    patterns: Sequence[DetectedPattern],
    *,
    catalog: TemplateCatalog | None = None,
) -> list[SkillRecommendation]:
    """Build the merged, sorted recommendation list for one project.

    Args:
        technologies: Consolidated technologies from the technology classifier.
        patterns: Retained patterns from the pattern classifier.
        catalog: Template catalog to match against. Defaults to the built-in one.

    Returns:
        Recommendations with unique names, high priority first.
    """
    catalog = catalog or load_catalog()
    from_technologies = _recommend_from_technologies(technologies, catalog)
    from_patterns = _recommend_from_patterns(patterns, catalog)
    merged = merge_recommendations(from_technologies, from_patterns)
    logger.debug(
        "Synthesized %d recommendations (%d from technologies, %d from patterns)",
        len(merged),
        len(from_technologies),
        len(from_patterns),
    )
    return sort_recommendations(merged)


def top_recommendations(
    technologies: Sequence[DetectedTechnology],
    patterns: Sequence[DetectedPattern],
    max_count: int = DEFAULT_MAX_RECOMMENDATIONS,
    *,
    catalog: TemplateCatalog | None = None,
) -> list[SkillRecommendation]:
    """Return at most *max_count* of the synthesized recommendations."""
    return synthesize(technologies, patterns, catalog=catalog)[: max(max_count, 0)]


def calculate_priority(
    skill_name: str,
    base_priority: Priority,
    detected_technologies: Sequence[str],
    *,
    catalog: TemplateCatalog | None = None,
) -> Priority:
    """Apply every boost rule whose technologies are all detected.

    Each matching boost adds ``boost * 3`` to the ordinal value of
    *base_priority* (low=1, medium=2, high=3) before it is mapped back.
    """
    catalog = catalog or load_catalog()
    detected = {name.lower() for name in detected_technologies}
    value = float(_PRIORITY_VALUE[base_priority])

    for rule in catalog.boosts_for(skill_name):
        if all(t.lower() in detected for t in rule.technologies):
            value += rule.boost * 3

    if value >= 3:
        return Priority.HIGH
    if value >= 2:
        return Priority.MEDIUM
    return Priority.LOW


def merge_recommendations(
    primary: Sequence[SkillRecommendation],
    secondary: Sequence[SkillRecommendation],
) -> list[SkillRecommendation]:
    """Combine two recommendation lists, keeping one entry per skill name.

    When both lists name a skill, the primary entry survives with the
    higher of the two priorities, the union of ``based_on`` and both reasons.
    """
    merged: dict[str, SkillRecommendation] = {}
    for rec in primary:
        merged[rec.name] = rec

    for rec in secondary:
        existing = merged.get(rec.name)
        if existing is None:
            merged[rec.name] = rec
            continue

        if _PRIORITY_ORDER[rec.priority] < _PRIORITY_ORDER[existing.priority]:
            existing.priority = rec.priority
        existing.based_on = list(dict.fromkeys([*existing.based_on, *rec.based_on]))
        if rec.reason != existing.reason:
            existing.reason = f"{existing.reason}. Also: {rec.reason}"

    return list(merged.values())


def sort_recommendations(recommendations: Sequence[SkillRecommendation]) -> list[SkillRecommendation]:
    """Sort high to low priority, then by amount of supporting evidence."""
    return sorted(
        recommendations,
        key=lambda r: (_PRIORITY_ORDER.get(r.priority, 99), -len(r.based_on)),
    )


def filter_by_priority(
    recommendations: Sequence[SkillRecommendation],
    min_priority: Priority | str,
) -> list[SkillRecommendation]:
    """Keep recommendations at or above *min_priority*."""
    threshold = _PRIORITY_ORDER[Priority(min_priority)]
    return [r for r in recommendations if _PRIORITY_ORDER[r.priority] <= threshold]


def has_skills_for_technology(technology: str, *, catalog: TemplateCatalog | None = None) -> bool:
    return (catalog or load_catalog()).has_template(technology)


# ─── Technology pass ─────────────────────────────────────────


def _recommend_from_technologies(
    technologies: Sequence[DetectedTechnology],
    catalog: TemplateCatalog,
) -> list[SkillRecommendation]:
    results: list[SkillRecommendation] = []
    added: set[str] = set()
    detected_names = [t.name for t in technologies]

    for tech in technologies:
        if tech.confidence < MIN_TECHNOLOGY_CONFIDENCE:
            continue
        for template in catalog.templates_for_technology(tech.name):
            if template.name in added:
                continue
            results.append(
                SkillRecommendation(
                    id=new_recommendation_id(),
                    name=template.name,
                    description=template.description,
                    reason=f"Detected {tech.name} in project ({', '.join(tech.evidence[:2])})",
                    priority=calculate_priority(
                        template.name,
                        template.default_priority,
                        detected_names,
                        catalog=catalog,
                    ),
                    suggested_prompt=template.prompt,
                    based_on=[tech.name],
                )
            )
            added.add(template.name)

    # Related templates only count when the relation is backed by a confident detection.
    for template in catalog.related_templates(detected_names):
        if template.name in added:
            continue
        related = {r.lower() for r in template.related_technologies}
        if not any(
            t.name.lower() in related and t.confidence >= STRONG_RELATION_CONFIDENCE
            for t in technologies
        ):
            continue
        results.append(
            SkillRecommendation(
                id=new_recommendation_id(),
                name=template.name,
                description=template.description,
                reason=RELATED_REASON,
                priority=Priority.LOW,
                suggested_prompt=template.prompt,
                based_on=list(template.related_technologies),
            )
        )
        added.add(template.name)

    return results


# ─── Pattern pass ────────────────────────────────────────────


def _recommend_from_patterns(
    patterns: Sequence[DetectedPattern],
    catalog: TemplateCatalog,
) -> list[SkillRecommendation]:
    results: list[SkillRecommendation] = []
    added: set[str] = set()

    for pattern in patterns:
        if pattern.confidence < MIN_PATTERN_CONFIDENCE:
            continue
        for skill in catalog.pattern_skills(pattern.name):
            if skill.name in added:
                continue
            description, prompt = _describe_pattern_skill(skill.name, catalog)
            results.append(
                SkillRecommendation(
                    id=new_recommendation_id(),
                    name=skill.name,
                    description=description,
                    reason=skill.reason,
                    priority=skill.priority,
                    suggested_prompt=prompt,
                    based_on=[pattern.name],
                )
            )
            added.add(skill.name)

    return results


def _describe_pattern_skill(skill_name: str, catalog: TemplateCatalog) -> tuple[str, str]:
    template = catalog.template_by_name(skill_name)
    if template is not None:
        return template.description, template.prompt

    fallback = catalog.pattern_fallback(skill_name)
    if fallback is not None:
        return fallback.description, fallback.prompt

    return (
        f"Best practices for {skill_name}",
        f"You are an expert in {skill_name}. Follow best practices and maintain "
        "consistency with the project's established patterns.",
    )
