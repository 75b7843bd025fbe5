"""Load the skill template catalog from YAML reference data."""

from __future__ import annotations

import functools
import importlib.resources
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from skill_scout.errors import CatalogError
from skill_scout.models import PatternSkill, Priority, PriorityBoost, RecommendationTemplate

logger = logging.getLogger(__name__)

_BUILTIN_RESOURCE = ("scanner", "catalog", "skills.yaml")


@dataclass(frozen=True, slots=True)
class PatternTemplate:
    """Description and prompt for a pattern skill with no technology template."""

    description: str
    prompt: str


@dataclass(frozen=True, slots=True)
class TemplateCatalog:
    """Immutable, typed view over the skill reference data."""

    templates: tuple[RecommendationTemplate, ...] = ()
    priority_boosts: tuple[PriorityBoost, ...] = ()
    pattern_skill_map: dict[str, tuple[PatternSkill, ...]] = field(default_factory=dict)
    pattern_templates: dict[str, PatternTemplate] = field(default_factory=dict)

    def templates_for_technology(self, technology: str) -> list[RecommendationTemplate]:
        """Return templates whose technology list names *technology* (case-insensitive)."""
        key = technology.lower()
        return [t for t in self.templates if any(name.lower() == key for name in t.technologies)]

    def template_by_name(self, name: str) -> RecommendationTemplate | None:
        for template in self.templates:
            if template.name == name:
                return template
        return None

    def related_templates(self, technologies: Iterable[str]) -> list[RecommendationTemplate]:
        """Return templates listing any of *technologies* as related."""
        keys = {t.lower() for t in technologies}
        return [
            t for t in self.templates if any(r.lower() in keys for r in t.related_technologies)
        ]

    def supported_technologies(self) -> list[str]:
        """Return every technology with at least one template, sorted."""
        names = {name for t in self.templates for name in t.technologies}
        return sorted(names, key=str.lower)

    def has_template(self, technology: str) -> bool:
        return bool(self.templates_for_technology(technology))

    def pattern_skills(self, pattern_name: str) -> list[PatternSkill]:
        return list(self.pattern_skill_map.get(pattern_name, ()))

    def pattern_fallback(self, skill_name: str) -> PatternTemplate | None:
        return self.pattern_templates.get(skill_name)

    def boosts_for(self, skill_name: str) -> list[PriorityBoost]:
        return [b for b in self.priority_boosts if b.skill_name == skill_name]


# ─── Loading ─────────────────────────────────────────────────


def load_catalog(path: str | Path | None = None) -> TemplateCatalog:
    """Load the built-in catalog, or a replacement YAML file at *path*.

    The built-in catalog is parsed once per process.

    Raises:
        CatalogError: If the file is missing or its contents are malformed.
    """
    if path is None:
        return _load_builtin()
    return _load_from_file(Path(path))


@functools.cache
def _load_builtin() -> TemplateCatalog:
    try:
        ref = importlib.resources.files("skill_scout").joinpath(*_BUILTIN_RESOURCE)
        text = ref.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError) as exc:
        raise CatalogError(f"Built-in skill catalog could not be read: {exc}") from exc
    return parse_catalog(text, source="builtin")


def _load_from_file(path: Path) -> TemplateCatalog:
    if not path.is_file():
        raise CatalogError(f"Skill catalog not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise CatalogError(f"Failed to read skill catalog '{path}': {exc}") from exc
    catalog = parse_catalog(text, source=str(path))
    logger.info("Loaded %d skill templates from %s", len(catalog.templates), path)
    return catalog


def parse_catalog(text: str, source: str = "") -> TemplateCatalog:
    """Parse YAML text into a TemplateCatalog.

    Raises:
        CatalogError: On invalid YAML or a section of the wrong shape.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise CatalogError(f"Invalid YAML in skill catalog {source}: {exc}") from exc
    if not isinstance(data, dict):
        raise CatalogError(f"Invalid skill catalog {source}: expected a YAML mapping.")

    return TemplateCatalog(
        templates=tuple(
            _parse_template(entry, source) for entry in _section(data, "templates", list, source)
        ),
        priority_boosts=tuple(
            _parse_boost(entry, source)
            for entry in _section(data, "priority_boosts", list, source)
        ),
        pattern_skill_map={
            str(pattern): tuple(_parse_pattern_skill(entry, source) for entry in skills or [])
            for pattern, skills in _section(data, "pattern_skills", dict, source).items()
        },
        pattern_templates={
            str(name): PatternTemplate(
                description=str(_require(entry, "description", source)),
                prompt=str(_require(entry, "prompt", source)),
            )
            for name, entry in _section(data, "pattern_templates", dict, source).items()
        },
    )


def _section(data: dict, key: str, kind: type, source: str):
    value = data.get(key)
    if value is None:
        return kind()
    if not isinstance(value, kind):
        raise CatalogError(
            f"Invalid skill catalog {source}: '{key}' must be a {kind.__name__}."
        )
    return value


def _require(entry: object, key: str, source: str) -> object:
    if not isinstance(entry, dict):
        raise CatalogError(f"Invalid skill catalog {source}: entries must be mappings.")
    if key not in entry or entry[key] in (None, ""):
        raise CatalogError(f"Invalid skill catalog {source}: entry is missing '{key}'.")
    return entry[key]


def _priority(value: object, source: str) -> Priority:
    try:
        return Priority(str(value).lower())
    except ValueError:
        raise CatalogError(
            f"Invalid skill catalog {source}: unknown priority '{value}'."
        ) from None


def _names(entry: dict, key: str) -> tuple[str, ...]:
    return tuple(str(v) for v in entry.get(key) or ())


def _parse_template(entry: object, source: str) -> RecommendationTemplate:
    name = str(_require(entry, "name", source))
    return RecommendationTemplate(
        name=name,
        description=str(_require(entry, "description", source)),
        prompt=str(_require(entry, "prompt", source)),
        default_priority=_priority(_require(entry, "default_priority", source), source),
        technologies=_names(entry, "technologies"),
        related_technologies=_names(entry, "related_technologies"),
    )


def _parse_boost(entry: object, source: str) -> PriorityBoost:
    try:
        boost = float(_require(entry, "boost", source))
    except (TypeError, ValueError):
        raise CatalogError(f"Invalid skill catalog {source}: boost must be a number.") from None
    return PriorityBoost(
        skill_name=str(_require(entry, "skill", source)),
        technologies=tuple(str(v) for v in _require(entry, "technologies", source)),
        boost=boost,
    )


def _parse_pattern_skill(entry: object, source: str) -> PatternSkill:
    return PatternSkill(
        name=str(_require(entry, "name", source)),
        priority=_priority(_require(entry, "priority", source), source),
        reason=str(_require(entry, "reason", source)),
    )
