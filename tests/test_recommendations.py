"""Tests for the recommendation synthesizer (scanner/recommendations.py)."""

from __future__ import annotations

from skill_scout.models import (
    DetectedPattern,
    DetectedTechnology,
    Priority,
    SkillRecommendation,
    TechnologyCategory,
)
from skill_scout.scanner.recommendations import (
    RELATED_REASON,
    calculate_priority,
    filter_by_priority,
    has_skills_for_technology,
    merge_recommendations,
    sort_recommendations,
    synthesize,
    top_recommendations,
)
from skill_scout.scanner.templates import parse_catalog

# ─── Helpers ─────────────────────────────────────────────────


def _tech(name: str, confidence: float = 1.0, evidence: list[str] | None = None):
    return DetectedTechnology(
        name=name,
        category=TechnologyCategory.FRAMEWORK,
        confidence=confidence,
        evidence=evidence if evidence is not None else [f"{name} evidence"],
    )


def _pattern(name: str, confidence: float = 0.8):
    return DetectedPattern(
        id="pattern_test", name=name, description="", confidence=confidence, evidence=[]
    )


def _rec(name: str, priority: Priority, based_on: list[str], reason: str = "r"):
    return SkillRecommendation(
        id=f"rec_{name}",
        name=name,
        description="",
        reason=reason,
        priority=priority,
        suggested_prompt="",
        based_on=based_on,
    )


def _by_name(recs):
    return {r.name: r for r in recs}


# ═══════════════════════════════════════════════════════════════
# Priority
# ═══════════════════════════════════════════════════════════════


class TestCalculatePriority:
    def test_no_boost_keeps_base(self):
        assert calculate_priority("Express Best Practices", Priority.MEDIUM, []) == Priority.MEDIUM

    def test_boost_requires_all_technologies(self):
        catalog = parse_catalog(
            "priority_boosts:\n"
            "  - skill: Lint\n    technologies: [ESLint, TypeScript]\n    boost: 0.4\n"
        )
        assert calculate_priority("Lint", Priority.LOW, ["eslint"], catalog=catalog) == Priority.LOW
        assert (
            calculate_priority("Lint", Priority.LOW, ["ESLINT", "typescript"], catalog=catalog)
            == Priority.MEDIUM
        )

    def test_small_boost_does_not_cross_a_level(self):
        # 2 + 0.1 * 3 stays below 3
        assert (
            calculate_priority("Docker Best Practices", Priority.MEDIUM, ["Docker", "Node.js"])
            == Priority.MEDIUM
        )

    def test_high_stays_high(self):
        assert (
            calculate_priority("TypeScript Expert", Priority.HIGH, ["TypeScript", "React"])
            == Priority.HIGH
        )


# ═══════════════════════════════════════════════════════════════
# Merge / sort / filter
# ═══════════════════════════════════════════════════════════════


class TestMergeRecommendations:
    def test_merges_same_name(self):
        tech = [_rec("Docker Best Practices", Priority.LOW, ["Docker"], "Detected Docker")]
        pattern = [
            _rec("Docker Best Practices", Priority.MEDIUM, ["Containerization"], "Containers")
        ]
        merged = merge_recommendations(tech, pattern)

        assert len(merged) == 1
        rec = merged[0]
        assert rec.priority == Priority.MEDIUM
        assert rec.based_on == ["Docker", "Containerization"]
        assert rec.reason == "Detected Docker. Also: Containers"

    def test_keeps_higher_existing_priority(self):
        merged = merge_recommendations(
            [_rec("A", Priority.HIGH, ["x"])], [_rec("A", Priority.LOW, ["y"])]
        )
        assert merged[0].priority == Priority.HIGH

    def test_identical_reason_not_repeated(self):
        merged = merge_recommendations(
            [_rec("A", Priority.LOW, ["x"], "same")], [_rec("A", Priority.LOW, ["x"], "same")]
        )
        assert merged[0].reason == "same"
        assert merged[0].based_on == ["x"]

    def test_distinct_names_preserved_in_order(self):
        merged = merge_recommendations(
            [_rec("A", Priority.LOW, [])], [_rec("B", Priority.LOW, []), _rec("C", Priority.LOW, [])]
        )
        assert [r.name for r in merged] == ["A", "B", "C"]


class TestSortAndFilter:
    def test_priority_then_evidence(self):
        recs = [
            _rec("low", Priority.LOW, ["a", "b", "c"]),
            _rec("high-1", Priority.HIGH, ["a"]),
            _rec("medium", Priority.MEDIUM, []),
            _rec("high-2", Priority.HIGH, ["a", "b"]),
        ]
        assert [r.name for r in sort_recommendations(recs)] == ["high-2", "high-1", "medium", "low"]

    def test_sort_is_stable(self):
        recs = [_rec(n, Priority.MEDIUM, ["x"]) for n in ("first", "second", "third")]
        assert [r.name for r in sort_recommendations(recs)] == ["first", "second", "third"]

    def test_filter_by_priority(self):
        recs = [
            _rec("h", Priority.HIGH, []),
            _rec("m", Priority.MEDIUM, []),
            _rec("l", Priority.LOW, []),
        ]
        assert [r.name for r in filter_by_priority(recs, Priority.HIGH)] == ["h"]
        assert [r.name for r in filter_by_priority(recs, "medium")] == ["h", "m"]
        assert len(filter_by_priority(recs, Priority.LOW)) == 3


# ═══════════════════════════════════════════════════════════════
# Synthesis
# ═══════════════════════════════════════════════════════════════


class TestSynthesizeFromTechnologies:
    def test_template_match_and_reason(self):
        recs = synthesize([_tech("React", evidence=["dep: react", "dep: react-dom", "x"])], [])
        react = _by_name(recs)["React Best Practices"]

        assert react.priority == Priority.HIGH
        assert react.reason == "Detected React in project (dep: react, dep: react-dom)"
        assert react.based_on == ["React"]
        assert react.id.startswith("rec_")
        assert react.selected is False

    def test_low_confidence_technology_ignored(self):
        recs = synthesize([_tech("Docker", confidence=0.4)], [])
        assert recs == []

    def test_template_added_once(self):
        recs = synthesize([_tech("Vue"), _tech("Vue.js")], [])
        names = [r.name for r in recs]
        assert names.count("Vue Best Practices") == 1
        assert _by_name(recs)["Vue Best Practices"].based_on == ["Vue"]

    def test_related_templates_need_strong_detection(self):
        weak = synthesize([_tech("Pydantic", confidence=0.7)], [])
        assert weak == []

        strong = _by_name(synthesize([_tech("Pydantic", confidence=0.9)], []))
        fastapi = strong["FastAPI Expert"]
        assert fastapi.priority == Priority.LOW
        assert fastapi.reason == RELATED_REASON
        assert fastapi.based_on == ["Python", "Pydantic"]

    def test_unique_ids(self):
        recs = synthesize([_tech("TypeScript"), _tech("React")], [])
        ids = [r.id for r in recs]
        assert len(ids) == len(set(ids))


class TestSynthesizeFromPatterns:
    def test_pattern_uses_technology_template(self):
        recs = _by_name(synthesize([], [_pattern("Containerization")]))
        docker = recs["Docker Best Practices"]
        assert docker.priority == Priority.MEDIUM
        assert docker.description == "Docker containerization patterns"
        assert docker.based_on == ["Containerization"]

    def test_pattern_fallback_template(self):
        recs = _by_name(synthesize([], [_pattern("Monorepo Structure")]))
        assert recs["Monorepo Patterns"].description == "Best practices for monorepo development"

    def test_generic_fallback(self):
        recs = _by_name(synthesize([], [_pattern("Documentation Focus")]))
        doc = recs["Documentation Focus"]
        assert doc.description == "Best practices for Documentation Focus"
        assert doc.suggested_prompt.startswith("You are an expert in Documentation Focus.")

    def test_low_confidence_pattern_ignored(self):
        assert synthesize([], [_pattern("Containerization", confidence=0.45)]) == []

    def test_unmapped_pattern_ignored(self):
        assert synthesize([], [_pattern("CI/CD Integration")]) == []


class TestSynthesizeMerged:
    def test_technology_and_pattern_merge(self):
        recs = synthesize(
            [_tech("Docker", evidence=["Config file: Dockerfile"])],
            [_pattern("Containerization")],
        )
        assert len(recs) == 1
        docker = recs[0]
        assert docker.based_on == ["Docker", "Containerization"]
        assert docker.reason == (
            "Detected Docker in project (Config file: Dockerfile). "
            "Also: Project uses containerization for deployment"
        )

    def test_names_unique_and_sorted(self):
        recs = synthesize(
            [_tech("TypeScript"), _tech("React"), _tech("Jest"), _tech("Node.js")],
            [_pattern("Type-First Development"), _pattern("Test-Driven Development")],
        )
        names = [r.name for r in recs]
        assert len(names) == len(set(names))

        order = {"high": 0, "medium": 1, "low": 2}
        ranks = [order[r.priority] for r in recs]
        assert ranks == sorted(ranks)

    def test_empty_inputs(self):
        assert synthesize([], []) == []

    def test_custom_catalog(self):
        catalog = parse_catalog(
            "templates:\n"
            "  - name: Elixir Expert\n    technologies: [Elixir]\n"
            "    default_priority: medium\n    description: d\n    prompt: p\n"
        )
        recs = synthesize([_tech("Elixir"), _tech("React")], [], catalog=catalog)
        assert [r.name for r in recs] == ["Elixir Expert"]


class TestHelpers:
    def test_top_recommendations_limits(self):
        techs = [_tech("TypeScript"), _tech("React"), _tech("Docker"), _tech("Node.js")]
        assert len(top_recommendations(techs, [], max_count=2)) == 2
        assert top_recommendations(techs, [], max_count=0) == []

    def test_has_skills_for_technology(self):
        assert has_skills_for_technology("Kubernetes") is True
        assert has_skills_for_technology("k8s") is True
        assert has_skills_for_technology("Fortran") is False
