"""Helpers shared by MCP tools: AppContext lookup and JSON-ready payloads."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from mcp.server.fastmcp import Context

from skill_scout.models import (
    DetectedPattern,
    DetectedTechnology,
    ProjectAnalysis,
    SkillRecommendation,
)

if TYPE_CHECKING:
    from skill_scout.server import AppContext


def get_context(ctx: Context) -> AppContext:
    """Extract AppContext from FastMCP's lifespan context.

    Raises TypeError if the server was started without app_lifespan.
    """
    from skill_scout.server import AppContext

    app = ctx.request_context.lifespan_context
    if not isinstance(app, AppContext):
        msg = (
            f"Expected AppContext in lifespan_context, got {type(app).__name__}. "
            "Is the server configured with app_lifespan?"
        )
        raise TypeError(msg)
    return app


def technology_to_dict(tech: DetectedTechnology) -> dict[str, object]:
    return asdict(tech) | {"category": tech.category.value}


def pattern_to_dict(pattern: DetectedPattern) -> dict[str, object]:
    return asdict(pattern)


def recommendation_to_dict(rec: SkillRecommendation) -> dict[str, object]:
    return asdict(rec) | {"priority": rec.priority.value}


def analysis_to_dict(analysis: ProjectAnalysis) -> dict[str, object]:
    return {
        "project_id": analysis.project_id,
        "project_path": analysis.project_path,
        "created_at": analysis.created_at.isoformat(),
        "summary": analysis.summary,
        "technologies": [technology_to_dict(t) for t in analysis.technologies],
        "patterns": [pattern_to_dict(p) for p in analysis.patterns],
        "recommendations": [recommendation_to_dict(r) for r in analysis.recommendations],
    }
