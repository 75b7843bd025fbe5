"""Recommendation tools -- list and select skills from a cached analysis."""

from __future__ import annotations

from mcp.server.fastmcp import Context

from skill_scout.errors import InvalidInputError, SkillScoutError
from skill_scout.models import Priority
from skill_scout.scanner.recommendations import filter_by_priority
from skill_scout.tools._helpers import get_context, recommendation_to_dict


async def list_recommendations(
    ctx: Context,
    project_id: str,
    min_priority: str | None = None,
    max_count: int | None = None,
) -> dict[str, object]:
    """List skill recommendations from a project's cached analysis.

    Run analyze_project first; this tool never scans the filesystem.

    Args:
        project_id: The id used when the project was analyzed.
        min_priority: Only include recommendations at or above this priority
            ("high", "medium" or "low").
        max_count: Maximum number of recommendations to return.

    Returns:
        Dict with the recommendations, high priority first.
    """
    try:
        app = get_context(ctx)
        recommendations = app.analyzer.get_recommendations(project_id)
        total = len(recommendations)

        if min_priority:
            recommendations = filter_by_priority(recommendations, _parse_priority(min_priority))
        if max_count is not None:
            if max_count < 0:
                raise InvalidInputError("max_count must be zero or greater.")
            recommendations = recommendations[:max_count]

        return {
            "success": True,
            "project_id": project_id,
            "total": total,
            "recommendations": [recommendation_to_dict(r) for r in recommendations],
        }
    except SkillScoutError as exc:
        return {"success": False, "error": str(exc)}
    except Exception as exc:
        await ctx.error(f"Unexpected error in list_recommendations: {exc}")
        return {"success": False, "error": f"Internal error: {type(exc).__name__}"}


async def select_recommendations(
    ctx: Context,
    project_id: str,
    recommendation_ids: list[str] | None = None,
    selected: bool = True,
) -> dict[str, object]:
    """Mark recommendations as selected (or deselected) for later use.

    Args:
        project_id: The id used when the project was analyzed.
        recommendation_ids: Ids to update. Omit to update every recommendation.
        selected: New selection state.

    Returns:
        Dict with the ids that were updated, any unknown ids, and the
        full list of currently selected ids.
    """
    try:
        app = get_context(ctx)
        analyzer = app.analyzer

        if recommendation_ids is None:
            updated = [r.id for r in analyzer.select_all_recommendations(project_id, selected)]
            unknown: list[str] = []
        else:
            updated = []
            unknown = []
            for rec_id in recommendation_ids:
                if analyzer.set_recommendation_selected(project_id, rec_id, selected) is None:
                    unknown.append(rec_id)
                else:
                    updated.append(rec_id)

        return {
            "success": True,
            "project_id": project_id,
            "updated": updated,
            "unknown": unknown,
            "selected_ids": analyzer.selected_recommendation_ids(project_id),
        }
    except SkillScoutError as exc:
        return {"success": False, "error": str(exc)}
    except Exception as exc:
        await ctx.error(f"Unexpected error in select_recommendations: {exc}")
        return {"success": False, "error": f"Internal error: {type(exc).__name__}"}


def _parse_priority(value: str) -> Priority:
    try:
        return Priority(value.strip().lower())
    except ValueError:
        raise InvalidInputError(
            f"Unknown priority '{value}'. Use one of: high, medium, low."
        ) from None
