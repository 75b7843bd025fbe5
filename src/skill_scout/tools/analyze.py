"""Analysis tools -- classify a project and manage cached analyses."""

from __future__ import annotations

from pathlib import Path

from mcp.server.fastmcp import Context

from skill_scout.errors import SkillScoutError
from skill_scout.models import AnalysisProgress
from skill_scout.tools._helpers import (
    analysis_to_dict,
    get_context,
    pattern_to_dict,
    technology_to_dict,
)


async def analyze_project(
    ctx: Context,
    path: str,
    project_id: str | None = None,
    force_refresh: bool = False,
) -> dict[str, object]:
    """Analyze a local project and recommend AI coding skills for it.

    Detects languages, frameworks, tools and infrastructure from manifests,
    config files and file extensions, finds organizational patterns (monorepo,
    TDD, containerization, ...) and turns both into prioritized skill
    recommendations. Results are cached per project for 30 minutes.

    Args:
        path: Absolute path to the project directory.
        project_id: Cache key for the project. Defaults to the resolved path.
        force_refresh: Re-run the analysis even when a cached result exists.

    Returns:
        Dict with project_id, summary, technologies, patterns and
        recommendations (each with an id usable by select_recommendations).
    """
    try:
        app = get_context(ctx)
        key = project_id or _default_project_id(path)

        async def forward(progress: AnalysisProgress) -> None:
            await ctx.report_progress(progress.percent, 100)
            await ctx.info(progress.message)

        analysis = await app.analyzer.analyze(
            key, path, force_refresh=force_refresh, observer=forward
        )
        return {"success": True, **analysis_to_dict(analysis)}

    except SkillScoutError as exc:
        return {"success": False, "error": str(exc)}
    except Exception as exc:
        await ctx.error(f"Unexpected error in analyze_project: {exc}")
        return {"success": False, "error": f"Internal error: {type(exc).__name__}"}


async def detect_technologies(ctx: Context, path: str) -> dict[str, object]:
    """Detect the technologies used by a project without recommending anything.

    Args:
        path: Absolute path to the project directory.

    Returns:
        Dict with the detected technologies, strongest evidence first per entry.
    """
    try:
        app = get_context(ctx)
        technologies = await app.analyzer.detect_technologies(path)
        return {
            "success": True,
            "path": path,
            "technologies": [technology_to_dict(t) for t in technologies],
        }
    except SkillScoutError as exc:
        return {"success": False, "error": str(exc)}
    except Exception as exc:
        await ctx.error(f"Unexpected error in detect_technologies: {exc}")
        return {"success": False, "error": f"Internal error: {type(exc).__name__}"}


async def detect_patterns(ctx: Context, path: str) -> dict[str, object]:
    """Detect organizational and process patterns in a project tree.

    Args:
        path: Absolute path to the project directory.

    Returns:
        Dict with the retained patterns, highest confidence first.
    """
    try:
        app = get_context(ctx)
        patterns = await app.analyzer.detect_patterns(path)
        return {
            "success": True,
            "path": path,
            "patterns": [pattern_to_dict(p) for p in patterns],
        }
    except SkillScoutError as exc:
        return {"success": False, "error": str(exc)}
    except Exception as exc:
        await ctx.error(f"Unexpected error in detect_patterns: {exc}")
        return {"success": False, "error": f"Internal error: {type(exc).__name__}"}


async def get_cached_analysis(ctx: Context, project_id: str) -> dict[str, object]:
    """Return the cached analysis for a project, if it is still fresh.

    Args:
        project_id: The id used when the project was analyzed.

    Returns:
        Dict with cached=True and the analysis, or cached=False.
    """
    try:
        app = get_context(ctx)
        analysis = app.analyzer.get_cached(project_id)
        if analysis is None:
            return {"success": True, "cached": False, "project_id": project_id}
        return {"success": True, "cached": True, **analysis_to_dict(analysis)}
    except Exception as exc:
        await ctx.error(f"Unexpected error in get_cached_analysis: {exc}")
        return {"success": False, "error": f"Internal error: {type(exc).__name__}"}


async def invalidate_analysis(ctx: Context, project_id: str | None = None) -> dict[str, object]:
    """Drop a cached analysis so the next analyze_project call re-scans.

    Args:
        project_id: Project to invalidate. Omit to clear every cached analysis.
    """
    try:
        app = get_context(ctx)
        if project_id is None:
            cleared = len(app.analyzer.cache)
            app.analyzer.invalidate_all()
            return {"success": True, "invalidated": cleared}
        removed = app.analyzer.invalidate(project_id)
        return {"success": True, "invalidated": 1 if removed else 0, "project_id": project_id}
    except Exception as exc:
        await ctx.error(f"Unexpected error in invalidate_analysis: {exc}")
        return {"success": False, "error": f"Internal error: {type(exc).__name__}"}


def _default_project_id(path: str) -> str:
    if not path or not path.strip():
        return ""
    return str(Path(path).expanduser().resolve())
