"""MCP server that analyzes local projects and recommends AI coding skills."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from skill_scout.analysis.analyzer import ProjectAnalyzer
from skill_scout.analysis.cache import DEFAULT_TTL_SECONDS, AnalysisCache
from skill_scout.scanner.templates import load_catalog
from skill_scout.tools.analyze import (
    analyze_project,
    detect_patterns,
    detect_technologies,
    get_cached_analysis,
    invalidate_analysis,
)
from skill_scout.tools.recommendations import list_recommendations, select_recommendations

logger = logging.getLogger(__name__)

CACHE_TTL_ENV = "SKILL_SCOUT_CACHE_TTL"
CATALOG_ENV = "SKILL_SCOUT_CATALOG"


@dataclass(frozen=True, slots=True)
class AppContext:
    """Shared state across all tool invocations."""

    analyzer: ProjectAnalyzer


def cache_ttl_from_env() -> float:
    """Read the cache TTL in seconds, falling back to the default on bad input."""
    raw = os.environ.get(CACHE_TTL_ENV, "").strip()
    if not raw:
        return DEFAULT_TTL_SECONDS
    try:
        ttl = float(raw)
    except ValueError:
        ttl = 0.0
    if ttl <= 0:
        logger.warning(
            "Ignoring invalid %s=%r; using %d seconds", CACHE_TTL_ENV, raw, DEFAULT_TTL_SECONDS
        )
        return DEFAULT_TTL_SECONDS
    return ttl


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Build the analyzer once per server run -- the composition root."""
    catalog = load_catalog(os.environ.get(CATALOG_ENV) or None)
    analyzer = ProjectAnalyzer(AnalysisCache(cache_ttl_from_env()), catalog=catalog)
    try:
        yield AppContext(analyzer=analyzer)
    finally:
        analyzer.invalidate_all()


mcp = FastMCP(
    "skill-scout",
    instructions=(
        "skill-scout inspects a local project and recommends AI coding skills "
        "(reusable expert prompts) that fit its stack.\n\n"
        "## Workflow\n"
        "1. **analyze_project** -- Always start here with the project's absolute path. "
        "Returns detected technologies, organizational patterns and prioritized "
        "skill recommendations. Results are cached per project; pass "
        "force_refresh=True after the project changed.\n"
        "2. **list_recommendations** -- Filter the cached recommendations by "
        "min_priority or cap them with max_count.\n"
        "3. **select_recommendations** -- Mark the skills the user wants to adopt.\n\n"
        "### Other tools\n"
        "- **detect_technologies** / **detect_patterns** -- Run one classifier "
        "without caching or recommending.\n"
        "- **get_cached_analysis** -- Read a previous analysis without re-scanning.\n"
        "- **invalidate_analysis** -- Drop cached results.\n\n"
        "Present high priority recommendations first and quote the reason for each."
    ),
    lifespan=app_lifespan,
)

# ─── Read-only tools ──────────────────────────────────────────
mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))(analyze_project)
mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))(detect_technologies)
mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))(detect_patterns)
mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))(get_cached_analysis)
mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))(list_recommendations)

# ─── State-changing tools ─────────────────────────────────────
mcp.tool(annotations=ToolAnnotations(destructiveHint=True))(invalidate_analysis)
mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, idempotentHint=True))(
    select_recommendations
)
