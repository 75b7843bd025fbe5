"""Pattern classifier -- detect organizational and process patterns.

Each pattern definition inspects the tree for one structural signature and
accumulates confidence additively over independent sub-checks.  Definitions
run concurrently; only patterns that were detected with confidence above
RETENTION_THRESHOLD are reported.
"""

from __future__ import annotations

import asyncio
import logging
import re
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from skill_scout.models import DetectedPattern, PatternCheck
from skill_scout.scanner.probe import (
    is_directory,
    list_all_files,
    list_subdirectories,
    path_exists,
    read_text_prefix,
)

logger = logging.getLogger(__name__)

RETENTION_THRESHOLD = 0.3

_COMPONENT_FILE = re.compile(r"\.(tsx|jsx|vue|svelte)$")
_TEST_FILE = re.compile(r"\.(test|spec)\.(ts|tsx|js|jsx)$|^test_.*\.py$|_test\.(py|go)$")
_ROUTE_FILE = re.compile(r"route\.(ts|js)$")
_TYPE_DECLARATION_FILE = re.compile(r"\.d\.ts$")
_DOCUMENTED_SOURCE_FILE = re.compile(r"\.(ts|tsx|py)$")
_DOC_COMMENT_MARKERS = ("/**", "@param", "@returns", '"""')


@dataclass(frozen=True, slots=True)
class PatternDefinition:
    """A named pattern and the coroutine that checks for it."""

    key: str
    name: str
    description: str
    detect: Callable[[Path], Awaitable[PatternCheck]]


class _Accumulator:
    """Collects weighted sub-check hits for one pattern definition."""

    __slots__ = ("confidence", "detected", "evidence")

    def __init__(self) -> None:
        self.detected = False
        self.confidence = 0.0
        self.evidence: list[str] = []

    def hit(self, weight: float, evidence: str | None = None, *, detects: bool = True) -> None:
        if detects:
            self.detected = True
        self.confidence += weight
        if evidence is not None:
            self.evidence.append(evidence)

    def result(self) -> PatternCheck:
        return PatternCheck(
            detected=self.detected,
            confidence=round(min(self.confidence, 1.0), 2),
            evidence=list(self.evidence),
        )


# ─── Pattern Detectors ───────────────────────────────────────


async def _detect_monorepo(root: Path) -> PatternCheck:
    acc = _Accumulator()

    if await is_directory(root / "packages"):
        acc.hit(0.4, "packages/")
    if await is_directory(root / "apps"):
        acc.hit(0.4, "apps/")

    manifest = await read_text_prefix(root / "package.json")
    if manifest and '"workspaces"' in manifest:
        acc.hit(0.3, "package.json workspaces")

    if await path_exists(root / "pnpm-workspace.yaml"):
        acc.hit(0.3, "pnpm-workspace.yaml")
    if await path_exists(root / "turbo.json"):
        acc.hit(0.2, "turbo.json")
    if await path_exists(root / "nx.json"):
        acc.hit(0.2, "nx.json")

    return acc.result()


async def _detect_feature_based(root: Path) -> PatternCheck:
    acc = _Accumulator()
    src = root / "src"

    for indicator in ("features", "modules", "domains", "pages"):
        directory = src / indicator
        if not await is_directory(directory):
            continue
        acc.hit(0.3, f"src/{indicator}/")
        if await _has_colocated_index(directory):
            acc.hit(0.2)

    return acc.result()


async def _detect_component_driven(root: Path) -> PatternCheck:
    acc = _Accumulator()

    for relative in ("src/components", "components", "src/ui"):
        directory = root / relative
        if not await is_directory(directory):
            continue
        acc.hit(0.4, relative)
        if len(await list_subdirectories(directory)) > 3:
            acc.hit(0.2)

    for storybook in (".storybook/main.js", ".storybook/main.ts"):
        if await path_exists(root / storybook):
            acc.hit(0.3, ".storybook/")
            break

    component_files = await list_all_files(root, max_depth=2, pattern=_COMPONENT_FILE)
    if len(component_files) > 5:
        acc.hit(0.2)

    return acc.result()


async def _detect_test_driven(root: Path) -> PatternCheck:
    acc = _Accumulator()

    for name in ("__tests__", "tests", "test", "spec"):
        if await is_directory(root / name):
            acc.hit(0.2, f"{name}/")
        if await is_directory(root / "src" / name):
            acc.hit(0.2, f"src/{name}/")

    test_files = await list_all_files(root, max_depth=3, pattern=_TEST_FILE)
    if test_files:
        acc.hit(0.3, f"{len(test_files)} test files found")
        if len(test_files) > 10:
            acc.hit(0.2)

    for config in (
        "jest.config.js",
        "vitest.config.ts",
        "playwright.config.ts",
        "cypress.config.ts",
        "pytest.ini",
    ):
        if await path_exists(root / config):
            acc.hit(0.1, detects=False)

    return acc.result()


async def _detect_api_layer(root: Path) -> PatternCheck:
    acc = _Accumulator()

    for relative in ("src/api", "src/services", "src/lib/api", "api", "src/queries"):
        if await is_directory(root / relative):
            acc.hit(0.3, relative)

    # Next.js pages router and app router
    if await is_directory(root / "pages" / "api"):
        acc.hit(0.3, "pages/api/")
    if await is_directory(root / "app" / "api"):
        acc.hit(0.3, "app/api/")

    route_files = await list_all_files(root, max_depth=3, pattern=_ROUTE_FILE)
    if route_files:
        acc.hit(0.2, f"{len(route_files)} route handlers")

    return acc.result()


async def _detect_type_first(root: Path) -> PatternCheck:
    acc = _Accumulator()

    for relative in ("src/types", "types", "src/@types"):
        if await is_directory(root / relative):
            acc.hit(0.3, relative)

    declaration_files = await list_all_files(root, max_depth=3, pattern=_TYPE_DECLARATION_FILE)
    if declaration_files:
        acc.hit(0.2, f"{len(declaration_files)} type definition files")

    tsconfig = await read_text_prefix(root / "tsconfig.json")
    if tsconfig and ('"strict": true' in tsconfig or '"strict":true' in tsconfig):
        acc.hit(0.3, "tsconfig.json: strict mode enabled")

    manifest = await read_text_prefix(root / "package.json")
    if manifest and any(lib in manifest for lib in ('"zod"', '"yup"', '"io-ts"')):
        acc.hit(0.2, "Schema validation library detected")

    return acc.result()


async def _detect_config_management(root: Path) -> PatternCheck:
    acc = _Accumulator()

    for name in (".env", ".env.local", ".env.example", ".env.development", ".env.production"):
        if await path_exists(root / name):
            acc.hit(0.15, name)

    if await is_directory(root / "config"):
        acc.hit(0.2, "config/")

    manifest = await read_text_prefix(root / "package.json")
    if manifest and "dotenv" in manifest:
        acc.hit(0.2, "dotenv dependency")

    return acc.result()


async def _detect_documentation(root: Path) -> PatternCheck:
    acc = _Accumulator()

    for name in ("README.md", "CONTRIBUTING.md", "CHANGELOG.md", "CLAUDE.md", "ARCHITECTURE.md"):
        if await path_exists(root / name):
            acc.hit(0.15, name)

    for relative in ("docs", ".claude/docs", "documentation"):
        if await is_directory(root / relative):
            acc.hit(0.2, f"{relative}/")

    # Sample the first few source files for doc comments
    sources = await list_all_files(root, max_depth=2, pattern=_DOCUMENTED_SOURCE_FILE)
    documented = 0
    for path in sources[:5]:
        content = await read_text_prefix(path)
        if content and any(marker in content for marker in _DOC_COMMENT_MARKERS):
            documented += 1
    if documented > 2:
        acc.hit(0.2, "Doc comments in source files")

    return acc.result()


async def _detect_cicd(root: Path) -> PatternCheck:
    acc = _Accumulator()

    if await is_directory(root / ".github" / "workflows"):
        acc.hit(0.4, ".github/workflows/")
    for relative in (".gitlab-ci.yml", ".circleci/config.yml", "Jenkinsfile", "azure-pipelines.yml"):
        if await path_exists(root / relative):
            acc.hit(0.4, relative)

    return acc.result()


async def _detect_containerization(root: Path) -> PatternCheck:
    acc = _Accumulator()

    if await path_exists(root / "Dockerfile"):
        acc.hit(0.4, "Dockerfile")
    for name in ("docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml"):
        if await path_exists(root / name):
            acc.hit(0.3, name)
    if await path_exists(root / ".dockerignore"):
        acc.hit(0.1, detects=False)
    if await is_directory(root / "k8s"):
        acc.hit(0.3, "k8s/")

    return acc.result()


PATTERN_DEFINITIONS: list[PatternDefinition] = [
    PatternDefinition(
        key="monorepo",
        name="Monorepo Structure",
        description="Project uses a monorepo structure with multiple packages",
        detect=_detect_monorepo,
    ),
    PatternDefinition(
        key="feature-based",
        name="Feature-Based Organization",
        description="Code is organized by features/domains rather than technical layers",
        detect=_detect_feature_based,
    ),
    PatternDefinition(
        key="component-driven",
        name="Component-Driven Development",
        description="UI is built with reusable, self-contained components",
        detect=_detect_component_driven,
    ),
    PatternDefinition(
        key="tdd",
        name="Test-Driven Development",
        description="Project has comprehensive test coverage alongside source code",
        detect=_detect_test_driven,
    ),
    PatternDefinition(
        key="api-layer",
        name="API Layer Separation",
        description="Clear separation between API/service layer and UI",
        detect=_detect_api_layer,
    ),
    PatternDefinition(
        key="type-first",
        name="Type-First Development",
        description="Strong emphasis on type definitions and type safety",
        detect=_detect_type_first,
    ),
    PatternDefinition(
        key="config-management",
        name="Environment Configuration",
        description="Uses environment variables and configuration files for settings",
        detect=_detect_config_management,
    ),
    PatternDefinition(
        key="documentation-first",
        name="Documentation Focus",
        description="Project has comprehensive documentation",
        detect=_detect_documentation,
    ),
    PatternDefinition(
        key="cicd",
        name="CI/CD Integration",
        description="Project has automated CI/CD pipelines",
        detect=_detect_cicd,
    ),
    PatternDefinition(
        key="containerization",
        name="Containerization",
        description="Project uses container-based deployment",
        detect=_detect_containerization,
    ),
]


# ─── Public API ──────────────────────────────────────────────


async def detect_patterns(
    root: str | Path,
    definitions: list[PatternDefinition] | None = None,
) -> list[DetectedPattern]:
    """Detect patterns in the project at *root*.

    Args:
        root: Project directory.
        definitions: Pattern catalog to run. Defaults to PATTERN_DEFINITIONS.

    Returns:
        Patterns detected with confidence strictly above RETENTION_THRESHOLD,
        sorted by descending confidence.
    """
    root = Path(root)
    definitions = PATTERN_DEFINITIONS if definitions is None else definitions

    checks = await asyncio.gather(
        *(definition.detect(root) for definition in definitions),
        return_exceptions=True,
    )

    patterns: list[DetectedPattern] = []
    for definition, check in zip(definitions, checks, strict=True):
        if isinstance(check, BaseException):
            logger.warning("Pattern detector '%s' failed: %s", definition.key, check)
            continue
        if not check.detected or check.confidence <= RETENTION_THRESHOLD:
            continue
        patterns.append(
            DetectedPattern(
                id=_generate_pattern_id(),
                name=definition.name,
                description=definition.description,
                confidence=min(check.confidence, 1.0),
                evidence=list(check.evidence),
            )
        )

    patterns.sort(key=lambda p: p.confidence, reverse=True)
    return patterns


async def detect_patterns_with_threshold(
    root: str | Path,
    min_confidence: float = 0.5,
) -> list[DetectedPattern]:
    """Detect patterns and keep only those at or above *min_confidence*."""
    patterns = await detect_patterns(root)
    return [p for p in patterns if p.confidence >= min_confidence]


# ─── Helpers ─────────────────────────────────────────────────


async def _has_colocated_index(directory: Path) -> bool:
    """True if any subdirectory of *directory* exposes an index module."""
    for subdir in await list_subdirectories(directory):
        for index in ("index.ts", "index.tsx"):
            if await path_exists(directory / subdir / index):
                return True
    return False


def _generate_pattern_id() -> str:
    return f"pattern_{uuid.uuid4().hex[:12]}"
