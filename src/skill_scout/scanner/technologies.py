"""Technology classifier -- detect technologies from project files.

Runs four independent strategies over a project directory (the npm manifest,
Python dependency files, well-known config files, and a file-extension
census) and consolidates their signals into one list of technologies.  All
file I/O goes through the soft-fail probes; a malformed or unreadable file
simply contributes no signals.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections import Counter
from dataclasses import dataclass
from pathlib import Path

from skill_scout.models import DetectedTechnology, DetectionSignal, TechnologyCategory
from skill_scout.scanner.probe import (
    is_directory,
    list_all_files,
    list_direct_children,
    path_exists,
    read_json,
    read_text_prefix,
)

logger = logging.getLogger(__name__)

_LANG = TechnologyCategory.LANGUAGE
_FRAMEWORK = TechnologyCategory.FRAMEWORK
_LIB = TechnologyCategory.LIBRARY
_TOOL = TechnologyCategory.TOOL
_DB = TechnologyCategory.DATABASE
_INFRA = TechnologyCategory.INFRASTRUCTURE
_CI = TechnologyCategory.CI_CD


@dataclass(frozen=True, slots=True)
class _Rule:
    """One row of a lookup table: any of ``names`` indicates ``technology``."""

    names: tuple[str, ...]
    technology: str
    category: TechnologyCategory
    confidence: float = 1.0


@dataclass(frozen=True, slots=True)
class _ExtensionRule:
    extensions: tuple[str, ...]
    technology: str
    category: TechnologyCategory
    min_files: int
    confidence: float


# ─── Public API ──────────────────────────────────────────────


async def detect_technologies(root: str | Path) -> list[DetectedTechnology]:
    """Detect the technologies used by the project at *root*.

    Runs all strategies concurrently.  A strategy that raises is logged and
    skipped; the remaining strategies still contribute.

    Returns:
        Consolidated technologies in order of first discovery.  An empty or
        missing directory yields an empty list.
    """
    root = Path(root)
    results = await asyncio.gather(
        _analyze_package_json(root),
        _analyze_python_project(root),
        _analyze_config_files(root),
        _analyze_file_extensions(root),
        return_exceptions=True,
    )

    signals: list[DetectionSignal] = []
    for result in results:
        if isinstance(result, BaseException):
            logger.warning("Technology strategy failed: %s", result)
            continue
        signals.extend(result)

    return consolidate_signals(signals)


async def detect_technologies_with_threshold(
    root: str | Path,
    min_confidence: float = 0.5,
) -> list[DetectedTechnology]:
    """Detect technologies and keep only those at or above *min_confidence*."""
    technologies = await detect_technologies(root)
    return [t for t in technologies if t.confidence >= min_confidence]


def consolidate_signals(signals: list[DetectionSignal]) -> list[DetectedTechnology]:
    """Merge signals into one DetectedTechnology per technology name.

    Confidence is the maximum across signals, version is the first non-empty
    one seen, and evidence keeps every signal in discovery order.  Output
    order is the order in which each name was first seen.
    """
    merged: dict[str, DetectedTechnology] = {}
    for signal in signals:
        existing = merged.get(signal.technology)
        if existing is None:
            merged[signal.technology] = DetectedTechnology(
                name=signal.technology,
                category=signal.category,
                confidence=_clamp(signal.confidence),
                evidence=[signal.evidence],
                version=signal.version or None,
            )
            continue

        merged[signal.technology] = DetectedTechnology(
            name=existing.name,
            category=existing.category,
            confidence=max(existing.confidence, _clamp(signal.confidence)),
            evidence=[*existing.evidence, signal.evidence],
            version=existing.version or signal.version or None,
        )
    return list(merged.values())


# ─── Lookup tables ───────────────────────────────────────────

# npm dependency names. First alias found in the manifest wins per row.
_PACKAGE_RULES: list[_Rule] = [
    # Frameworks
    _Rule(("react", "react-dom"), "React", _FRAMEWORK),
    _Rule(("next",), "Next.js", _FRAMEWORK),
    _Rule(("vue",), "Vue", _FRAMEWORK),
    _Rule(("nuxt",), "Nuxt", _FRAMEWORK),
    _Rule(("svelte",), "Svelte", _FRAMEWORK),
    _Rule(("@sveltejs/kit",), "SvelteKit", _FRAMEWORK),
    _Rule(("@angular/core",), "Angular", _FRAMEWORK),
    _Rule(("express",), "Express", _FRAMEWORK),
    _Rule(("fastify",), "Fastify", _FRAMEWORK),
    _Rule(("@nestjs/core",), "NestJS", _FRAMEWORK),
    _Rule(("hono",), "Hono", _FRAMEWORK),
    _Rule(("koa",), "Koa", _FRAMEWORK),
    _Rule(("astro",), "Astro", _FRAMEWORK),
    _Rule(("@remix-run/react",), "Remix", _FRAMEWORK),
    # Testing
    _Rule(("jest",), "Jest", _TOOL),
    _Rule(("vitest",), "Vitest", _TOOL),
    _Rule(("mocha",), "Mocha", _TOOL),
    _Rule(("playwright", "@playwright/test"), "Playwright", _TOOL),
    _Rule(("cypress",), "Cypress", _TOOL),
    _Rule(("@testing-library/react",), "React Testing Library", _TOOL),
    # State management
    _Rule(("redux", "@reduxjs/toolkit"), "Redux", _LIB),
    _Rule(("zustand",), "Zustand", _LIB),
    _Rule(("mobx",), "MobX", _LIB),
    _Rule(("recoil",), "Recoil", _LIB),
    _Rule(("jotai",), "Jotai", _LIB),
    _Rule(("pinia",), "Pinia", _LIB),
    # Data fetching
    _Rule(("@tanstack/react-query", "react-query"), "TanStack Query", _LIB),
    _Rule(("swr",), "SWR", _LIB),
    _Rule(("@trpc/client", "@trpc/server"), "tRPC", _LIB),
    _Rule(("graphql", "@apollo/client"), "GraphQL", _LIB),
    # ORMs and databases
    _Rule(("prisma", "@prisma/client"), "Prisma", _DB),
    _Rule(("drizzle-orm",), "Drizzle", _DB),
    _Rule(("typeorm",), "TypeORM", _DB),
    _Rule(("sequelize",), "Sequelize", _DB),
    _Rule(("mongoose",), "MongoDB", _DB, 0.9),
    _Rule(("pg", "postgres"), "PostgreSQL", _DB, 0.8),
    _Rule(("mysql2", "mysql"), "MySQL", _DB, 0.8),
    _Rule(("better-sqlite3", "sqlite3"), "SQLite", _DB, 0.9),
    _Rule(("redis", "ioredis"), "Redis", _DB, 0.9),
    # Build tools
    _Rule(("vite",), "Vite", _TOOL),
    _Rule(("webpack",), "Webpack", _TOOL),
    _Rule(("esbuild",), "esbuild", _TOOL),
    _Rule(("rollup",), "Rollup", _TOOL),
    _Rule(("parcel",), "Parcel", _TOOL),
    _Rule(("turbo",), "Turborepo", _TOOL),
    # Linting and formatting
    _Rule(("eslint",), "ESLint", _TOOL),
    _Rule(("prettier",), "Prettier", _TOOL),
    _Rule(("biome", "@biomejs/biome"), "Biome", _TOOL),
    # UI libraries
    _Rule(("@radix-ui/react-dialog",), "Radix UI", _LIB, 0.9),
    _Rule(("@shadcn/ui",), "shadcn/ui", _LIB),
    _Rule(("@mui/material",), "Material UI", _LIB),
    _Rule(("@chakra-ui/react",), "Chakra UI", _LIB),
    _Rule(("antd",), "Ant Design", _LIB),
    _Rule(("tailwindcss",), "Tailwind CSS", _LIB),
    # Validation
    _Rule(("zod",), "Zod", _LIB),
    _Rule(("yup",), "Yup", _LIB),
    _Rule(("joi",), "Joi", _LIB),
    # Authentication
    _Rule(("next-auth",), "NextAuth.js", _LIB),
    _Rule(("passport",), "Passport.js", _LIB),
    # Utilities
    _Rule(("lodash",), "Lodash", _LIB),
    _Rule(("date-fns",), "date-fns", _LIB),
    _Rule(("dayjs",), "Day.js", _LIB),
    _Rule(("axios",), "Axios", _LIB),
    # Documentation
    _Rule(("storybook", "@storybook/react"), "Storybook", _TOOL),
    _Rule(("typedoc",), "TypeDoc", _TOOL),
]

# requirements.txt package names (lower-cased).
_PYTHON_PACKAGE_RULES: list[_Rule] = [
    _Rule(("django",), "Django", _FRAMEWORK),
    _Rule(("fastapi",), "FastAPI", _FRAMEWORK),
    _Rule(("flask",), "Flask", _FRAMEWORK),
    _Rule(("pytest",), "pytest", _TOOL),
    _Rule(("pydantic",), "Pydantic", _LIB),
    _Rule(("sqlalchemy",), "SQLAlchemy", _DB),
    _Rule(("celery",), "Celery", _LIB),
]

# Case-insensitive substrings searched in pyproject.toml.
_PYPROJECT_MARKERS: list[tuple[str, str, TechnologyCategory, float]] = [
    ("[tool.poetry]", "Poetry", _TOOL, 1.0),
    ("fastapi", "FastAPI", _FRAMEWORK, 0.9),
    ("django", "Django", _FRAMEWORK, 0.9),
    ("flask", "Flask", _FRAMEWORK, 0.9),
]

# Root-level config files.  Candidates containing "/" are checked by path,
# "*.ext" candidates match by suffix.  First matching candidate wins per row.
_CONFIG_RULES: list[_Rule] = [
    # Languages
    _Rule(("tsconfig.json",), "TypeScript", _LANG),
    # Testing
    _Rule(("jest.config.js", "jest.config.ts", "jest.config.mjs"), "Jest", _TOOL),
    _Rule(("vitest.config.js", "vitest.config.ts", "vitest.config.mts"), "Vitest", _TOOL),
    _Rule(("playwright.config.js", "playwright.config.ts"), "Playwright", _TOOL),
    _Rule(("cypress.config.js", "cypress.config.ts"), "Cypress", _TOOL),
    # Linting
    _Rule(
        (
            ".eslintrc",
            ".eslintrc.js",
            ".eslintrc.json",
            ".eslintrc.cjs",
            "eslint.config.js",
            "eslint.config.mjs",
        ),
        "ESLint",
        _TOOL,
    ),
    _Rule((".prettierrc", ".prettierrc.js", ".prettierrc.json", "prettier.config.js"), "Prettier", _TOOL),
    _Rule(("biome.json",), "Biome", _TOOL),
    # Build tools
    _Rule(("vite.config.js", "vite.config.ts", "vite.config.mts"), "Vite", _TOOL),
    _Rule(("webpack.config.js", "webpack.config.ts"), "Webpack", _TOOL),
    _Rule(("rollup.config.js", "rollup.config.ts"), "Rollup", _TOOL),
    _Rule(("turbo.json",), "Turborepo", _TOOL),
    _Rule(("nx.json",), "Nx", _TOOL),
    # Frameworks
    _Rule(("next.config.js", "next.config.mjs", "next.config.ts"), "Next.js", _FRAMEWORK),
    _Rule(("nuxt.config.js", "nuxt.config.ts"), "Nuxt", _FRAMEWORK),
    _Rule(("svelte.config.js",), "Svelte", _FRAMEWORK),
    _Rule(("astro.config.js", "astro.config.mjs"), "Astro", _FRAMEWORK),
    _Rule(("remix.config.js",), "Remix", _FRAMEWORK),
    _Rule(("angular.json",), "Angular", _FRAMEWORK),
    _Rule(("nest-cli.json",), "NestJS", _FRAMEWORK),
    # Database
    _Rule(("prisma/schema.prisma",), "Prisma", _DB),
    _Rule(("drizzle.config.ts",), "Drizzle", _DB),
    # Styling
    _Rule(("tailwind.config.js", "tailwind.config.ts", "tailwind.config.cjs"), "Tailwind CSS", _LIB),
    _Rule(("postcss.config.js", "postcss.config.cjs"), "PostCSS", _TOOL, 0.8),
    # Infrastructure
    _Rule(("Dockerfile",), "Docker", _INFRA),
    _Rule(
        ("docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml"),
        "Docker Compose",
        _INFRA,
    ),
    _Rule(("terraform.tf", "main.tf"), "Terraform", _INFRA),
    _Rule(("pulumi.yaml",), "Pulumi", _INFRA),
    _Rule(("serverless.yml", "serverless.yaml"), "Serverless Framework", _INFRA),
    # CI/CD
    _Rule((".github/workflows",), "GitHub Actions", _CI),
    _Rule((".circleci/config.yml",), "CircleCI", _CI),
    _Rule((".gitlab-ci.yml",), "GitLab CI", _CI),
    _Rule(("Jenkinsfile",), "Jenkins", _CI),
    # Python
    _Rule(("pyproject.toml",), "Python", _LANG, 0.9),
    _Rule(("requirements.txt",), "Python", _LANG, 0.9),
    _Rule(("Pipfile",), "Python", _LANG, 0.9),
    _Rule(("setup.py",), "Python", _LANG, 0.8),
    # Go / Rust / Ruby
    _Rule(("go.mod",), "Go", _LANG),
    _Rule(("Cargo.toml",), "Rust", _LANG),
    _Rule(("Gemfile",), "Ruby", _LANG),
    _Rule(("config/application.rb",), "Rails", _FRAMEWORK),
    # JVM
    _Rule(("pom.xml",), "Maven", _TOOL),
    _Rule(("build.gradle", "build.gradle.kts"), "Gradle", _TOOL),
    # PHP
    _Rule(("composer.json",), "PHP", _LANG, 0.9),
    # .NET
    _Rule(("*.csproj",), "C#", _LANG),
    _Rule(("*.fsproj",), "F#", _LANG),
]

_EXTENSION_RULES: list[_ExtensionRule] = [
    _ExtensionRule((".ts", ".tsx"), "TypeScript", _LANG, 1, 0.9),
    _ExtensionRule((".js", ".jsx", ".mjs", ".cjs"), "JavaScript", _LANG, 3, 0.8),
    _ExtensionRule((".py",), "Python", _LANG, 1, 0.9),
    _ExtensionRule((".go",), "Go", _LANG, 1, 0.9),
    _ExtensionRule((".rs",), "Rust", _LANG, 1, 0.9),
    _ExtensionRule((".rb",), "Ruby", _LANG, 1, 0.9),
    _ExtensionRule((".java",), "Java", _LANG, 1, 0.9),
    _ExtensionRule((".kt", ".kts"), "Kotlin", _LANG, 1, 0.9),
    _ExtensionRule((".cs",), "C#", _LANG, 1, 0.9),
    _ExtensionRule((".php",), "PHP", _LANG, 1, 0.9),
    _ExtensionRule((".swift",), "Swift", _LANG, 1, 0.9),
    _ExtensionRule((".vue",), "Vue", _FRAMEWORK, 1, 0.9),
    _ExtensionRule((".svelte",), "Svelte", _FRAMEWORK, 1, 0.9),
]

_REQUIREMENT_NAME = re.compile(r"^([a-zA-Z0-9_-]+)")


# ─── Strategies ──────────────────────────────────────────────


async def _analyze_package_json(root: Path) -> list[DetectionSignal]:
    """Detect Node.js and npm dependencies from package.json."""
    manifest = await read_json(root / "package.json")
    if manifest is None:
        return []

    signals = [
        DetectionSignal(
            technology="Node.js",
            category=TechnologyCategory.PLATFORM,
            confidence=1.0,
            evidence="package.json exists",
        )
    ]

    dependencies: dict[str, object] = {}
    for section in ("dependencies", "devDependencies", "peerDependencies"):
        deps = manifest.get(section)
        if isinstance(deps, dict):
            dependencies.update(deps)

    signals.extend(_match_package_rules(dependencies))
    return signals


async def _analyze_python_project(root: Path) -> list[DetectionSignal]:
    """Detect Python frameworks and tooling from requirements.txt and pyproject.toml."""
    signals: list[DetectionSignal] = []

    requirements = await read_text_prefix(root / "requirements.txt", max_bytes=1_000_000)
    if requirements is not None:
        signals.extend(_match_requirements(requirements))

    pyproject = await read_text_prefix(root / "pyproject.toml", max_bytes=1_000_000)
    if pyproject is not None:
        signals.extend(_match_pyproject_markers(pyproject))

    return signals


async def _analyze_config_files(root: Path) -> list[DetectionSignal]:
    """Detect tools and frameworks from well-known config file names."""
    root_names = set(await list_direct_children(root))
    signals: list[DetectionSignal] = []

    for rule in _CONFIG_RULES:
        for candidate in rule.names:
            if await _config_candidate_present(root, root_names, candidate):
                label = "Config file pattern" if candidate.startswith("*") else "Config file"
                signals.append(
                    DetectionSignal(
                        technology=rule.technology,
                        category=rule.category,
                        confidence=rule.confidence,
                        evidence=f"{label}: {candidate}",
                    )
                )
                break

    return signals


async def _analyze_file_extensions(root: Path) -> list[DetectionSignal]:
    """Detect languages from a census of file extensions."""
    if not await is_directory(root):
        return []

    files = await list_all_files(root)
    counts = Counter(path.suffix for path in files if path.suffix)

    signals: list[DetectionSignal] = []
    for rule in _EXTENSION_RULES:
        total = sum(counts[ext] for ext in rule.extensions)
        if total >= rule.min_files:
            signals.append(
                DetectionSignal(
                    technology=rule.technology,
                    category=rule.category,
                    confidence=min(rule.confidence, 0.5 + total * 0.05),
                    evidence=f"File extensions: {', '.join(rule.extensions)} ({total} files)",
                )
            )
    return signals


# ─── Matching Helpers ────────────────────────────────────────


def _match_package_rules(dependencies: dict[str, object]) -> list[DetectionSignal]:
    """Map npm dependency names to signals, one per table row at most."""
    signals: list[DetectionSignal] = []
    for rule in _PACKAGE_RULES:
        for package in rule.names:
            if package not in dependencies:
                continue
            spec = dependencies[package]
            signals.append(
                DetectionSignal(
                    technology=rule.technology,
                    category=rule.category,
                    confidence=rule.confidence,
                    evidence=f"package.json dependency: {package}",
                    version=_clean_version(spec),
                )
            )
            break
    return signals


def _match_requirements(text: str) -> list[DetectionSignal]:
    """Map requirements.txt lines to signals."""
    signals: list[DetectionSignal] = []
    for line in text.splitlines():
        match = _REQUIREMENT_NAME.match(line.strip())
        if match is None:
            continue
        package = match.group(1).lower()
        for rule in _PYTHON_PACKAGE_RULES:
            if package in rule.names:
                signals.append(
                    DetectionSignal(
                        technology=rule.technology,
                        category=rule.category,
                        confidence=rule.confidence,
                        evidence=f"requirements.txt: {package}",
                    )
                )
    return signals


def _match_pyproject_markers(text: str) -> list[DetectionSignal]:
    """Map case-insensitive pyproject.toml markers to signals."""
    lowered = text.lower()
    return [
        DetectionSignal(
            technology=technology,
            category=category,
            confidence=confidence,
            evidence=f"pyproject.toml mentions {marker}",
        )
        for marker, technology, category, confidence in _PYPROJECT_MARKERS
        if marker in lowered
    ]


async def _config_candidate_present(root: Path, root_names: set[str], candidate: str) -> bool:
    if "/" in candidate:
        return await path_exists(root / candidate)
    if candidate.startswith("*"):
        suffix = candidate[1:]
        return any(name.endswith(suffix) for name in root_names)
    return candidate in root_names


# ─── Utility Helpers ─────────────────────────────────────────


def _clean_version(spec: object) -> str | None:
    """Strip the leading range operator from an npm version spec.

    Examples:
        ``^18.2.0`` → ``18.2.0``
        ``~5.1`` → ``5.1``
    """
    if not isinstance(spec, str) or not spec:
        return None
    return re.sub(r"[\^~]", "", spec, count=1) or None


def _clamp(confidence: float) -> float:
    return max(0.0, min(confidence, 1.0))
