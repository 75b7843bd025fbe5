"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

TreeSpec = dict[str, object]


def build_tree(root: Path, spec: TreeSpec) -> Path:
    """Materialize *spec* under *root*.

    Keys are relative paths.  A dict value is written as JSON, a str as text,
    and None creates an empty directory.
    """
    for relative, content in spec.items():
        target = root / relative
        if content is None:
            target.mkdir(parents=True, exist_ok=True)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, dict):
            target.write_text(json.dumps(content), encoding="utf-8")
        else:
            target.write_text(str(content), encoding="utf-8")
    return root


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[[TreeSpec], Path]:
    """Return a builder that lays out a project tree inside tmp_path."""

    def _make(spec: TreeSpec) -> Path:
        return build_tree(tmp_path, spec)

    return _make


# React monorepo with a strict TypeScript config and Next.js-style API routes.
REACT_MONOREPO: TreeSpec = {
    "package.json": {
        "name": "acme",
        "workspaces": ["packages/*", "apps/*"],
        "dependencies": {"react": "^18.2.0", "react-dom": "^18.2.0"},
        "devDependencies": {"jest": "~29.7.0", "typescript": "^5.4.0"},
    },
    "tsconfig.json": '{"compilerOptions": {"strict": true}}',
    "packages/ui/package.json": {"name": "@acme/ui"},
    "apps/web/package.json": {"name": "@acme/web"},
    "src/types/index.ts": "export type Id = string;\n",
    "src/components/Button.tsx": "export const Button = () => null;\n",
    "src/components/Card.tsx": "export const Card = () => null;\n",
    "pages/api/health.ts": "export default function handler() {}\n",
    "app/api/route.ts": "export async function GET() {}\n",
}


@pytest.fixture
def react_monorepo(make_tree: Callable[[TreeSpec], Path]) -> Path:
    return make_tree(REACT_MONOREPO)
