"""Shared pytest fixtures for the create-unstack test suite."""

from __future__ import annotations

import io
from typing import Iterable

import pytest
from rich.console import Console

FIXED_SECRET = "00000000-0000-4000-8000-000000000000"

BASE_FILES = {
    "package.json",
    "tsconfig.json",
    "components.json",
    ".prettierrc",
    ".vscode/settings.json",
    ".env",
    ".env.example",
    ".gitignore",
    "README.md",
    "next.config.js",
    "config/site.ts",
    "config/fonts.ts",
    "app/layout.tsx",
    "app/page.tsx",
    "app/providers.tsx",
    "styles/globals.css",
    "lib/utils.ts",
    "tailwind.config.js",
    "postcss.config.js",
    "eslint.config.mjs",
}


class ScriptedPrompter:
    """Returns canned answers and records what it was asked."""

    def __init__(self, name: str = "my-app", features: Iterable[str] = ()) -> None:
        self.name = name
        self.features = list(features)
        self.calls: list[tuple[str, object]] = []

    def ask_project_name(self, default: str) -> str:
        self.calls.append(("name", default))
        return self.name

    def select_features(self, options, preselected):
        self.calls.append(("features", tuple(preselected)))
        return list(self.features)


class FailingPrompter:
    def ask_project_name(self, default: str) -> str:
        raise AssertionError("project name prompt should not be shown")

    def select_features(self, options, preselected):
        raise AssertionError("feature prompt should not be shown")


@pytest.fixture
def console() -> Console:
    """Console writing into a buffer; read it with `console.file.getvalue()`."""
    return Console(file=io.StringIO(), width=400, force_terminal=False, color_system=None)


@pytest.fixture
def fixed_secret() -> str:
    return FIXED_SECRET


@pytest.fixture
def scripted_prompter() -> type[ScriptedPrompter]:
    return ScriptedPrompter


@pytest.fixture
def failing_prompter() -> FailingPrompter:
    return FailingPrompter()


def files_on_disk(root) -> set[str]:
    return {
        p.relative_to(root).as_posix()
        for p in root.rglob("*")
        if p.is_file() and ".git" not in p.relative_to(root).parts
    }
