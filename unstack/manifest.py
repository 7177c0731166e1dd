"""
manifest.py

Responsibility: Derive the complete set of files for a new project from its name and features.

Rules:
- `derive_manifest` has no side effects: it reads packaged templates, never writes or spawns.
- Same inputs (with `secret` held fixed) always produce byte-identical artifacts.
- Base artifacts are always present; features only add files, add dependency keys,
  or contribute fragments to named slots.

This module intentionally does NOT touch the output directory or git.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Iterator, Mapping, Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from unstack.features import LAYOUT_HEAD, LAYOUT_IMPORTS, SLOTS, enabled_descriptors
from unstack.options import FeatureSet

TEMPLATES_DIR = Path(__file__).parent / "templates"

ENV_EXAMPLE_SECRET = "replace-with-a-random-secret"

BASE_DEPENDENCIES: dict[str, str] = {
    "@heroui/button": "2.2.17",
    "@heroui/system": "2.4.13",
    "@heroui/theme": "2.4.13",
    "@heroui/toast": "^2.0.7",
    "autoprefixer": "^10.4.16",
    "class-variance-authority": "^0.7.1",
    "clsx": "^2.1.1",
    "lucide-react": "^0.292.0",
    "next": "^15.3.0",
    "next-themes": "^0.4.6",
    "postcss": "^8.4.31",
    "react": "18.3.1",
    "react-dom": "18.3.1",
    "tailwind-merge": "^2.0.0",
    "tailwindcss": "3.4.16",
    "tailwindcss-animate": "^1.0.7",
}

BASE_DEV_DEPENDENCIES: dict[str, str] = {
    "@types/node": "^20.9.0",
    "@types/react": "^18.2.37",
    "@types/react-dom": "^18.2.15",
    "eslint": "^8.53.0",
    "eslint-config-next": "^14.0.0",
    "prettier": "^3.0.3",
    "prettier-plugin-tailwindcss": "^0.5.7",
    "typescript": "^5.2.2",
}

# Output path -> template name.
BASE_TEMPLATES: dict[str, str] = {
    "next.config.js": "base/next.config.js.j2",
    ".gitignore": "base/gitignore.j2",
    "README.md": "base/README.md.j2",
    "config/site.ts": "base/config/site.ts.j2",
    "config/fonts.ts": "base/config/fonts.ts.j2",
    "app/layout.tsx": "base/app/layout.tsx.j2",
    "app/page.tsx": "base/app/page.tsx.j2",
    "app/providers.tsx": "base/app/providers.tsx.j2",
    "styles/globals.css": "base/styles/globals.css.j2",
    "lib/utils.ts": "base/lib/utils.ts.j2",
    "tailwind.config.js": "base/tailwind.config.js.j2",
    "postcss.config.js": "base/postcss.config.js.j2",
    "eslint.config.mjs": "base/eslint.config.mjs.j2",
}

BASE_DIRECTORIES: tuple[str, ...] = ("components", "components/ui")

# Per-line indentation applied to slot fragments.
_SLOT_INDENT = {
    LAYOUT_IMPORTS: "",
    LAYOUT_HEAD: " " * 12,
}

Content = Union[str, Mapping[str, Any]]


class ManifestError(RuntimeError):
    pass


@dataclass(frozen=True)
class Artifact:
    path: str
    content: Content

    def render(self) -> str:
        if isinstance(self.content, str):
            return self.content
        return json.dumps(self.content, indent=2, ensure_ascii=False) + "\n"


@dataclass(frozen=True)
class ArtifactManifest:
    """Every file (and bare directory) of one generated project, keyed by relative POSIX path."""

    files: dict[str, Artifact] = field(default_factory=dict)
    directories: tuple[str, ...] = ()

    def paths(self) -> list[str]:
        return sorted(self.files)

    def text(self, path: str) -> str:
        return self.files[path].render()

    def __contains__(self, path: object) -> bool:
        return path in self.files

    def __getitem__(self, path: str) -> Artifact:
        return self.files[path]

    def __iter__(self) -> Iterator[Artifact]:
        for path in self.paths():
            yield self.files[path]

    def __len__(self) -> int:
        return len(self.files)


def _check_relative(path: str) -> str:
    p = PurePosixPath(path)
    if p.is_absolute() or ".." in p.parts or not p.parts:
        raise ManifestError(f"Artifact path must be relative to the project root: {path!r}")
    return str(p)


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def _render_slots(features: FeatureSet) -> dict[str, str]:
    fragments: dict[str, list[str]] = {name: [] for name in SLOTS}
    for descriptor in enabled_descriptors(features):
        for slot, values in descriptor.slots.items():
            if slot not in fragments:
                raise ManifestError(f"Feature {descriptor.flag!r} targets unknown slot {slot!r}")
            fragments[slot].extend(values)
    return {slot: "".join(f"{_SLOT_INDENT[slot]}{line}\n" for line in lines) for slot, lines in fragments.items()}


def build_package_json(name: str, features: FeatureSet) -> dict[str, Any]:
    dependencies = dict(BASE_DEPENDENCIES)
    dev_dependencies = dict(BASE_DEV_DEPENDENCIES)
    for descriptor in enabled_descriptors(features):
        dependencies.update(descriptor.dependencies)
        dev_dependencies.update(descriptor.dev_dependencies)

    return {
        "name": name,
        "version": "0.1.0",
        "type": "module",
        "private": True,
        "scripts": {
            "dev": "next dev --turbopack",
            "build": "next build",
            "start": "next start",
            "lint": "next lint",
            "format": "prettier --write .",
        },
        "dependencies": dict(sorted(dependencies.items())),
        "devDependencies": dict(sorted(dev_dependencies.items())),
    }


def build_tsconfig() -> dict[str, Any]:
    return {
        "compilerOptions": {
            "target": "es5",
            "lib": ["dom", "dom.iterable", "esnext"],
            "allowJs": True,
            "skipLibCheck": True,
            "strict": True,
            "forceConsistentCasingInFileNames": True,
            "noEmit": True,
            "esModuleInterop": True,
            "module": "esnext",
            "moduleResolution": "node",
            "resolveJsonModule": True,
            "isolatedModules": True,
            "jsx": "preserve",
            "incremental": True,
            "plugins": [{"name": "next"}],
            "paths": {"@/*": ["./*"]},
        },
        "include": ["next-env.d.ts", "**/*.ts", "**/*.tsx", ".next/types/**/*.ts"],
        "exclude": ["node_modules"],
    }


def build_components_json() -> dict[str, Any]:
    return {
        "$schema": "https://ui.shadcn.com/schema.json",
        "style": "new-york",
        "rsc": True,
        "tsx": True,
        "tailwind": {
            "config": "tailwind.config.js",
            "css": "styles/globals.css",
            "baseColor": "zinc",
            "cssVariables": False,
            "prefix": "",
        },
        "aliases": {
            "components": "@/components",
            "utils": "@/lib/utils",
            "ui": "@/components/ui",
            "lib": "@/lib",
            "hooks": "@/hooks",
        },
        "iconLibrary": "lucide",
    }


def build_prettier_config() -> dict[str, Any]:
    return {"tabWidth": 4, "plugins": ["prettier-plugin-tailwindcss"]}


def build_vscode_settings() -> dict[str, Any]:
    return {
        "editor.formatOnSave": True,
        "editor.defaultFormatter": "rvest.vs-code-prettier-eslint",
        "editor.codeActionsOnSave": {"source.fixAll.eslint": True},
        "typescript.tsdk": "node_modules/typescript/lib",
        "typescript.enablePromptUseWorkspaceTsdk": True,
    }


def derive_manifest(name: str, features: FeatureSet, *, secret: str | None = None) -> ArtifactManifest:
    """
    Compute every artifact of a project named `name` with `features` enabled.

    `secret` seeds BETTER_AUTH_SECRET in `.env`; a fresh UUID4 is generated when omitted.
    """
    if secret is None:
        secret = str(uuid.uuid4())

    env = _environment()
    descriptors = list(enabled_descriptors(features))
    context: dict[str, Any] = {
        "project_name": name,
        "features": features,
        "slots": _render_slots(features),
        "readme_features": [d.readme_feature for d in descriptors if d.readme_feature],
        "readme_links": [d.readme_link for d in descriptors if d.readme_link],
    }

    files: dict[str, Artifact] = {}

    def add(path: str, content: Content) -> None:
        path = _check_relative(path)
        if path in files:
            raise ManifestError(f"Duplicate artifact path: {path}")
        files[path] = Artifact(path=path, content=content)

    add("package.json", build_package_json(name, features))
    add("tsconfig.json", build_tsconfig())
    add("components.json", build_components_json())
    add(".prettierrc", build_prettier_config())
    add(".vscode/settings.json", build_vscode_settings())

    env_template = env.get_template("base/env.j2")
    add(".env", env_template.render(**context, secret=secret))
    add(".env.example", env_template.render(**context, secret=ENV_EXAMPLE_SECRET))

    for path, template_name in BASE_TEMPLATES.items():
        add(path, env.get_template(template_name).render(**context))

    for descriptor in descriptors:
        for path, template_name in descriptor.artifacts.items():
            add(path, env.get_template(template_name).render(**context))

    return ArtifactManifest(files=files, directories=BASE_DIRECTORIES)

