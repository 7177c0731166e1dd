"""
options.py

Responsibility: Turn CLI flags, an optional YAML config file and prompt answers into
one resolved, immutable `ProjectOptions`.

Rules:
- CLI flags win over the config file, the config file wins over built-in defaults.
- `--yes` never prompts.
- Enabling authentication always enables the database (see `apply_feature_rules`).

Interactive I/O lives in `prompts.py`; this module only talks to a `Prompter`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol

import yaml

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_NAME = "my-app"
DEFAULT_COMMIT_MESSAGE = "Initial commit from create-unstack"

_NAME_RE = re.compile(r"[a-z0-9_-]+")

# Historical spellings of the performance flag.
FEATURE_ALIASES = {
    "reactScan": "react_scan",
    "react-scan": "react_scan",
    "million": "react_scan",
}


class OptionsError(ValueError):
    pass


@dataclass(frozen=True)
class FeatureSet:
    """Optional features of the generated project."""

    db: bool = False
    auth: bool = False
    react_scan: bool = False

    @classmethod
    def names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_selection(cls, selected: Iterable[str]) -> FeatureSet:
        chosen = {canonical_feature_name(name) for name in selected}
        return cls(**{name: name in chosen for name in cls.names()})

    def enabled(self) -> tuple[str, ...]:
        return tuple(name for name in self.names() if getattr(self, name))


@dataclass(frozen=True)
class ProjectOptions:
    name: str
    features: FeatureSet = field(default_factory=FeatureSet)


@dataclass(frozen=True)
class GitConfig:
    enabled: bool = True
    deterministic: bool = False
    message: str = DEFAULT_COMMIT_MESSAGE


@dataclass(frozen=True)
class ProjectConfig:
    """Contents of a `--config` YAML file. Unset values stay `None`."""

    name: str | None = None
    features: dict[str, bool] = field(default_factory=dict)
    git: GitConfig = field(default_factory=GitConfig)


class Prompter(Protocol):
    def ask_project_name(self, default: str) -> str: ...

    def select_features(self, options: list[tuple[str, str]], preselected: Iterable[str]) -> list[str]: ...


def canonical_feature_name(name: str) -> str:
    key = FEATURE_ALIASES.get(name, name)
    if key not in FeatureSet.names():
        raise OptionsError(f"Unknown feature: {name!r} (expected one of: {', '.join(FeatureSet.names())})")
    return key


def validate_project_name(value: str | None) -> str | None:
    """
    Return a user-facing error message, or None if `value` is a valid project name.
    """
    if not value:
        return "Please enter a project name"
    if not _NAME_RE.fullmatch(value):
        return "Project name can only contain lowercase letters, numbers, hyphens, and underscores"
    return None


def apply_feature_rules(features: FeatureSet) -> tuple[FeatureSet, list[str]]:
    """
    Apply cross-feature rules and return (corrected_features, notices).

    Re-applying to the result is a no-op and yields no notices.
    """
    notices: list[str] = []
    if features.auth and not features.db:
        features = replace(features, db=True)
        notices.append("Authentication requires a database. MongoDB has been automatically enabled.")
    return features, notices


def _parse_bool(value: Any, *, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raise OptionsError(f"`{key}` must be true or false, got {value!r}.")


def load_config(path: str | Path) -> ProjectConfig:
    """
    Load a YAML config file.

    Recognized keys (all optional):
    - name: str
    - features: mapping of feature name -> bool
    - git.enabled / git.deterministic: bool
    - git.message: str
    """
    cfg_path = Path(path)
    if not cfg_path.is_file():
        raise OptionsError(f"Config file does not exist: {cfg_path}")
    try:
        text = cfg_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise OptionsError(f"Cannot read config file: {cfg_path}") from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise OptionsError(f"Config file is not valid YAML: {cfg_path}") from e
    if not isinstance(data, dict):
        raise OptionsError("Config file must be a mapping/object at the top level.")

    name = data.get("name")
    if name is not None:
        name = str(name).strip()
        problem = validate_project_name(name)
        if problem:
            raise OptionsError(f"Invalid `name` in config: {problem}")

    features_raw = data.get("features") or {}
    if not isinstance(features_raw, dict):
        raise OptionsError("`features` must be an object/mapping when provided.")
    features = {
        canonical_feature_name(str(k)): _parse_bool(v, key=f"features.{k}") for k, v in features_raw.items()
    }

    git_raw = data.get("git")
    if git_raw is None:
        git_raw = {}
    if isinstance(git_raw, bool):
        git_raw = {"enabled": git_raw}
    if not isinstance(git_raw, dict):
        raise OptionsError("`git` must be a boolean or an object/mapping when provided.")
    git = GitConfig(
        enabled=_parse_bool(git_raw.get("enabled", True), key="git.enabled"),
        deterministic=_parse_bool(git_raw.get("deterministic", False), key="git.deterministic"),
        message=str(git_raw.get("message") or DEFAULT_COMMIT_MESSAGE),
    )

    return ProjectConfig(name=name, features=features, git=git)


def _merge_features(flags: Mapping[str, bool | None], config: ProjectConfig) -> FeatureSet:
    values: dict[str, bool] = {}
    for name in FeatureSet.names():
        flag = flags.get(name)
        if flag is not None:
            values[name] = bool(flag)
        else:
            values[name] = bool(config.features.get(name, False))
    return FeatureSet(**values)


def resolve_options(
    *,
    flags: Mapping[str, bool | None],
    prompter: Prompter | None,
    use_defaults: bool,
    name: str | None = None,
    config: ProjectConfig | None = None,
    feature_labels: list[tuple[str, str]] | None = None,
) -> tuple[ProjectOptions, list[str]]:
    """
    Resolve the project name and features.

    `flags` maps feature name -> True/False, or None when the flag was not given.
    `feature_labels` is the (flag, label) list shown by the multi-select prompt.
    Returns (options, notices); notices are for the caller to display.
    """
    config = config or ProjectConfig()
    preset = _merge_features(flags, config)
    default_name = name or config.name or DEFAULT_PROJECT_NAME

    if use_defaults or prompter is None:
        features = preset
        project_name = default_name
    else:
        project_name = name if name else prompter.ask_project_name(default_name)
        labels = feature_labels or [(n, n) for n in FeatureSet.names()]
        selected = prompter.select_features(labels, preset.enabled())
        features = FeatureSet.from_selection(selected)

    problem = validate_project_name(project_name)
    if problem:
        raise OptionsError(problem)

    features, notices = apply_feature_rules(features)
    logger.debug("Resolved project %r with features %s", project_name, features.enabled() or "none")
    return ProjectOptions(name=project_name, features=features), notices
