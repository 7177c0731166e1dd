"""
emitter.py

Responsibility: Write an `ArtifactManifest` to disk, then initialize a git repository.

Phases run in order: create directory -> write files -> git init/add/commit.
- Directory or file failures are fatal (`EmissionError`); files already written stay on disk.
- Git failures are not: they are reported as a warning and the run still ends in DONE.

This module intentionally does NOT know about prompts or CLI parsing.
"""

from __future__ import annotations

import enum
import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from unstack.manifest import ArtifactManifest
from unstack.options import DEFAULT_COMMIT_MESSAGE

logger = logging.getLogger(__name__)


class EmissionError(RuntimeError):
    def __init__(self, path: Path, operation: str, detail: str) -> None:
        super().__init__(f"Failed to {operation} {path}: {detail}")
        self.path = path
        self.operation = operation
        self.detail = detail


class GitError(RuntimeError):
    pass


class EmissionState(enum.Enum):
    IDLE = "idle"
    DIRECTORY_CREATED = "directory_created"
    FILES_WRITTEN = "files_written"
    REPO_INITIALIZED = "repo_initialized"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class EmissionResult:
    project_dir: Path
    written_files: int
    state: EmissionState
    git_initialized: bool
    git_error: str | None = None


class Reporter(Protocol):
    def start(self, message: str) -> None: ...

    def succeed(self, message: str) -> None: ...

    def fail(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...


class NullReporter:
    def start(self, message: str) -> None:
        pass

    def succeed(self, message: str) -> None:
        pass

    def fail(self, message: str) -> None:
        pass

    def warn(self, message: str) -> None:
        pass


def _run(cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None) -> None:
    """
    Run a subprocess command, raising a GitError on failure.
    """
    logger.debug("Running %s in %s", " ".join(cmd), cwd)
    try:
        subprocess.run(cmd, cwd=str(cwd), env=env, check=True, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True)
    except FileNotFoundError as e:
        raise GitError(f"Command not found: {cmd[0]}") from e
    except subprocess.CalledProcessError as e:
        raise GitError(f"Command failed: {' '.join(cmd)}\n\n{e.stdout}") from e


def _git_env_deterministic(base_env: dict[str, str]) -> dict[str, str]:
    """
    Fixed git commit metadata. Values already present in the environment win.
    """
    env = dict(base_env)
    env.setdefault("GIT_AUTHOR_NAME", "create-unstack")
    env.setdefault("GIT_AUTHOR_EMAIL", "create-unstack@example.invalid")
    env.setdefault("GIT_COMMITTER_NAME", "create-unstack")
    env.setdefault("GIT_COMMITTER_EMAIL", "create-unstack@example.invalid")
    env.setdefault("GIT_AUTHOR_DATE", "1970-01-01T00:00:00Z")
    env.setdefault("GIT_COMMITTER_DATE", "1970-01-01T00:00:00Z")
    return env


def create_project_dir(path: Path) -> None:
    if path.exists() and not path.is_dir():
        raise EmissionError(path, "create directory", "a file with that name already exists")
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise EmissionError(path, "create directory", e.strerror or str(e)) from e


def write_manifest(manifest: ArtifactManifest, project_dir: Path) -> int:
    """
    Write every artifact under project_dir, overwriting existing files.

    Returns the number of files written. Stops at the first failure.
    """
    for rel in manifest.directories:
        dir_path = project_dir / rel
        try:
            dir_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise EmissionError(dir_path, "create directory", e.strerror or str(e)) from e

    written = 0
    for artifact in manifest:
        dst_path = project_dir / artifact.path
        try:
            dst_path.parent.mkdir(parents=True, exist_ok=True)
            dst_path.write_text(artifact.render(), encoding="utf-8", newline="\n")
        except OSError as e:
            raise EmissionError(dst_path, "write", e.strerror or str(e)) from e
        logger.debug("Wrote %s", artifact.path)
        written += 1
    return written


def init_git_repo(project_dir: Path, *, message: str = DEFAULT_COMMIT_MESSAGE, deterministic: bool = False) -> None:
    base_env = os.environ.copy()
    env = _git_env_deterministic(base_env) if deterministic else base_env

    _run(["git", "init"], cwd=project_dir, env=env)
    _run(["git", "add", "-A"], cwd=project_dir, env=env)
    _run(["git", "commit", "-m", message], cwd=project_dir, env=env)


class Emitter:
    """Runs the emission phases and reports progress to a `Reporter`."""

    def __init__(
        self,
        reporter: Reporter | None = None,
        *,
        git: bool = True,
        commit_message: str = DEFAULT_COMMIT_MESSAGE,
        deterministic_git: bool = False,
    ) -> None:
        self.reporter = reporter or NullReporter()
        self.git = git
        self.commit_message = commit_message
        self.deterministic_git = deterministic_git
        self.state = EmissionState.IDLE

    def _fail(self, error: EmissionError, message: str) -> None:
        self.state = EmissionState.FAILED
        logger.error("%s", error)
        self.reporter.fail(message)

    def run(self, manifest: ArtifactManifest, project_dir: Path) -> EmissionResult:
        self.reporter.start("Creating project directory")
        try:
            create_project_dir(project_dir)
        except EmissionError as e:
            self._fail(e, "Failed to create project directory")
            raise
        self.state = EmissionState.DIRECTORY_CREATED
        self.reporter.succeed("Project directory created")

        self.reporter.start("Scaffolding project files")
        try:
            written = write_manifest(manifest, project_dir)
        except EmissionError as e:
            self._fail(e, f"Failed to scaffold project: {e}")
            raise
        self.state = EmissionState.FILES_WRITTEN
        self.reporter.succeed(f"Project files created ({written} files)")

        git_initialized = False
        git_error: str | None = None
        if self.git:
            self.reporter.start("Initializing git repository")
            try:
                init_git_repo(project_dir, message=self.commit_message, deterministic=self.deterministic_git)
            except GitError as e:
                git_error = str(e)
                logger.warning("Git initialization failed: %s", e)
                self.reporter.warn("Failed to initialize git repository")
            else:
                git_initialized = True
                self.state = EmissionState.REPO_INITIALIZED
                self.reporter.succeed("Git repository initialized")

        self.state = EmissionState.DONE
        return EmissionResult(
            project_dir=project_dir,
            written_files=written,
            state=self.state,
            git_initialized=git_initialized,
            git_error=git_error,
        )
