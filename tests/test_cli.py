"""End-to-end tests for the create-unstack command."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from tests.conftest import BASE_FILES, FailingPrompter, ScriptedPrompter, files_on_disk
from unstack.cli import EXIT_ABORTED, EXIT_FAILURE, EXIT_OK, ConsoleReporter, main
from unstack.prompts import PromptAborted

OPTIONAL_FILES = {
    "lib/db.ts",
    "lib/auth.ts",
    "lib/auth-client.ts",
    "app/api/auth/[...all]/route.ts",
    "components/ReactScan.tsx",
}


def _run(tmp_path: Path, console, *argv: str, prompter=None) -> int:
    return main(["--directory", str(tmp_path), *argv], console=console, prompter=prompter)


def _dependencies(project: Path) -> dict:
    return json.loads((project / "package.json").read_text(encoding="utf-8"))["dependencies"]


def test_scenario_a_base_project_only(tmp_path: Path, console) -> None:
    code = _run(tmp_path, console, "my-app", "--no-git", prompter=ScriptedPrompter(features=[]))
    assert code == EXIT_OK

    project = tmp_path / "my-app"
    assert files_on_disk(project) == BASE_FILES
    deps = _dependencies(project)
    for name in ("mongodb", "better-auth", "react-scan"):
        assert name not in deps
    assert "Next Steps" in console.file.getvalue()
    assert "cd my-app" in console.file.getvalue()


def test_scenario_b_auth_pulls_in_database(tmp_path: Path, console) -> None:
    code = _run(tmp_path, console, "my-app", "--auth", "--yes", "--no-git")
    assert code == EXIT_OK

    project = tmp_path / "my-app"
    files = files_on_disk(project)
    assert {"lib/db.ts", "lib/auth.ts", "lib/auth-client.ts", "app/api/auth/[...all]/route.ts"} <= files
    assert "components/ReactScan.tsx" not in files
    deps = _dependencies(project)
    assert "mongodb" in deps and "better-auth" in deps
    assert "Authentication requires a database" in console.file.getvalue()


def test_scenario_c_defaults_never_prompt(tmp_path: Path, console) -> None:
    code = _run(tmp_path, console, "--yes", "--no-git", prompter=FailingPrompter())
    assert code == EXIT_OK
    assert files_on_disk(tmp_path / "my-app") == BASE_FILES
    assert "Using default project name" in console.file.getvalue()


def test_scenario_d_directory_creation_failure(tmp_path: Path, console) -> None:
    (tmp_path / "my-app").write_text("occupied", encoding="utf-8")
    with patch("unstack.emitter.write_manifest") as write:
        code = _run(tmp_path, console, "--yes", "--no-git")
    assert code == EXIT_FAILURE
    write.assert_not_called()
    assert "Failed to create project directory" in console.file.getvalue()


def test_scenario_e_git_failure_still_succeeds(tmp_path: Path, console) -> None:
    failure = subprocess.CalledProcessError(128, ["git", "init"], output="fatal: boom")
    with patch("unstack.emitter.subprocess.run", side_effect=failure):
        code = _run(tmp_path, console, "--yes")
    assert code == EXIT_OK
    output = console.file.getvalue()
    assert "Failed to initialize git repository" in output
    assert "Success!" in output
    assert files_on_disk(tmp_path / "my-app") == BASE_FILES


def test_write_failure_exits_non_zero(tmp_path: Path, console, monkeypatch) -> None:
    original = Path.write_text

    def flaky(self, *args, **kwargs):
        if self.name == "tsconfig.json":
            raise OSError(13, "Permission denied")
        return original(self, *args, **kwargs)

    monkeypatch.setattr(Path, "write_text", flaky)
    code = _run(tmp_path, console, "--yes", "--no-git")
    assert code == EXIT_FAILURE
    assert "Permission denied" in console.file.getvalue()
    assert "Next Steps" not in console.file.getvalue()


def test_interactive_answers_drive_generation(tmp_path: Path, console) -> None:
    prompter = ScriptedPrompter(name="shop", features=["react_scan"])
    code = _run(tmp_path, console, "--no-git", prompter=prompter)
    assert code == EXIT_OK
    files = files_on_disk(tmp_path / "shop")
    assert files == BASE_FILES | {"components/ReactScan.tsx"}
    assert "<ReactScan />" in (tmp_path / "shop" / "app" / "layout.tsx").read_text(encoding="utf-8")


@pytest.mark.parametrize("flag", ["--react-scan", "--reactScan", "--million"])
def test_performance_flag_aliases(tmp_path: Path, console, flag: str) -> None:
    assert _run(tmp_path, console, "--yes", "--no-git", flag) == EXIT_OK
    assert "react-scan" in _dependencies(tmp_path / "my-app")


def test_cancelled_prompt_exits_130(tmp_path: Path, console) -> None:
    class Cancelling(FailingPrompter):
        def ask_project_name(self, default: str) -> str:
            raise PromptAborted("Operation cancelled")

    code = _run(tmp_path, console, prompter=Cancelling())
    assert code == EXIT_ABORTED
    assert not any(tmp_path.iterdir())


def test_dry_run_writes_nothing(tmp_path: Path, console) -> None:
    code = _run(tmp_path, console, "--yes", "--db", "--dry-run")
    assert code == EXIT_OK
    assert not (tmp_path / "my-app").exists()
    output = console.file.getvalue()
    assert "lib/db.ts" in output
    assert "dry run" in output


def test_config_file_supplies_defaults(tmp_path: Path, console) -> None:
    config = tmp_path / "unstack.yaml"
    config.write_text("name: from-config\nfeatures:\n  db: true\ngit: false\n", encoding="utf-8")
    with patch("unstack.emitter.init_git_repo") as git:
        code = _run(tmp_path, console, "--yes", "--config", str(config))
    assert code == EXIT_OK
    git.assert_not_called()
    assert files_on_disk(tmp_path / "from-config") == BASE_FILES | {"lib/db.ts"}


def test_bad_config_exits_non_zero(tmp_path: Path, console) -> None:
    config = tmp_path / "unstack.yaml"
    config.write_text("features:\n  redis: true\n", encoding="utf-8")
    assert _run(tmp_path, console, "--yes", "--config", str(config)) == EXIT_FAILURE
    assert "Unknown feature" in console.file.getvalue()


def test_invalid_positional_name_is_a_usage_error(tmp_path: Path, console) -> None:
    with pytest.raises(SystemExit) as excinfo:
        _run(tmp_path, console, "My App", "--yes")
    assert excinfo.value.code == 2


@pytest.mark.parametrize("name", ["my-app\n", "my-app\r", "\nmy-app"])
def test_positional_name_with_line_break_is_rejected(tmp_path: Path, console, name: str) -> None:
    with pytest.raises(SystemExit) as excinfo:
        _run(tmp_path, console, name, "--yes", "--no-git")
    assert excinfo.value.code == 2
    assert not any(tmp_path.iterdir())


def test_undecodable_config_exits_non_zero(tmp_path: Path, console) -> None:
    config = tmp_path / "unstack.yaml"
    config.write_bytes(b"name: caf\xe9\n")
    assert _run(tmp_path, console, "--yes", "--no-git", "--config", str(config)) == EXIT_FAILURE
    assert "Cannot read config file" in console.file.getvalue()
    assert [p.name for p in tmp_path.iterdir()] == ["unstack.yaml"]


def test_spinner_stops_when_emission_is_interrupted(tmp_path: Path, console, monkeypatch) -> None:
    real_close = ConsoleReporter.close
    observed: list[bool] = []

    def tracking_close(self) -> None:
        observed.append(self._status is not None)
        real_close(self)
        observed.append(self._status is None)

    monkeypatch.setattr(ConsoleReporter, "close", tracking_close)
    with patch("unstack.emitter.write_manifest", side_effect=KeyboardInterrupt):
        with pytest.raises(KeyboardInterrupt):
            _run(tmp_path, console, "--yes", "--no-git")
    # The spinner was still running when the interrupt arrived, and was stopped.
    assert observed == [True, True]


def test_git_options_are_forwarded(tmp_path: Path, console) -> None:
    with patch("unstack.emitter.init_git_repo") as git:
        code = _run(tmp_path, console, "--yes", "--deterministic-git")
    assert code == EXIT_OK
    git.assert_called_once()
    assert git.call_args.kwargs == {"message": "Initial commit from create-unstack", "deterministic": True}
