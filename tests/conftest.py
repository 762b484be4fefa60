"""Test configuration and fixtures."""

import io
from pathlib import Path
from typing import Callable, Generator, Iterable, Optional

import pytest
from git import Actor, Repo
from rich.console import Console

from branchsweep.config import Settings
from branchsweep.git import CommandExecutionError


class FakeRunner:
    """Command runner that answers from canned output and records every call."""

    def __init__(self, responses: Optional[dict[str, str]] = None, failures: Optional[dict[str, str]] = None) -> None:
        self.responses = dict(responses or {})
        self.failures = dict(failures or {})
        self.commands: list[str] = []

    def run(self, command: str, quiet: bool = False) -> str:
        self.commands.append(command)
        if command in self.failures:
            if quiet:
                return self.failures[command]
            raise CommandExecutionError(command, self.failures[command])
        return self.responses.get(command, "")

    def ran(self, prefix: str) -> list[str]:
        return [command for command in self.commands if command.startswith(prefix)]


class Answers:
    """Scripted operator that answers prompts in order."""

    def __init__(self, *answers: str) -> None:
        self.answers = list(answers)
        self.prompts: list[str] = []

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {prompt!r}")
        return self.answers.pop(0)


@pytest.fixture
def console() -> Console:
    """Console that records output instead of writing to a terminal."""
    return Console(file=io.StringIO(), width=200, no_color=True, theme=Settings().theme())


@pytest.fixture
def fake_git() -> Callable[..., FakeRunner]:
    """Build a fake runner for a repository layout.

    ``unmerged`` maps a (protected, branch) pair to the commits of ``branch``
    missing from ``protected``. ``missing_refs`` lists protected branches
    without a local ref.
    """

    def build(
        local: Iterable[str] = (),
        remote: Iterable[str] = (),
        current: Optional[str] = None,
        unmerged: Optional[dict[tuple[str, str], str]] = None,
        missing_refs: Iterable[str] = (),
    ) -> FakeRunner:
        local_lines = [f"* {name}" if name == current else f"  {name}" for name in local]
        remote_lines = [f"  origin/{name}" for name in remote]
        if remote_lines:
            remote_lines.insert(0, "  origin/HEAD -> origin/main")
        responses = {
            "git branch": "\n".join(local_lines),
            "git branch -r": "\n".join(remote_lines),
        }
        for (target, branch), commits in (unmerged or {}).items():
            responses[f"git log {target}..{branch} --oneline"] = commits
        failures = {
            f"git show-ref --verify --quiet refs/heads/{name}": "exit code(1)" for name in missing_refs
        }
        return FakeRunner(responses, failures)

    return build


@pytest.fixture
def test_env(tmp_path: Path) -> Generator[tuple[Path, Path], None, None]:
    """Create a test environment with local and remote repositories.

    Branches:
        main: protected, pushed
        feature/merged: merged into main, local and remote
        feature/unmerged: one commit missing from main, local and remote
        feature/remote-merged: remote only, nothing missing from main

    Returns:
        Tuple of (local_repo_path, remote_repo_path)
    """
    remote_path = tmp_path / "remote"
    local_path = tmp_path / "local"
    remote_path.mkdir()
    local_path.mkdir()

    Repo.init(remote_path, bare=True)
    local_repo = Repo.init(local_path)

    author = Actor("Test User", "test@example.com")
    local_repo.config_writer().set_value("user", "name", author.name).release()
    local_repo.config_writer().set_value("user", "email", author.email).release()

    readme = local_path / "README.md"
    readme.write_text("# Test Repository")
    local_repo.index.add(["README.md"])
    local_repo.index.commit("Initial commit", author=author)

    # Whatever the default branch is called, make it main
    local_repo.git.branch("-M", "main")
    main_branch = local_repo.heads.main

    origin = local_repo.create_remote("origin", url=str(remote_path))
    origin.push("main")

    def create_branch(name: str, content: str, merge: bool = False) -> None:
        """Create and push a branch with one commit."""
        main_branch.checkout()
        branch = local_repo.create_head(name)
        branch.checkout()

        test_file = local_path / f"{name}.txt"
        test_file.parent.mkdir(parents=True, exist_ok=True)
        test_file.write_text(content)
        local_repo.index.add([f"{name}.txt"])
        local_repo.index.commit(f"Add {name}", author=author)
        origin.push(name)

        if merge:
            main_branch.checkout()
            local_repo.git.merge(name, "--no-ff")
            origin.push("main")

    create_branch("feature/merged", "Merged branch content", merge=True)
    create_branch("feature/unmerged", "Unmerged branch content")

    # Remote-only branch pointing at main
    main_branch.checkout()
    local_repo.create_head("feature/remote-merged", "main")
    origin.push("feature/remote-merged")
    local_repo.delete_head("feature/remote-merged")

    yield local_path, remote_path
