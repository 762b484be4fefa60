"""Git repository operations."""

import shlex
from pathlib import Path
from typing import Iterable, Protocol

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo
from git.exc import CommandError

from branchsweep.log import get_logger

logger = get_logger(__name__)


class GitError(Exception):
    """Git operation error."""


class CommandExecutionError(GitError):
    """A git command failed while its failure was expected to propagate."""

    def __init__(self, command: str, message: str) -> None:
        """Initialize error.

        Args:
            command: The command line that was run
            message: The underlying failure message
        """
        super().__init__(f"Failed to run: {command}\nError: {message}")
        self.command = command
        self.message = message


class CommandRunner(Protocol):
    """Runs git command lines against a working tree."""

    def run(self, command: str, quiet: bool = False) -> str:
        """Run ``command`` and return its stripped output.

        With ``quiet`` set, a failure returns the failure message instead of
        raising ``CommandExecutionError``.
        """
        ...


class GitCommandRunner:
    """Command runner backed by GitPython."""

    def __init__(self, path: Path) -> None:
        """Initialize runner for the repository at ``path``."""
        try:
            self.repo: Repo = Repo(path)
            if self.repo.bare:
                raise GitError("Cannot operate on bare repository")
        except (GitCommandError, ValueError, InvalidGitRepositoryError, NoSuchPathError) as err:
            raise GitError(f"Failed to open repository: {err}") from err

    def run(self, command: str, quiet: bool = False) -> str:
        logger.debug("Running: %s", command)
        try:
            output = self.repo.git.execute(shlex.split(command))
        except CommandError as err:
            message = str(err).strip()
            if quiet:
                logger.debug("Ignoring failure of %r: %s", command, message)
                return message
            raise CommandExecutionError(command, message) from err
        return str(output).strip()


class GitRepo:
    """Branch queries and command lines for one remote."""

    def __init__(self, runner: CommandRunner, remote: str = "origin") -> None:
        self.runner = runner
        self.remote = remote

    @property
    def remote_prefix(self) -> str:
        return f"{self.remote}/"

    def list_remote_branches(self) -> list[str]:
        """List remote-tracking branches, without the remote prefix.

        The symbolic ``HEAD`` entry is skipped. Order follows ``git branch -r``.
        """
        output = self.runner.run("git branch -r", quiet=True)
        branches = []
        for line in output.splitlines():
            entry = line.strip()
            if not entry.startswith(self.remote_prefix):
                continue
            name = entry[len(self.remote_prefix) :]
            # "origin/HEAD -> origin/main"
            if name == "HEAD" or name.startswith("HEAD "):
                continue
            if name:
                branches.append(name)
        return branches

    def list_local_branches(self) -> list[str]:
        """List local branches in ``git branch`` order."""
        output = self.runner.run("git branch", quiet=True)
        branches = []
        for line in output.splitlines():
            entry = line.strip()
            # "*" marks the current branch, "+" one checked out in another worktree
            if entry[:1] in ("*", "+"):
                entry = entry[1:].strip()
            # Detached HEAD shows up as "(HEAD detached at 1a2b3c)"
            if not entry or entry.startswith("("):
                continue
            branches.append(entry)
        return branches

    def has_local_ref(self, branch: str) -> bool:
        """Check whether ``refs/heads/<branch>`` exists."""
        try:
            self.runner.run(f"git show-ref --verify --quiet refs/heads/{shlex.quote(branch)}")
        except CommandExecutionError:
            return False
        return True

    def unmerged_commits(self, branch: str, target: str) -> str:
        """Commits reachable from ``branch`` but not from ``target``, one per line."""
        return self.runner.run(f"git log {shlex.quote(f'{target}..{branch}')} --oneline", quiet=True)

    def has_unmerged_changes(self, branch: str, protected: Iterable[str]) -> bool:
        """Check whether ``branch`` has commits missing from a protected branch.

        Protected branches without a local ref are skipped. The first protected
        branch that lacks any of ``branch``'s commits decides the answer.
        """
        for target in protected:
            if not self.has_local_ref(target):
                logger.debug("Protected branch %s has no local ref, skipping", target)
                continue
            if self.unmerged_commits(branch, target):
                logger.info("%s has commits missing from %s", branch, target)
                return True
        return False

    def fetch_command(self) -> str:
        return f"git fetch {shlex.quote(self.remote)} --prune"

    def checkout_remote_command(self, branch: str) -> str:
        remote_ref = f"{self.remote_prefix}{branch}"
        return f"git branch --no-track {shlex.quote(branch)} {shlex.quote(remote_ref)}"

    def delete_local_command(self, branch: str) -> str:
        return f"git branch -D {shlex.quote(branch)}"

    def delete_remote_command(self, branch: str) -> str:
        return f"git push {shlex.quote(self.remote)} --delete {shlex.quote(branch)}"
