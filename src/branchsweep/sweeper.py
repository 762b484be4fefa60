"""Branch analysis and confirmation-gated deletion."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from branchsweep.config import Settings
from branchsweep.git import CommandExecutionError, CommandRunner, GitRepo
from branchsweep.log import get_logger
from branchsweep.prompt import AskFn, ConfirmationGate

logger = get_logger(__name__)


class Classification(Enum):
    """Outcome of analyzing one branch."""

    SAFE_TO_DELETE = "safe"
    HAS_UNMERGED_CHANGES = "unmerged"


@dataclass(frozen=True)
class BranchPresence:
    """Where a branch exists."""

    exists_local: bool
    exists_remote: bool

    @property
    def locations(self) -> str:
        places = []
        if self.exists_local:
            places.append("local")
        if self.exists_remote:
            places.append("remote")
        return " and ".join(places)


@dataclass
class AnalysisResult:
    """Classified branches of one analysis run, in analysis order."""

    safe_to_delete: list[str] = field(default_factory=list)
    unmerged: list[str] = field(default_factory=list)
    presence: dict[str, BranchPresence] = field(default_factory=dict)

    def record(self, branch: str, presence: BranchPresence, outcome: Classification) -> None:
        self.presence[branch] = presence
        if outcome is Classification.HAS_UNMERGED_CHANGES:
            self.unmerged.append(branch)
        else:
            self.safe_to_delete.append(branch)


class BranchAnalyzer:
    """Decides which branches are safe to delete."""

    def __init__(self, repo: GitRepo, gate: ConfirmationGate, protected: Sequence[str], console: Console) -> None:
        self.repo = repo
        self.gate = gate
        self.protected = tuple(protected)
        self.console = console

    def classify(self, branch: str) -> Classification:
        if self.repo.has_unmerged_changes(branch, self.protected):
            return Classification.HAS_UNMERGED_CHANGES
        return Classification.SAFE_TO_DELETE

    def analyze(self) -> AnalysisResult:
        """Classify every non-protected local and remote branch.

        Remote-only branches are analyzed through a temporary local branch,
        created and removed only with the operator's consent. A remote-only
        branch the operator does not want checked out is left out of the
        result entirely.
        """
        self.console.print("Starting branch analysis...\n", style="warning")

        # Best effort, a failed or declined fetch still analyzes what we have
        self.gate.confirm_and_run("Update the list of remote branches?", self.repo.fetch_command())

        local = self.repo.list_local_branches()
        remote = self.repo.list_remote_branches()
        result = AnalysisResult()

        for branch in dict.fromkeys(local + remote):
            name = escape(branch)
            if branch in self.protected:
                self.console.print(f"Branch '{name}' is protected", style="protected")
                continue

            presence = BranchPresence(exists_local=branch in local, exists_remote=branch in remote)
            temporary = False
            try:
                if not presence.exists_local:
                    if not self._checkout_for_analysis(branch):
                        self.console.print(f"Skipping analysis of remote branch '{name}'", style="warning")
                        continue
                    temporary = True

                outcome = self.classify(branch)
                result.record(branch, presence, outcome)
                if outcome is Classification.HAS_UNMERGED_CHANGES:
                    self.console.print(f"Branch '{name}' has unmerged changes", style="unmerged")
                else:
                    self.console.print(f"Branch '{name}' can be safely deleted", style="safe")
            except CommandExecutionError as err:
                logger.info("Analysis of %s failed: %s", branch, err.message)
                scope = "branch" if presence.exists_local else "remote branch"
                self.console.print(f"Error analyzing {scope} '{name}': {escape(err.message)}", style="error")
            finally:
                if temporary:
                    self._remove_temporary(branch)

        return result

    def _checkout_for_analysis(self, branch: str) -> bool:
        """Create a local branch from the remote ref if the operator agrees.

        Raises:
            CommandExecutionError: If the local branch could not be created
        """
        if not self.gate.ask_yes_no(f"Check out remote branch '{branch}' temporarily for analysis?"):
            return False
        self.repo.runner.run(self.repo.checkout_remote_command(branch))
        return True

    def _remove_temporary(self, branch: str) -> None:
        removed = self.gate.confirm_and_run(
            f"Remove temporary branch '{branch}'?",
            self.repo.delete_local_command(branch),
        )
        if not removed:
            self.console.print(f"Warning: temporary branch '{escape(branch)}' was left in place.", style="warning")


class DeletionExecutor:
    """Deletes the branches an analysis found safe."""

    def __init__(self, repo: GitRepo, gate: ConfirmationGate, protected: Sequence[str], console: Console) -> None:
        self.repo = repo
        self.gate = gate
        self.protected = tuple(protected)
        self.console = console

    def delete_branches(self, result: AnalysisResult) -> bool:
        """Delete the local and remote copies of every safe branch.

        Each deletion is confirmed on its own after one overall confirmation.
        A declined or failed deletion does not stop the remaining ones.

        Returns:
            True if every attempted deletion was confirmed and succeeded
        """
        if not result.safe_to_delete:
            return True

        self.console.print()
        if not self.gate.ask_yes_no("Proceed with deleting the safe branches?"):
            self.console.print("Operation cancelled.", style="warning")
            return False

        success = True
        for branch in result.safe_to_delete:
            presence = result.presence[branch]
            name = escape(branch)

            if presence.exists_local:
                if self.gate.confirm_and_run(f"Delete local branch '{branch}'?", self.repo.delete_local_command(branch)):
                    self.console.print(f"Local branch '{name}' deleted", style="safe")
                else:
                    success = False

            if presence.exists_remote:
                if self.gate.confirm_and_run(f"Delete remote branch '{branch}'?", self.repo.delete_remote_command(branch)):
                    self.console.print(f"Remote branch '{name}' deleted", style="safe")
                else:
                    success = False

        self.console.print()
        if success:
            self.console.print("Cleanup completed successfully!", style="safe")
        else:
            self.console.print("Cleanup completed with some errors.", style="warning")
        self.console.print(f"Protected branches kept: {escape(', '.join(self.protected))}", style="warning")
        if result.unmerged:
            self.console.print(f"Branches with unmerged changes kept: {escape(', '.join(result.unmerged))}", style="unmerged")

        return success


def render_summary(result: AnalysisResult, console: Console) -> None:
    """Show which branches can go and which stay."""
    console.print()
    if not result.safe_to_delete:
        console.print("No branches are safe to delete.", style="warning")
        return

    table = Table(
        title="Branches to Delete",
        show_header=True,
        header_style="bold",
        title_style="bold blue",
        show_edge=True,
    )
    table.add_column("Branch", style="cyan", no_wrap=True)
    table.add_column("Where", style="magenta", justify="center", no_wrap=True)
    for branch in result.safe_to_delete:
        table.add_row(escape(branch), result.presence[branch].locations)
    console.print(table)

    if result.unmerged:
        console.print()
        console.print("Branches with unmerged changes (kept):", style="unmerged")
        for branch in result.unmerged:
            console.print(f"  {escape(branch)}")


class BranchSweeper:
    """Runs analysis, summary and deletion against one repository."""

    def __init__(
        self,
        settings: Settings,
        runner: CommandRunner,
        console: Console,
        ask: Optional[AskFn] = None,
    ) -> None:
        self.settings = settings
        self.console = console
        self.repo = GitRepo(runner, settings.remote)
        self.gate = ConfirmationGate(runner, console, settings.yes_token, ask)
        self.analyzer = BranchAnalyzer(self.repo, self.gate, settings.protected_branches, console)
        self.executor = DeletionExecutor(self.repo, self.gate, settings.protected_branches, console)

    def analyze(self) -> AnalysisResult:
        protected = ", ".join(self.settings.protected_branches)
        self.console.print(f"Protected branches: {escape(protected)}\n", style="info")
        return self.analyzer.analyze()

    def run(self, delete: bool = True) -> bool:
        """Analyze, summarize and, if ``delete`` is set, delete safe branches.

        Returns:
            The deletion outcome, or True when nothing was to be deleted
        """
        result = self.analyze()
        render_summary(result, self.console)
        if not delete:
            return True
        return self.executor.delete_branches(result)
