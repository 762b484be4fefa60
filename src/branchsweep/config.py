"""Runtime settings."""

from dataclasses import dataclass, field

from rich.console import Console
from rich.theme import Theme

DEFAULT_PROTECTED = "main,master,develop"
DEFAULT_REMOTE = "origin"

DEFAULT_PALETTE: dict[str, str] = {
    "info": "blue",
    "protected": "blue",
    "safe": "green",
    "unmerged": "red",
    "warning": "yellow",
    "error": "bold red",
}


def parse_protected(value: str) -> tuple[str, ...]:
    """Parse a comma-separated list of protected branch names.

    Entries are trimmed, empty entries are dropped and duplicates keep their
    first position.

    Raises:
        ValueError: If no branch name remains
    """
    names = [name.strip() for name in value.split(",")]
    protected = tuple(dict.fromkeys(name for name in names if name))
    if not protected:
        raise ValueError("At least one protected branch is required")
    return protected


@dataclass
class Settings:
    """Settings for one run."""

    protected_branches: tuple[str, ...] = field(default_factory=lambda: parse_protected(DEFAULT_PROTECTED))
    remote: str = DEFAULT_REMOTE
    yes_token: str = "y"
    color: bool = True
    palette: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PALETTE))

    def __post_init__(self) -> None:
        self.protected_branches = parse_protected(",".join(self.protected_branches))

        self.remote = self.remote.strip()
        if not self.remote:
            raise ValueError("remote cannot be empty")

        self.yes_token = self.yes_token.strip().lower()
        if not self.yes_token:
            raise ValueError("yes_token cannot be empty")

        self.palette = {**DEFAULT_PALETTE, **self.palette}

    def theme(self) -> Theme:
        """Build the rich theme used for operator-facing output."""
        return Theme(self.palette)

    def make_console(self) -> Console:
        """Create the console that reports to the operator."""
        return Console(theme=self.theme(), no_color=not self.color, highlight=False)
