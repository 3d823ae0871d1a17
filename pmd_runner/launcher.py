"""Platform-specific PMD launchers.

Usage:
    launcher = resolve_launcher()                  # host platform
    launcher = resolve_launcher("win32")           # simulated Windows host
    launcher.command_prefix()                      # "dist/pmd/bin/run.sh pmd"

Each launcher joins paths with its *target* platform's rules (``posixpath``
or ``ntpath``), so the prefix does not depend on the machine running the code.
"""

import ntpath
import posixpath
import sys

DEFAULT_PMD_HOME = "dist/pmd"


# ---------------------------------------------------------------------------
# Launchers
# ---------------------------------------------------------------------------

class PosixLauncher:
    """Shell-script launcher: ``<home>/bin/run.sh pmd``."""

    def __init__(self, pmd_home: str = DEFAULT_PMD_HOME) -> None:
        self.pmd_home = pmd_home

    @property
    def script(self) -> str:
        return posixpath.join(self.pmd_home.replace("\\", "/"), "bin", "run.sh")

    def command_prefix(self) -> str:
        # run.sh dispatches on its first argument
        return f"{self.script} pmd"

    def __repr__(self) -> str:
        return f"PosixLauncher(pmd_home={self.pmd_home!r})"


class WindowsLauncher:
    """Batch-file launcher: ``<home>\\bin\\pmd.bat``."""

    def __init__(self, pmd_home: str = DEFAULT_PMD_HOME) -> None:
        self.pmd_home = pmd_home

    @property
    def script(self) -> str:
        return ntpath.join(self.pmd_home.replace("/", "\\"), "bin", "pmd.bat")

    def command_prefix(self) -> str:
        return self.script

    def __repr__(self) -> str:
        return f"WindowsLauncher(pmd_home={self.pmd_home!r})"


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def is_windows(platform: str | None = None) -> bool:
    return (platform if platform is not None else sys.platform) == "win32"


def resolve_launcher(platform: str | None = None, pmd_home: str = DEFAULT_PMD_HOME):
    """Return the launcher for *platform* (defaults to ``sys.platform``)."""
    if is_windows(platform):
        return WindowsLauncher(pmd_home)
    return PosixLauncher(pmd_home)

