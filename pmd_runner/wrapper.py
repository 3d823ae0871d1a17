"""PMD invocation.

Usage:
    wrapper = PmdWrapper()                                  # host launcher
    wrapper.run("src/main", "category/apex/style.xml", Format.XML, "out/report.xml")
    PmdWrapper.execute("src", "rulesets/apex/quickstart.xml", "csv", "report.csv")

The command line is built by plain string concatenation and handed to the
shell. The child process is never waited on: its exit status, stdout and
stderr are left unread, and PMD writes the report file on its own.
"""

import subprocess
from dataclasses import dataclass
from enum import Enum

from pmd_runner.launcher import resolve_launcher


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class PmdError(Exception):
    """Base exception for all wrapper errors."""


class FormatError(PmdError, ValueError):
    """Raised when a report format string is not supported."""


class LaunchError(PmdError):
    """Raised when the OS refuses to spawn the launcher shell."""


# ---------------------------------------------------------------------------
# Request model
# ---------------------------------------------------------------------------

class Format(Enum):
    """Report formats supported by PMD; the value is the ``-format`` token."""

    XML = "xml"
    CSV = "csv"
    TEXT = "txt"

    @classmethod
    def parse(cls, value: "str | Format") -> "Format":
        """Accept a member, a member name or a token, case-insensitively."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for member in cls:
            if text.upper() == member.name or text.lower() == member.value:
                return member
        supported = ", ".join(m.value for m in cls)
        raise FormatError(f"Unsupported report format '{value}'. Supported: {supported}")


@dataclass(frozen=True)
class AnalysisRequest:
    source: str
    rules: str
    format: Format
    report_file: str


# ---------------------------------------------------------------------------
# Wrapper
# ---------------------------------------------------------------------------

class PmdWrapper:
    """Fire-and-forget launcher around the bundled PMD distribution."""

    def __init__(self, launcher=None, spawner=None) -> None:
        self.launcher = launcher if launcher is not None else resolve_launcher()
        self._spawn = spawner if spawner is not None else subprocess.Popen

    @classmethod
    def execute(cls, source: str, rules: str, format, report_file: str):
        """Run PMD once with the host launcher."""
        return cls().run(source, rules, format, report_file)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def build_command(self, request: AnalysisRequest) -> str:
        """Return the shell command line for *request*. Values are not quoted."""
        return (
            f"{self.launcher.command_prefix()}"
            f" -rulesets {request.rules}"
            f" -dir {request.source}"
            f" -format {request.format.value}"
            f" -reportfile {request.report_file}"
        )

    def run(self, source: str, rules: str, format, report_file: str):
        """Spawn PMD and return the process handle without waiting on it.

        Failures inside the child (missing launcher script, unknown ruleset,
        unwritable report path, non-zero exit) are not detected here.

        Raises:
            FormatError: *format* is not a known report format.
            LaunchError: the shell itself could not be started.
        """
        request = AnalysisRequest(
            source=source,
            rules=rules,
            format=Format.parse(format),
            report_file=report_file,
        )
        command = self.build_command(request)
        try:
            return self._spawn(command, shell=True)
        except OSError as exc:
            raise LaunchError(f"Unable to start '{command}': {exc}") from exc
