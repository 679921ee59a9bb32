# ABOUTME: GitHub Actions workflow commands for the setup action
# ABOUTME: Publishes outputs, extends PATH, and emits warning/error annotations

"""
GitHub Actions runner integration.

The runner reads instructions from two channels:

- FILE COMMANDS: lines appended to the files named by GITHUB_PATH and
  GITHUB_OUTPUT. Directories in GITHUB_PATH are prepended to PATH for the
  following steps; GITHUB_OUTPUT holds `name=value` pairs (or heredoc-style
  blocks for multi-line values).

- WORKFLOW COMMANDS: specially formatted stdout lines such as
  `::warning::message`, which show up as annotations on the run summary.

Outside a runner the file commands are unavailable; outputs then fall back
to the legacy `::set-output` command so the values still appear in the log.
"""

from __future__ import annotations

import os
import sys
import uuid
from typing import TYPE_CHECKING, TextIO

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from pathlib import Path

logger = structlog.get_logger(__name__)


def escape_data(value: str) -> str:
    """Escape a workflow command message."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def escape_property(value: str) -> str:
    """Escape a workflow command property value."""
    return escape_data(value).replace(":", "%3A").replace(",", "%2C")


class WorkflowRunner:
    """Writes file commands and workflow commands for the current step."""

    def __init__(
        self,
        github_path: Path | None = None,
        github_output: Path | None = None,
        environ: MutableMapping[str, str] | None = None,
        stream: TextIO | None = None,
    ) -> None:
        """
        Args:
            github_path: The GITHUB_PATH file, or None outside a runner.
            github_output: The GITHUB_OUTPUT file, or None outside a runner.
            environ: Process environment to update; defaults to os.environ.
            stream: Where workflow commands go; defaults to sys.stdout.
        """
        self._github_path = github_path
        self._github_output = github_output
        self._environ = os.environ if environ is None else environ
        self._stream = stream

    def _issue(self, command: str, message: str, **properties: str) -> None:
        props = ",".join(f"{k}={escape_property(v)}" for k, v in properties.items())
        line = f"::{command} {props}::" if props else f"::{command}::"
        stream = self._stream or sys.stdout
        stream.write(line + escape_data(message) + "\n")
        stream.flush()

    def add_path(self, directory: Path) -> None:
        """Make `directory` searchable on PATH for this and later steps."""
        entry = str(directory)
        if self._github_path is not None:
            with self._github_path.open("a", encoding="utf-8") as f:
                f.write(entry + "\n")
        else:
            self._issue("add-path", entry)
        current = self._environ.get("PATH", "")
        self._environ["PATH"] = f"{entry}{os.pathsep}{current}" if current else entry
        logger.debug("Added to PATH", directory=entry)

    def set_output(self, name: str, value: str) -> None:
        """Publish a step output."""
        if self._github_output is not None:
            with self._github_output.open("a", encoding="utf-8") as f:
                if "\n" in value:
                    delimiter = f"ghadelimiter_{uuid.uuid4()}"
                    f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
                else:
                    f.write(f"{name}={value}\n")
        else:
            self._issue("set-output", value, name=name)
        logger.debug("Set output", name=name, value=value)

    def warning(self, message: str) -> None:
        self._issue("warning", message)

    def error(self, message: str) -> None:
        self._issue("error", message)

    def set_failed(self, message: str) -> int:
        """Emit an error annotation; returns the exit code to use."""
        self.error(message)
        return 1
