#!/usr/bin/env python3
from __future__ import annotations

import logging
import shutil
import subprocess
from typing import List, Optional, Sequence, Union

from configs.config import Config
from utils.errors import CommandFailedError
from utils.metrics import Timer, incr

logger = logging.getLogger(__name__)


class GitClient:
	"""Runs git commands against a local repository and returns their stdout."""

	def __init__(self, repo_path: Optional[str] = None, executable: Optional[str] = None) -> None:
		cfg = Config.get_git_config()
		self.repo_path = repo_path
		self.executable = executable or cfg.get("executable") or shutil.which("git")
		if not self.executable:
			raise CommandFailedError("git executable not found on PATH (set GIT_EXECUTABLE)", code="NOT_FOUND")
		logger.debug(f"Using git executable {self.executable}")

	def _command(self, arguments: Sequence[str]) -> List[str]:
		command = [self.executable]
		if self.repo_path:
			command += ["-C", self.repo_path]
		command += list(arguments)
		# Empty arguments stand for omitted optional flags
		return [part for part in command if part]

	def run(self, arguments: Sequence[str], as_lines: bool = False) -> Union[str, List[str]]:
		"""Run git with the given arguments.

		Args:
			arguments: Command arguments without the executable. Empty strings are dropped.
			as_lines: Return the output as a list of trimmed lines instead of one string.

		Returns:
			Trimmed stdout, or its lines. Empty output gives an empty list.

		Raises:
			CommandFailedError: If git cannot be started or exits non-zero.
		"""
		command = self._command(arguments)
		subcommand = next((a for a in arguments if a), "")
		logger.debug(f"Running: {' '.join(command)}")
		try:
			with Timer("git.command", subcommand=subcommand):
				result = subprocess.run(command, capture_output=True, text=True, check=False)
		except OSError as e:
			incr("git.failure", code="NOT_FOUND")
			raise CommandFailedError(f"Unable to run git: {e}", code="NOT_FOUND", cause=e) from e

		if result.returncode != 0:
			stderr = (result.stderr or "").strip()
			first_line = stderr.splitlines()[0] if stderr else f"exit status {result.returncode}"
			logger.error(f"git command failed: {' '.join(command)}: {first_line}")
			incr("git.failure", code="COMMAND_FAILED")
			raise CommandFailedError(f"An error occurred while running a git command: {first_line}", stderr=stderr)

		output = (result.stdout or "").strip()
		if not as_lines:
			return output
		if not output:
			return []
		return [line.strip() for line in output.split("\n")]
