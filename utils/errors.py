#!/usr/bin/env python3
"""Typed errors raised by the changelog pipeline.

Every error carries a short ``code`` so callers (and the CLI) can map a
failure to a friendly message without parsing the text.
"""

from __future__ import annotations


class ChangelogError(Exception):
	def __init__(self, message: str, code: str = "UNKNOWN", *, cause: Exception | None = None) -> None:
		super().__init__(message)
		self.code = code
		self.cause = cause


class CommandFailedError(ChangelogError):
	"""Raised when the git executable is missing or exits non-zero."""
	def __init__(self, message: str, code: str = "COMMAND_FAILED", *, stderr: str = "", cause: Exception | None = None) -> None:
		super().__init__(message, code=code, cause=cause)
		self.stderr = stderr


class TagNotFoundError(ChangelogError):
	def __init__(self, tag: str, *, role: str = "tag") -> None:
		super().__init__(f"{role} '{tag}' does not exist in the repository", code="TAG_NOT_FOUND")
		self.tag = tag


class InvalidOptionError(ChangelogError):
	def __init__(self, message: str, code: str = "INVALID_OPTION", *, cause: Exception | None = None) -> None:
		super().__init__(message, code=code, cause=cause)


class InvalidPatternError(ChangelogError):
	def __init__(self, message: str, *, cause: Exception | None = None) -> None:
		super().__init__(message, code="INVALID_PATTERN", cause=cause)


class ChangelogWriteError(ChangelogError):
	def __init__(self, message: str, *, cause: Exception | None = None) -> None:
		super().__init__(message, code="IO", cause=cause)
