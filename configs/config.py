import os
from typing import Dict, Any

class Config:
	"""Configuration for the changelog generator."""

	# Git executable; empty means search PATH
	GIT_EXECUTABLE = os.getenv("GIT_EXECUTABLE", "")

	# Rendering
	CHANGELOG_TITLE_LENGTH = int(os.getenv("CHANGELOG_TITLE_LENGTH", "80"))
	CHANGELOG_DEFAULT_FORMAT = os.getenv("CHANGELOG_DEFAULT_FORMAT", "markdown")

	# Logging
	LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

	# Observability
	METRICS_ROOT = os.getenv("METRICS_ROOT", ".cache/git_changelog/metrics")
	METRICS_ENABLED = bool(int(os.getenv("METRICS_ENABLED", "0")))

	@classmethod
	def get_git_config(cls) -> Dict[str, Any]:
		"""Get git command runner configuration."""
		return {
			"executable": cls.GIT_EXECUTABLE or None,
		}

	@classmethod
	def get_render_config(cls) -> Dict[str, Any]:
		"""Get renderer defaults.

		Returns:
			Mapping with the word-wrap width and the default output format.
		"""
		return {
			"title_length": cls.CHANGELOG_TITLE_LENGTH,
			"format": cls.CHANGELOG_DEFAULT_FORMAT,
		}

	@classmethod
	def observability(cls) -> Dict[str, Any]:
		return {
			"metrics_root": cls.METRICS_ROOT,
			"metrics_enabled": cls.METRICS_ENABLED,
			"log_level": cls.LOG_LEVEL,
		}
