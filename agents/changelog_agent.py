#!/usr/bin/env python3
"""Changelog agent: builds a changelog from the tags and commits of a git repository.

The engine resolves the tag window, fetches commit titles per tag, merges
duplicate titles and filters them by label. Renderers (Markdown, HTML)
subclass it and turn the processed commit data into text.
"""

import logging
import sys
from typing import Any, Dict, List, Mapping, Optional, Union

from dotenv import load_dotenv

from utils.changelog_models import ChangelogOptions, CommitMap
from utils.commit_processing import process_commit_data
from utils.errors import ChangelogError, InvalidOptionError, TagNotFoundError
from utils.repo_handler import RepoHandler

load_dotenv()

# Set up logging
logger = logging.getLogger(__name__)

# Options forwarded to the repository handler
REPO_OPTIONS = ("include_merge_commits", "tag_order_by")
# Options whose change invalidates the processed commit data
PROCESSING_OPTIONS = REPO_OPTIONS + ("similarity_threshold",)


class GitChangelog:
	"""Owns the options and labels and serves processed commit data."""

	def __init__(self, repo_path: Optional[str] = None, handler: Optional[RepoHandler] = None):
		"""Initialize the engine.

		Args:
			repo_path: Path to the repository. None uses the current directory.
			handler: Optional RepoHandler instance. If None, creates a new one.
		"""
		self.repo_handler = handler or RepoHandler(repo_path)
		self.options = ChangelogOptions()
		self.labels: List[str] = []
		self._commit_data: Optional[CommitMap] = None
		self._sync_repo_options()

	def _sync_repo_options(self) -> None:
		self.repo_handler.set_options({name: getattr(self.options, name) for name in REPO_OPTIONS})

	def get_options(self, name: Optional[str] = None) -> Any:
		"""Return one option, or all of them keyed by option name."""
		if name is None:
			return self.options.model_dump(by_alias=True)
		return self.options.get(name)

	def set_options(self, name: Union[str, Mapping[str, Any]], value: Any = None) -> None:
		"""Set one option, or several at once from a mapping.

		The whole batch is validated before anything changes.

		Raises:
			InvalidOptionError: If a name is unknown, a value is invalid, or the
				head tag name equals an existing tag (code TAG_COLLISION).
		"""
		updates = dict(name) if isinstance(name, Mapping) else {name: value}
		candidate = self.options.with_updates(updates)

		sets_head_name = any(key in ("headTagName", "head_tag_name") for key in updates)
		if sets_head_name and candidate.head_tag_name in self.repo_handler.all_tags():
			raise InvalidOptionError(
				f"Attempt to set option headTagName to an already existing tag: {candidate.head_tag_name}",
				code="TAG_COLLISION",
			)

		previous = self.options
		self.options = candidate
		self._sync_repo_options()
		# Output-only options reuse the processed data
		if any(getattr(previous, field) != getattr(candidate, field) for field in PROCESSING_OPTIONS):
			self._commit_data = None

	def set_from_tag(self, tag: Optional[str] = None) -> None:
		"""Set the oldest tag to include. None starts at the first commit."""
		self._set_tag("from_tag", tag)

	def set_to_tag(self, tag: Optional[str] = None) -> None:
		"""Set the newest tag to include. None means the HEAD revision."""
		self._set_tag("to_tag", tag)

	def _set_tag(self, option: str, tag: Optional[str]) -> None:
		if tag is not None and tag not in self.repo_handler.all_tags():
			raise TagNotFoundError(tag, role=option)
		if self.repo_handler.options[option] != tag:
			self._commit_data = None
		self.repo_handler.set_options(option, tag)

	def set_labels(self, *labels: Any) -> None:
		self._use_labels(_unique_labels(labels))

	def add_label(self, *labels: Any) -> None:
		self._use_labels(_unique_labels(self.labels + list(labels)))

	def remove_label(self, *labels: Any) -> None:
		removed = {str(x) for x in labels}
		self._use_labels([label for label in self.labels if label not in removed])

	def _use_labels(self, labels: List[str]) -> None:
		if labels != self.labels:
			self._commit_data = None
		self.labels = labels

	def get_commit_data(self, refresh: bool = False) -> CommitMap:
		"""Fetch, deduplicate and label-filter the commit data of the tag window.

		Args:
			refresh: Re-read tags and commits from the repository.

		Returns:
			Processed commit map, newest tag first.
		"""
		if not refresh and self._commit_data is not None:
			return self._commit_data

		raw = self.repo_handler.fetch_commit_data(refresh)
		# Work on a copy so the handler's raw cache stays undeduplicated
		commit_data = {tag: bucket.model_copy(deep=True) for tag, bucket in raw.items()}
		self._commit_data = process_commit_data(
			commit_data,
			labels=self.labels,
			threshold=self.options.similarity_threshold,
		)
		logger.info(f"✓ Processed commit data for {len(self._commit_data)} tags")
		return self._commit_data


def _unique_labels(labels) -> List[str]:
	"""Labels as strings, duplicates dropped, first occurrence kept."""
	unique: List[str] = []
	for label in labels:
		if str(label) not in unique:
			unique.append(str(label))
	return unique


def _parse_option(raw: str) -> Dict[str, Any]:
	"""Parse ``name=value``; true/false and numbers are converted."""
	if "=" not in raw:
		raise InvalidOptionError(f"Expected name=value, got: {raw}")
	name, value = raw.split("=", 1)
	lowered = value.strip().lower()
	if lowered in ("true", "false"):
		return {name.strip(): lowered == "true"}
	try:
		return {name.strip(): float(value) if "." in value else int(value)}
	except ValueError:
		return {name.strip(): value}


def main():
	"""CLI entry point for the changelog agent."""
	import argparse

	from configs.config import Config

	parser = argparse.ArgumentParser(
		description="Changelog Agent - Generate a changelog from git tags and commits",
		formatter_class=argparse.RawDescriptionHelpFormatter,
		epilog="""
Examples:
  python -m agents.changelog_agent --repo . --output CHANGELOG.md
  python -m agents.changelog_agent --from-tag v1.0.0 --to-tag v2.0.0 --label Add --label Fix
  python -m agents.changelog_agent --format html --option similarityThreshold=0.9
		"""
	)
	parser.add_argument("--repo", default=None, help="Path to the git repository (default: current directory)")
	parser.add_argument("--from-tag", default=None, help="Oldest tag to include")
	parser.add_argument("--to-tag", default=None, help="Newest tag to include (default: HEAD)")
	parser.add_argument("--format", choices=["markdown", "html"], default=Config.get_render_config()["format"])
	parser.add_argument("--label", action="append", default=[], help="Only keep titles starting with this label")
	parser.add_argument("--option", action="append", default=[], help="Generator option as name=value")
	parser.add_argument("--base", default=None, help="File or text appended after the generated changelog")
	parser.add_argument("--output", default=None, help="Write to this file instead of stdout")
	parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

	args = parser.parse_args()

	# Set up logging
	observability = Config.observability()
	log_level = logging.DEBUG if args.verbose else getattr(logging, observability["log_level"].upper(), logging.INFO)
	logging.basicConfig(
		level=log_level,
		format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
	)

	# Suppress per-command logs unless in debug mode
	if not args.verbose:
		logging.getLogger("clients.git_client").setLevel(logging.WARNING)
	if observability["metrics_enabled"]:
		logger.debug(f"Writing metrics to {observability['metrics_root']}")

	from utils.metrics import Timer, incr
	try:
		if args.format == "html":
			from utils.html_renderer import HtmlRenderer
			changelog = HtmlRenderer(args.repo)
		else:
			from utils.markdown_renderer import MarkDownRenderer
			changelog = MarkDownRenderer(args.repo)

		options: Dict[str, Any] = {}
		for raw in args.option:
			options.update(_parse_option(raw))
		if options:
			changelog.set_options(options)
		changelog.set_from_tag(args.from_tag)
		changelog.set_to_tag(args.to_tag)
		if args.label:
			changelog.set_labels(*args.label)
		if args.base is not None:
			changelog.set_base_content(args.base)

		with Timer("changelog.build", format=args.format):
			changelog.build()

		if args.output:
			changelog.save(args.output)
			logger.info(f"✓ Changelog written to {args.output}")
		else:
			print(changelog.get(append_base=True), end="")
		sys.exit(0)
	except ChangelogError as e:
		incr("changelog.failure", code=e.code)
		if e.code == "NOT_FOUND":
			print("Error: git executable not found. Install git or set GIT_EXECUTABLE.", file=sys.stderr)
		else:
			print(f"Error: {e}", file=sys.stderr)
		sys.exit(1)


if __name__ == "__main__":
	main()
