#!/usr/bin/env python3
"""Shared renderer configuration and helpers.

Renderers extend the changelog engine with output formats, link urls,
reference patterns and base content. Subclasses implement ``build()``.
"""

import logging
import os
import re
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from agents.changelog_agent import GitChangelog
from utils.changelog_models import CommitMap, TagBucket
from utils.errors import ChangelogWriteError, InvalidOptionError, InvalidPatternError

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{(tag|date|title|hashes)\}")

# Skips matches inside the text of an already bracketed link
_NOT_IN_LINK_TEXT = r"(?![^\[]*\])"


def natural_key(value: str) -> List[object]:
	"""Sort key ordering embedded numbers by value, so "2" comes before "10"."""
	return [int(part) if part.isdigit() else part for part in re.split(r"(\d+)", value)]


def fill(template: str, values: Dict[str, str]) -> str:
	"""Substitute ``{name}`` placeholders in a single pass.

	Placeholders without a value are left as they are, and substituted text is
	never scanned again.
	"""
	return PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), template)


class BaseRenderer(GitChangelog):
	DEFAULT_FORMATS: Dict[str, str] = {
		"tag": "## {tag} ({date})",
		"title": "* {title} {hashes}",
	}

	def __init__(self, repo_path: Optional[str] = None, handler=None):
		super().__init__(repo_path, handler=handler)
		self.changelog = ""
		self.base_content: Optional[str] = None
		self.formats: Dict[str, str] = dict(self.DEFAULT_FORMATS)
		self.urls: Dict[str, Optional[str]] = {"commit": None, "issue": None, "mergeRequest": None}
		self.patterns: Dict[str, Optional[re.Pattern]] = {"issue": None, "mergeRequest": None}

	def build(self) -> None:
		raise NotImplementedError

	def set_format(self, type_: str, format_: str) -> None:
		"""Set the ``tag`` or ``title`` line format."""
		if type_ not in self.formats:
			raise InvalidOptionError(f"Unknown format type: {type_}")
		self.formats[type_] = format_

	def set_url(self, type_: str, url: Optional[str]) -> None:
		"""Set the link url for ``commit``, ``issue`` or ``mergeRequest``. None disables linking."""
		if type_ not in self.urls:
			raise InvalidOptionError(f"Unknown url type: {type_}")
		self.urls[type_] = url

	def set_pattern(self, type_: str, pattern: Optional[str]) -> None:
		"""Set the reference pattern for ``issue`` or ``mergeRequest``.

		The pattern needs exactly one capturing group, holding the value put in
		the url. None resets the pattern so it matches nothing.

		Raises:
			InvalidOptionError: If the type is unknown.
			InvalidPatternError: If the pattern is invalid or has no single group.
		"""
		if type_ not in self.patterns:
			raise InvalidOptionError(f"Unknown pattern type: {type_}")
		if pattern is None:
			self.patterns[type_] = None
			return
		try:
			groups = re.compile(pattern).groups
		except re.error as e:
			raise InvalidPatternError(f"Invalid {type_} pattern: {e}", cause=e) from e
		if groups != 1:
			raise InvalidPatternError("The pattern must contain exactly one capturing group")
		self.patterns[type_] = re.compile(pattern + _NOT_IN_LINK_TEXT)

	def set_base_content(self, value: Optional[str]) -> None:
		"""Set the content appended after the changelog: a file's content, or the text itself."""
		if value is not None and os.path.isfile(value) and os.access(value, os.R_OK):
			with open(value, "r", encoding="utf-8") as f:
				value = f.read()
		self.base_content = value

	def get(self, append_base: bool = False) -> str:
		if append_base and self.base_content:
			return self.changelog + self.base_content
		return self.changelog

	def save(self, path: str) -> None:
		"""Write the changelog followed by the base content.

		Raises:
			ChangelogWriteError: If the file cannot be written.
		"""
		try:
			with open(path, "w", encoding="utf-8") as f:
				f.write(self.get(append_base=True))
		except OSError as e:
			logger.error(f"Unable to write changelog to {path}: {e}")
			raise ChangelogWriteError(f"Unable to write changelog to {path}: {e}", cause=e) from e
		logger.info(f"✓ Saved changelog to {path}")

	def _ordered_tags(self, commit_data: CommitMap) -> List[Tuple[Optional[str], TagBucket]]:
		items = list(commit_data.items())
		if self.options.tag_order == "asc":
			items.reverse()
		return items

	def _tag_heading(self, tag: Optional[str], bucket: TagBucket) -> Tuple[str, str]:
		if tag is None:
			return self.options.head_tag_name, self.options.head_tag_date
		return tag, bucket.date

	def _sorted_titles(self, bucket: TagBucket) -> Iterator[Tuple[str, List[str]]]:
		"""Titles with their hashes in natural title order."""
		indices = sorted(range(len(bucket.titles)), key=lambda i: natural_key(bucket.titles[i]))
		if self.options.title_order == "desc":
			indices.reverse()
		for i in indices:
			yield bucket.titles[i], bucket.hash_list(i)

	def _convert_references(self, text: str, link: Callable[[str, str], str]) -> str:
		"""Turn issue and merge request references into links.

		``link(text, url)`` renders one link in the output format. Each pattern
		only sees the text earlier patterns left plain, so a link is never
		rewritten by a later pattern.
		"""
		# (text, is_link) pieces of the title
		segments: List[Tuple[str, bool]] = [(text, False)]
		for type_, placeholder in (("issue", "{issue}"), ("mergeRequest", "{mergeRequest}")):
			url = self.urls[type_]
			pattern = self.patterns[type_]
			if not url or pattern is None:
				continue
			converted: List[Tuple[str, bool]] = []
			for segment, linked in segments:
				if linked:
					converted.append((segment, True))
					continue
				position = 0
				for match in pattern.finditer(segment):
					# An optional group that did not take part leaves the text as is
					if match.group(1) is None or match.start() == match.end():
						continue
					converted.append((segment[position:match.start()], False))
					converted.append((link(match.group(0), url.replace(placeholder, match.group(1))), True))
					position = match.end()
				converted.append((segment[position:], False))
			segments = converted
		return "".join(segment for segment, _ in segments)

	def _format_hashes(self, hashes: List[str], link: Callable[[str, str], str]) -> str:
		if not self.options.add_hashes:
			return ""
		url = self.urls["commit"]
		if url is not None:
			hashes = [link(h, url.replace("{commit}", h)) for h in hashes]
		return "(" + ", ".join(hashes) + ")"
