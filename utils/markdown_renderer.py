#!/usr/bin/env python3
from __future__ import annotations

import logging
import re
import textwrap
from typing import List, Optional, Set

from configs.config import Config
from utils.link_registry import LinkRegistry
from utils.renderer_base import BaseRenderer, fill

logger = logging.getLogger(__name__)

LIST_MARKER_RE = re.compile(r"^(\s*(?:[-*+]|\d+\.)\s+)")


def wrap_line(line: str, width: int) -> List[str]:
	"""Wrap one title line, indenting continuation lines under the list marker text."""
	if width <= 0 or len(line) <= width:
		return [line]
	match = LIST_MARKER_RE.match(line)
	indent = " " * len(match.group(1)) if match else ""
	return textwrap.wrap(
		line,
		width=width,
		subsequent_indent=indent,
		break_long_words=False,
		break_on_hyphens=False,
	) or [line]


class MarkDownRenderer(BaseRenderer):
	"""Renders the changelog as Markdown with footnote style reference links."""

	def __init__(self, repo_path: Optional[str] = None, handler=None):
		super().__init__(repo_path, handler=handler)
		self.title_length: int = Config.get_render_config()["title_length"]
		self.links = LinkRegistry()

	def _link(self, text: str, url: str) -> str:
		return f"[{text}][{self.links.register(url)}]"

	def build(self) -> None:
		options = self.options
		self.links.clear()
		commit_data = self.get_commit_data()

		if not commit_data:
			self.changelog = f"# {options.log_header}\n\n{options.no_changes_message}\n"
			return

		lines: List[str] = [f"# {options.log_header}"]
		title_rows: Set[int] = set()
		for tag, bucket in self._ordered_tags(commit_data):
			name, date = self._tag_heading(tag, bucket)
			lines += ["", fill(self.formats["tag"], {"tag": name, "date": date}), ""]

			if not bucket.titles:
				lines.append(fill(self.formats["title"], {"title": options.no_changes_message, "hashes": ""}).rstrip())
				continue

			for title, hashes in self._sorted_titles(bucket):
				title = self._convert_references(title, self._link)
				title_rows.add(len(lines))
				lines.append(fill(self.formats["title"], {
					"title": title,
					"hashes": self._format_hashes(hashes, self._link),
				}).rstrip())

		# Number the links top to bottom before wrapping changes line lengths
		lines = self.links.resolve(lines)
		output: List[str] = []
		for row, line in enumerate(lines):
			output.extend(wrap_line(line, self.title_length) if row in title_rows else [line])

		footnotes = self.links.footnotes()
		if footnotes:
			output += [""] + footnotes

		self.changelog = "\n".join(output) + "\n"
		logger.info(f"✓ Built Markdown changelog ({len(commit_data)} tags, {len(footnotes)} links)")
