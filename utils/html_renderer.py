#!/usr/bin/env python3
from __future__ import annotations

import html
import logging
import re
from typing import List, Optional

from utils.renderer_base import BaseRenderer, fill

logger = logging.getLogger(__name__)

# Whitespace left by an empty placeholder right before a closing tag
_TRAILING_SPACE_RE = re.compile(r"\s+(</[a-z0-9]+>)$")


def _escape(text: str) -> str:
	return html.escape(text, quote=False)


class HtmlRenderer(BaseRenderer):
	"""Renders the changelog as HTML with inline links."""

	DEFAULT_FORMATS = {
		"tag": "<h2>{tag} ({date})</h2>",
		"title": "<li>{title} {hashes}</li>",
	}

	def _link(self, text: str, url: str) -> str:
		return f'<a href="{html.escape(url)}">{text}</a>'

	def _line(self, template: str, values: dict) -> str:
		return _TRAILING_SPACE_RE.sub(r"\1", fill(template, values).rstrip())

	def build(self) -> None:
		options = self.options
		commit_data = self.get_commit_data()
		content = f"<h1>{_escape(options.log_header)}</h1>\n"

		if not commit_data:
			self.changelog = f"{content}<p>{_escape(options.no_changes_message)}</p>\n"
			return

		for tag, bucket in self._ordered_tags(commit_data):
			name, date = self._tag_heading(tag, bucket)
			content += "\n" + self._line(self.formats["tag"], {"tag": _escape(name), "date": _escape(date)}) + "\n<ul>\n"

			if not bucket.titles:
				content += "    " + self._line(self.formats["title"], {"title": _escape(options.no_changes_message), "hashes": ""}) + "\n"
				content += "</ul>\n"
				continue

			rows: List[str] = []
			for title, hashes in self._sorted_titles(bucket):
				# Escape before links are inserted
				title = self._convert_references(_escape(title), self._link)
				rows.append("    " + self._line(self.formats["title"], {
					"title": title,
					"hashes": self._format_hashes([_escape(h) for h in hashes], self._link),
				}))
			content += "\n".join(rows) + "\n</ul>\n"

		self.changelog = content
		logger.info(f"✓ Built HTML changelog ({len(commit_data)} tags)")
