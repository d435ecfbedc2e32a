#!/usr/bin/env python3
"""Footnote links for rendered changelogs.

While rendering, every link is registered and a placeholder marker is put in
the text. Once the whole document exists, ``resolve`` numbers the markers by
their first appearance from top to bottom, so numbering does not depend on
the order in which tags or titles were rendered.
"""

import re
from typing import Dict, List

# Private-use code points never occur in git output
_MARKER_OPEN = "\ue000"
_MARKER_CLOSE = "\ue001"
_MARKER_RE = re.compile(f"{_MARKER_OPEN}(\\d+){_MARKER_CLOSE}")


class LinkRegistry:
	def __init__(self) -> None:
		self._urls: List[str] = []
		self._ordered: List[str] = []

	def clear(self) -> None:
		self._urls = []
		self._ordered = []

	def register(self, url: str) -> str:
		"""Store a url and return the marker standing in for its index."""
		self._urls.append(url)
		return f"{_MARKER_OPEN}{len(self._urls) - 1}{_MARKER_CLOSE}"

	def resolve(self, lines: List[str]) -> List[str]:
		"""Replace the markers in ``lines`` with sequential indexes.

		Returns the rewritten lines; the urls in their new order are available
		from ``footnotes()`` afterwards.
		"""
		numbering: Dict[int, int] = {}
		self._ordered = []

		def _number(match: "re.Match[str]") -> str:
			registered = int(match.group(1))
			if registered not in numbering:
				numbering[registered] = len(self._ordered)
				self._ordered.append(self._urls[registered])
			return str(numbering[registered])

		return [_MARKER_RE.sub(_number, line) for line in lines]

	def footnotes(self) -> List[str]:
		"""Reference definitions ``[n]:url`` in resolved order."""
		return [f"[{index}]:{url}" for index, url in enumerate(self._ordered)]
