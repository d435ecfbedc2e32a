#!/usr/bin/env python3
"""Jaro-Winkler string similarity.

Scores are normalized to [0, 1] where 1.0 is an exact match. The Winkler
variant boosts strings sharing a common prefix (up to 4 characters).
"""

from __future__ import annotations

from typing import List

MAX_PREFIX_LENGTH = 4
MAX_SCALE = 0.25


def _common_characters(first: str, second: str, allowed_distance: int) -> List[str]:
	"""Characters of ``first`` that also occur in ``second`` within the allowed distance.

	A character of ``second`` is consumed once matched, so it is never counted twice.
	"""
	used = [False] * len(second)
	commons: List[str] = []
	for i, ch in enumerate(first):
		start = max(0, i - allowed_distance)
		end = min(i + allowed_distance + 1, len(second))
		for j in range(start, end):
			if not used[j] and second[j] == ch:
				used[j] = True
				commons.append(ch)
				break
	return commons


def jaro(first: str, second: str) -> float:
	"""Jaro similarity between two strings."""
	len1 = len(first)
	len2 = len(second)
	if not len1 or not len2:
		# Both empty is an exact match; only one empty has nothing in common
		return 1.0 if len1 == len2 else 0.0

	distance = min(len1, len2) // 2
	commons1 = _common_characters(first, second, distance)
	commons2 = _common_characters(second, first, distance)
	if not commons1 or not commons2:
		return 0.0

	mismatches = sum(1 for a, b in zip(commons1, commons2) if a != b)
	transpositions = mismatches / 2.0
	c1 = len(commons1)
	return (c1 / len1 + len(commons2) / len2 + (c1 - transpositions) / c1) / 3.0


def prefix_length(first: str, second: str) -> int:
	max_length = min(MAX_PREFIX_LENGTH, len(first), len(second))
	for i in range(max_length):
		if first[i] != second[i]:
			return i
	return max_length


def compare(first: str, second: str, scale: float = 0.1) -> float:
	"""Jaro-Winkler similarity between two strings.

	Args:
		first: First string.
		second: Second string.
		scale: Prefix scaling factor, capped at 0.25 so the score cannot exceed 1.

	Returns:
		Similarity in [0, 1].
	"""
	similarity = jaro(first, second)
	return similarity + prefix_length(first, second) * min(MAX_SCALE, scale) * (1.0 - similarity)
