#!/usr/bin/env python3
from __future__ import annotations

from typing import Iterable, List, Sequence

from utils import jaro_winkler
from utils.changelog_models import CommitMap, TagBucket


def starts_with_label(title: str, labels: Iterable[str]) -> bool:
	"""True if the title case-insensitively starts with any of the labels."""
	lowered = title.lower()
	return any(lowered.startswith(str(label).lower()) for label in labels)


def find_similar_indexes(titles: Sequence[str], needle: str, threshold: float, start: int = 0) -> List[int]:
	"""Indexes from ``start`` onward whose title matches the needle.

	A threshold of 1.0 means exact equality; anything lower compares with
	Jaro-Winkler similarity.
	"""
	if threshold >= 1:
		return [i for i in range(start, len(titles)) if titles[i] == needle]
	return [i for i in range(start, len(titles)) if jaro_winkler.compare(needle, titles[i]) >= threshold]


def merge_duplicates(bucket: TagBucket, threshold: float) -> TagBucket:
	"""Merge duplicate titles of one tag in place.

	The earliest title survives and collects the hashes of all later
	duplicates, which are removed from both lists. Running it again on a
	merged bucket changes nothing.
	"""
	titles = bucket.titles
	hashes = bucket.hashes
	i = 0
	while i < len(titles):
		merged = bucket.hash_list(i)
		duplicates = find_similar_indexes(titles, titles[i], threshold, start=i + 1)
		for index in duplicates:
			dup = hashes[index]
			merged.extend(dup if isinstance(dup, list) else [dup])
		# Delete from the back so earlier indexes stay valid
		for index in reversed(duplicates):
			del titles[index]
			del hashes[index]
		hashes[i] = merged
		i += 1
	return bucket


def filter_labels(bucket: TagBucket, labels: Sequence[str]) -> TagBucket:
	"""Drop titles (and their hashes) without any of the labels. No labels keeps all."""
	if not labels:
		return bucket
	keep = [i for i, title in enumerate(bucket.titles) if starts_with_label(title, labels)]
	bucket.titles[:] = [bucket.titles[i] for i in keep]
	bucket.hashes[:] = [bucket.hashes[i] for i in keep]
	return bucket


def process_commit_data(commit_data: CommitMap, *, labels: Sequence[str], threshold: float) -> CommitMap:
	# Merge first so hashes of unlabeled duplicates don't leak into other titles
	for bucket in commit_data.values():
		merge_duplicates(bucket, threshold)
		filter_labels(bucket, labels)
	return commit_data
