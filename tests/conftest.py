from typing import Dict, List, Sequence, Tuple

import pytest

from utils.errors import CommandFailedError
from utils.repo_handler import RECORD_FORMAT, RepoHandler


class FakeGitClient:
	"""Stands in for GitClient; answers by the argument tuple (empty arguments dropped)."""

	def __init__(self, responses: Dict[Tuple[str, ...], List[str]] = None, fail_on: Sequence[Tuple[str, ...]] = ()):
		self.responses = dict(responses or {})
		self.fail_on = set(fail_on)
		self.calls: List[Tuple[str, ...]] = []

	def run(self, arguments, as_lines=False):
		key = tuple(a for a in arguments if a)
		self.calls.append(key)
		if key in self.fail_on:
			raise CommandFailedError("An error occurred while running a git command: fatal: bad revision")
		lines = list(self.responses.get(key, []))
		return lines if as_lines else "\n".join(lines)


def records_key(range_spec: str) -> Tuple[str, ...]:
	"""Argument tuple RepoHandler uses for the log records of one range."""
	return ("log", range_spec, f"--pretty=format:{RECORD_FORMAT}", "--date=short")


def record_line(date: str, title: str, commit: str, parents: str = "p0") -> str:
	return "\x00".join([date, title, commit, parents])


def tag_responses(range_spec: str, date: str, titles: List[str], hashes: List[str]) -> Dict[Tuple[str, ...], List[str]]:
	return {records_key(range_spec): [record_line(date, title, commit) for title, commit in zip(titles, hashes)]}


#============================================
@pytest.fixture
def fake_client():
	return FakeGitClient({("tag", "--sort=-creatordate"): ["v2", "v1"]})


#============================================
@pytest.fixture
def fake_handler(fake_client):
	return RepoHandler(client=fake_client)
