#!/usr/bin/env python3
"""Repository accessor: tag window resolution and raw commit retrieval.

Tags and commit data are cached per instance. The HEAD revision is a
pseudo-tag represented by ``None`` and is always the first cached tag.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from clients.git_client import GitClient
from utils.changelog_models import CommitMap, CommitRecord, TagBucket
from utils.errors import InvalidOptionError, TagNotFoundError

logger = logging.getLogger(__name__)

# Null byte separated fields: date, title, short hash, parent hashes
RECORD_FORMAT = "%ad%x00%s%x00%h%x00%p"

_OPTION_ALIASES = {
    "fromTag": "from_tag",
    "toTag": "to_tag",
    "includeMergeCommits": "include_merge_commits",
    "tagOrderBy": "tag_order_by",
}


class RepoHandler:
    def __init__(self, repo_path: Optional[str] = None, client: Optional[GitClient] = None) -> None:
        self.repo_path = repo_path
        self.client = client or GitClient(repo_path=repo_path)
        self.options: Dict[str, Any] = {
            "from_tag": None,
            "to_tag": None,
            "include_merge_commits": False,
            "tag_order_by": "creatordate",
        }
        self._tags: Optional[List[Optional[str]]] = None
        self._commit_data: Optional[CommitMap] = None

    def set_options(self, name: Union[str, Mapping[str, Any]], value: Any = None) -> None:
        """Set one option by name, or several from a mapping.

        Every name is checked before anything is assigned. A changed value
        drops the cached commit data; a changed tag order also drops the tags.
        """
        updates = dict(name) if isinstance(name, Mapping) else {name: value}
        resolved = {}
        for option, option_value in updates.items():
            key = _OPTION_ALIASES.get(option, option)
            if key not in self.options:
                raise InvalidOptionError(f"Attempt to set an invalid option: {option}")
            resolved[key] = option_value
        changed = {key for key, option_value in resolved.items() if self.options[key] != option_value}
        self.options.update(resolved)
        if changed:
            self._commit_data = None
        if "tag_order_by" in changed:
            self._tags = None

    def all_tags(self) -> List[Optional[str]]:
        """Full tag list, HEAD first then newest to oldest. Fetched on first use."""
        if self._tags is None:
            self._load_tags()
        return list(self._tags)

    def _load_tags(self) -> None:
        order_by = self.options["tag_order_by"]
        tags = self.client.run(["tag", f"--sort=-{order_by}"], as_lines=True)
        self._tags = [None] + [tag for tag in tags if tag]
        logger.info(f"✓ Fetched {len(self._tags) - 1} tags")

    def _index_of(self, tag: Optional[str], role: str) -> int:
        try:
            return self._tags.index(tag)
        except ValueError:
            raise TagNotFoundError(str(tag), role=role) from None

    def fetch_tags(self, refresh: bool = False) -> List[Optional[str]]:
        """Return the tags between to_tag and from_tag (inclusive), newest first.

        Args:
            refresh: Re-read the tags from the repository instead of the cache.

        Raises:
            TagNotFoundError: If from_tag or to_tag does not exist.
            CommandFailedError: If git fails.
        """
        if refresh or self._tags is None:
            self._load_tags()

        to_index = self._index_of(self.options["to_tag"], "to_tag")
        from_tag = self.options["from_tag"]
        if from_tag is None:
            return self._tags[to_index:]
        from_index = self._index_of(from_tag, "from_tag")
        # A from_tag newer than to_tag leaves an empty window
        return self._tags[to_index:from_index + 1]

    def _range_for(self, tag: Optional[str]) -> str:
        ref = tag if tag is not None else "HEAD"
        position = self._tags.index(tag)
        if position + 1 < len(self._tags):
            return f"{self._tags[position + 1]}..{ref}"
        return ref

    def fetch_commit_data(self, refresh: bool = False) -> CommitMap:
        """Return the raw (undeduplicated) commit map of the tag window.

        Titles and hashes come from the same log records, so an empty commit
        subject keeps its place next to its hash. The map is only cached once
        every query succeeded, so a failing git call leaves the previous
        cache in place.
        """
        if not refresh and self._commit_data is not None:
            return self._commit_data

        commit_data: CommitMap = {}
        for tag in self.fetch_tags(refresh):
            range_spec = self._range_for(tag)
            ref = tag if tag is not None else "HEAD"
            records = self.fetch_commit_records(range_spec)
            if not self.options["include_merge_commits"]:
                records = [record for record in records if not record.is_merge]
            if records:
                date = records[0].date
            else:
                # Nothing in range; date the tag by its own commit
                dates = self.client.run(["log", "-1", "--date=short", "--pretty=format:%ad", ref], as_lines=True)
                date = dates[0] if dates else ""
            commit_data[tag] = TagBucket(
                date=date,
                titles=[record.title for record in records],
                hashes=[record.hash for record in records],
            )
            logger.debug(f"{ref}: {len(records)} commits in {range_spec}")

        self._commit_data = commit_data
        logger.info(f"✓ Fetched commit data for {len(commit_data)} tags")
        return self._commit_data

    def fetch_commit_records(self, range_spec: str) -> List[CommitRecord]:
        """Log records of a revision range, newest first, merge commits included."""
        lines = self.client.run(["log", range_spec, f"--pretty=format:{RECORD_FORMAT}", "--date=short"], as_lines=True)
        return parse_log_records(lines)


def parse_log_records(lines: List[str]) -> List[CommitRecord]:
    records: List[CommitRecord] = []
    for line in lines:
        if not line:
            continue
        fields = line.split("\x00")
        # Missing trailing fields (root commits have no parents)
        fields += [""] * (4 - len(fields))
        records.append(CommitRecord(
            date=fields[0],
            title=fields[1],
            hash=fields[2],
            parents=fields[3].split(),
        ))
    return records
