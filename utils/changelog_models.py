#!/usr/bin/env python3
"""Changelog models: option set, raw commit records and per-tag buckets.

The option set keeps the camelCase option names used by callers as aliases,
so ``{"logHeader": ...}`` and ``log_header=...`` both validate.
"""

from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, confloat, field_validator, model_validator

from utils.errors import InvalidOptionError

SortOrder = Literal["asc", "desc"]


class ChangelogOptions(BaseModel):
	"""Closed set of generator and repository options."""

	model_config = ConfigDict(extra="forbid", populate_by_name=True)

	# Generator options
	log_header: str = Field("Changelog", alias="logHeader")
	head_tag_name: str = Field("Upcoming changes", alias="headTagName")
	head_tag_date: str = Field("Undetermined", alias="headTagDate")
	no_changes_message: str = Field("No changes.", alias="noChangesMessage")
	add_hashes: bool = Field(True, alias="addHashes")
	tag_order: SortOrder = Field("desc", alias="tagOrder")
	title_order: SortOrder = Field("asc", alias="titleOrder")
	similarity_threshold: confloat(ge=0.0, le=1.0) = Field(1.0, alias="similarityThreshold")
	# Repository options
	include_merge_commits: bool = Field(False, alias="includeMergeCommits")
	tag_order_by: str = Field("creatordate", alias="tagOrderBy", min_length=1)

	@field_validator("tag_order", "title_order", mode="before")
	@classmethod
	def _lower_order(cls, value: Any) -> Any:
		return value.strip().lower() if isinstance(value, str) else value

	def get(self, name: str) -> Any:
		"""Return an option by its alias or field name."""
		field_name = _NAME_BY_ALIAS.get(name, name)
		if field_name not in type(self).model_fields:
			raise InvalidOptionError(f"Option '{name}' does not exist")
		return getattr(self, field_name)

	def with_updates(self, updates: Mapping[str, Any]) -> "ChangelogOptions":
		"""Validate a batch of updates against the current values.

		Nothing is applied unless the whole batch is valid; the caller swaps in
		the returned instance.

		Raises:
			InvalidOptionError: If a name is unknown or a value is invalid.
		"""
		merged = self.model_dump(by_alias=True)
		for key, value in updates.items():
			merged[_ALIAS_BY_NAME.get(key, key)] = value
		try:
			return ChangelogOptions.model_validate(merged)
		except ValidationError as e:
			problems = []
			for err in e.errors():
				loc = ".".join(str(part) for part in err.get("loc", ()))
				if err.get("type") == "extra_forbidden":
					problems.append(f"Attempt to set an invalid option: {loc}")
				else:
					problems.append(f"{loc}: {err.get('msg')}")
			raise InvalidOptionError("; ".join(problems), cause=e) from e


_ALIAS_BY_NAME: Dict[str, str] = {name: field.alias for name, field in ChangelogOptions.model_fields.items() if field.alias}
_NAME_BY_ALIAS: Dict[str, str] = {alias: name for name, alias in _ALIAS_BY_NAME.items()}


class CommitRecord(BaseModel):
	"""One raw git log entry."""

	date: str
	title: str
	hash: str
	parents: List[str] = Field(default_factory=list)

	model_config = {"extra": "ignore"}

	@property
	def is_merge(self) -> bool:
		return len(self.parents) > 1


class TagBucket(BaseModel):
	"""Commit titles of one tag with their hashes, aligned by position."""

	date: str = ""
	titles: List[str] = Field(default_factory=list)
	hashes: List[Union[str, List[str]]] = Field(default_factory=list)

	@model_validator(mode="after")
	def _aligned(self) -> "TagBucket":
		if len(self.titles) != len(self.hashes):
			raise ValueError(f"titles and hashes differ in length: {len(self.titles)} != {len(self.hashes)}")
		return self

	def hash_list(self, index: int) -> List[str]:
		"""Hashes of a title as a list, whether or not the bucket was deduplicated."""
		value = self.hashes[index]
		return list(value) if isinstance(value, list) else [value]


CommitMap = Dict[Optional[str], TagBucket]
