import pytest

from utils.changelog_models import TagBucket
from utils.errors import ChangelogWriteError, InvalidOptionError, InvalidPatternError
from utils.markdown_renderer import MarkDownRenderer, wrap_line


def _render(fake_handler, data, **options) -> MarkDownRenderer:
	changelog = MarkDownRenderer(handler=fake_handler)
	if options:
		changelog.set_options(options)
	changelog._commit_data = data
	changelog.build()
	return changelog


def _bucket(date, titles, hashes) -> TagBucket:
	return TagBucket(date=date, titles=titles, hashes=hashes)


#============================================
def test_no_tags(fake_handler) -> None:
	assert _render(fake_handler, {}).get() == "# Changelog\n\nNo changes.\n"


#============================================
def test_head_revision(fake_handler) -> None:
	"""
	The HEAD pseudo-tag shows the head tag name and date.
	"""
	data = {None: _bucket("B", ["C", "D"], [["E"], ["F"]])}
	expected = "# Changelog\n\n## Upcoming changes (Undetermined)\n\n* C (E)\n* D (F)\n"
	assert _render(fake_handler, data).get() == expected


#============================================
def test_tag_without_commits(fake_handler) -> None:
	data = {"A": _bucket("B", [], [])}
	assert _render(fake_handler, data).get() == "# Changelog\n\n## A (B)\n\n* No changes.\n"


#============================================
def test_merged_hashes(fake_handler) -> None:
	data = {"A": _bucket("B", ["C", "D"], [["E", "F"], ["G"]])}
	assert _render(fake_handler, data).get() == "# Changelog\n\n## A (B)\n\n* C (E, F)\n* D (G)\n"


#============================================
def test_title_order_descending(fake_handler) -> None:
	data = {"A": _bucket("B", ["C", "D"], [["E"], ["F"]])}
	changelog = _render(fake_handler, data, titleOrder="desc")
	assert changelog.get() == "# Changelog\n\n## A (B)\n\n* D (F)\n* C (E)\n"


#============================================
def test_titles_sorted_naturally(fake_handler) -> None:
	data = {"A": _bucket("B", ["Bump to 10", "Bump to 2"], [["x"], ["y"]])}
	changelog = _render(fake_handler, data)
	assert changelog.get().index("Bump to 2") < changelog.get().index("Bump to 10")


#============================================
def test_tag_order(fake_handler) -> None:
	data = {
		"H": _bucket("I", ["J", "K"], [["L", "M"], ["N"]]),
		"A": _bucket("B", ["C", "D"], [["E", "F"], ["G"]]),
	}
	desc = "# Changelog\n\n## H (I)\n\n* J (L, M)\n* K (N)\n\n## A (B)\n\n* C (E, F)\n* D (G)\n"
	asc = "# Changelog\n\n## A (B)\n\n* C (E, F)\n* D (G)\n\n## H (I)\n\n* J (L, M)\n* K (N)\n"
	assert _render(fake_handler, data).get() == desc
	assert _render(fake_handler, data, tagOrder="asc").get() == asc


#============================================
def test_references_without_urls_stay_plain(fake_handler) -> None:
	data = {"A": _bucket("B", ["#1"], [["0123456"]])}
	changelog = MarkDownRenderer(handler=fake_handler)
	changelog.set_pattern("issue", r"#(\d+)")
	changelog._commit_data = data
	changelog.build()
	assert changelog.get() == "# Changelog\n\n## A (B)\n\n* #1 (0123456)\n"


#============================================
def test_links_numbered_by_appearance(fake_handler) -> None:
	"""
	The issue link comes first in the line, so it gets index 0.
	"""
	changelog = MarkDownRenderer(handler=fake_handler)
	changelog.set_url("issue", "<i>{issue}</i>")
	changelog.set_url("commit", "<c>{commit}</c>")
	changelog.set_pattern("issue", r"#(\d+)")
	changelog._commit_data = {"A": _bucket("B", ["#1"], [["0123456"]])}
	changelog.build()
	assert changelog.get() == "# Changelog\n\n## A (B)\n\n* [#1][0] ([0123456][1])\n\n[0]:<i>1</i>\n[1]:<c>0123456</c>\n"

	changelog.set_options("addHashes", False)
	changelog.build()
	assert changelog.get() == "# Changelog\n\n## A (B)\n\n* [#1][0]\n\n[0]:<i>1</i>\n"


#============================================
@pytest.mark.parametrize("tag_order", ["asc", "desc"])
def test_first_link_is_nearest_the_top(fake_handler, tag_order) -> None:
	changelog = MarkDownRenderer(handler=fake_handler)
	changelog.set_options({"tagOrder": tag_order, "addHashes": False})
	changelog.set_url("issue", "https://example.com/issues/{issue}")
	changelog.set_pattern("issue", r"#(\d+)")
	changelog._commit_data = {
		"v2": _bucket("2024-02-01", ["Fix #20"], [["b"]]),
		"v1": _bucket("2024-01-01", ["Fix #10"], [["a"]]),
	}
	changelog.build()
	text = changelog.get()
	top_issue = "20" if tag_order == "desc" else "10"
	assert f"[#{top_issue}][0]" in text
	assert f"[0]:https://example.com/issues/{top_issue}\n" in text


#============================================
def test_merge_request_links_skip_existing_link_text(fake_handler) -> None:
	"""
	A second pattern never matches inside text that is already a link.
	"""
	changelog = MarkDownRenderer(handler=fake_handler)
	changelog.set_options("addHashes", False)
	changelog.set_url("issue", "https://example.com/i/{issue}")
	changelog.set_url("mergeRequest", "https://example.com/mr/{mergeRequest}")
	changelog.set_pattern("issue", r"#(\d+)")
	changelog.set_pattern("mergeRequest", r"(\d+)")
	changelog._commit_data = {"A": _bucket("B", ["Fix #7"], [["h"]])}
	changelog.build()
	assert "* Fix [#7][0]\n" in changelog.get()
	assert "mr/" not in changelog.get()


#============================================
def test_optional_group_without_value_stays_plain(fake_handler) -> None:
	"""
	A reference pattern whose group did not match leaves the text unlinked.
	"""
	changelog = MarkDownRenderer(handler=fake_handler)
	changelog.set_options("addHashes", False)
	changelog.set_url("issue", "https://example.com/i/{issue}")
	changelog.set_pattern("issue", r"#(\d+)?")
	changelog._commit_data = {"A": _bucket("B", ["Fix # sign and #5"], [["h"]])}
	changelog.build()
	assert "* Fix # sign and [#5][0]\n" in changelog.get()
	assert "https://example.com/i/5" in changelog.get()


#============================================
def test_custom_formats(fake_handler) -> None:
	changelog = MarkDownRenderer(handler=fake_handler)
	changelog.set_format("tag", "### {tag} - {date}")
	changelog.set_format("title", "- {title}")
	changelog._commit_data = {"A": _bucket("B", ["C"], [["E"]])}
	changelog.build()
	assert changelog.get() == "# Changelog\n\n### A - B\n\n- C\n"


#============================================
def test_unknown_types_rejected(fake_handler) -> None:
	changelog = MarkDownRenderer(handler=fake_handler)
	with pytest.raises(InvalidOptionError):
		changelog.set_format("footer", "x")
	with pytest.raises(InvalidOptionError):
		changelog.set_url("pullRequest", "x")
	with pytest.raises(InvalidOptionError):
		changelog.set_pattern("commit", r"(\w+)")


#============================================
def test_pattern_needs_one_group(fake_handler) -> None:
	changelog = MarkDownRenderer(handler=fake_handler)
	with pytest.raises(InvalidPatternError):
		changelog.set_pattern("issue", r"#\d+")
	with pytest.raises(InvalidPatternError):
		changelog.set_pattern("issue", r"(#)(\d+)")
	with pytest.raises(InvalidPatternError) as exc:
		changelog.set_pattern("issue", r"#(\d+")
	assert exc.value.code == "INVALID_PATTERN"
	changelog.set_pattern("issue", None)
	assert changelog.patterns["issue"] is None


#============================================
def test_long_titles_wrap_under_marker(fake_handler) -> None:
	title = "This is a single line value with more characters than set as the title length."
	changelog = MarkDownRenderer(handler=fake_handler)
	changelog.title_length = 40
	changelog.set_options("addHashes", False)
	changelog._commit_data = {"A": _bucket("B", [title], [["h"]])}
	changelog.build()
	body = changelog.get().split("## A (B)\n\n", 1)[1]
	lines = body.rstrip("\n").split("\n")
	assert len(lines) > 1
	assert lines[0].startswith("* ")
	assert all(line.startswith("  ") and not line.startswith("   ") for line in lines[1:])
	assert all(len(line) <= 40 for line in lines)
	assert " ".join(line.strip() for line in lines) == "* " + title


#============================================
def test_wrap_line_numbered_marker() -> None:
	lines = wrap_line("1. alpha beta gamma delta", 12)
	assert lines[0] == "1. alpha"
	assert all(line.startswith("   ") for line in lines[1:])


#============================================
def test_base_content_text_and_file(fake_handler, tmp_path) -> None:
	changelog = _render(fake_handler, {})
	changelog.set_base_content("\nOlder history.\n")
	assert changelog.get() == "# Changelog\n\nNo changes.\n"
	assert changelog.get(append_base=True) == "# Changelog\n\nNo changes.\n\nOlder history.\n"

	base = tmp_path / "base.md"
	base.write_text("\n## v0 (2019-01-01)\n", encoding="utf-8")
	changelog.set_base_content(str(base))
	assert changelog.get(append_base=True).endswith("## v0 (2019-01-01)\n")

	changelog.set_base_content(None)
	assert changelog.get(append_base=True) == changelog.get()


#============================================
def test_save(fake_handler, tmp_path) -> None:
	changelog = _render(fake_handler, {})
	changelog.set_base_content("Base\n")
	target = tmp_path / "CHANGELOG.md"
	changelog.save(str(target))
	assert target.read_text(encoding="utf-8") == "# Changelog\n\nNo changes.\nBase\n"


#============================================
def test_save_failure(fake_handler, tmp_path) -> None:
	changelog = _render(fake_handler, {})
	with pytest.raises(ChangelogWriteError) as exc:
		changelog.save(str(tmp_path / "missing" / "CHANGELOG.md"))
	assert exc.value.code == "IO"
