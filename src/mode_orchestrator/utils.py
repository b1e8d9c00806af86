"""Shared text helpers for keyword matching and truncation."""

import re
from functools import lru_cache

_ASCII_KEYWORD = re.compile(r"^[\x00-\x7f]+$")


@lru_cache(maxsize=512)
def _keyword_pattern(keyword: str) -> re.Pattern:
	# ASCII keywords must start on a word boundary so "ui" does not hit "build".
	return re.compile(r"(?<![a-z0-9])" + re.escape(keyword))


def contains_keyword(text: str, keyword: str) -> bool:
	"""
	Case-insensitive keyword test.

	Non-ASCII (Japanese) keywords match as plain substrings. ASCII keywords
	must begin at a word boundary but may continue into a longer word, so
	"test" matches "testing" while "api" does not match "rapid".
	"""
	text = text.lower()
	keyword = keyword.lower()
	if not _ASCII_KEYWORD.match(keyword):
		return keyword in text
	return _keyword_pattern(keyword).search(text) is not None


def matching_keywords(text: str, keywords: list[str] | tuple[str, ...]) -> list[str]:
	"""Return the keywords present in text, in declaration order."""
	return [k for k in keywords if contains_keyword(text, k)]


def truncate(text: str, max_len: int = 60) -> str:
	"""Cut text to max_len characters, marking the cut with '...'."""
	if len(text) <= max_len:
		return text
	return text[: max(0, max_len - 3)] + "..."
