"""
Token estimation.

The estimate is a heuristic, not a tokenizer:

	tokens ~= ceil(0.5 * CJK chars + Latin words + 0.3 * other symbols)

Callers depend on the TokenEstimator protocol so an exact tokenizer can be
dropped in later.
"""

import math
import re
from typing import Protocol

_CJK_RANGES = "\u3040-\u309f\u30a0-\u30ff\u4e00-\u9faf"

_CJK_CHARS = re.compile(f"[{_CJK_RANGES}]")
_LATIN_WORDS = re.compile(r"[a-zA-Z]+")
# ASCII semantics for \w and \s: anything not ASCII word/space and not CJK is a symbol
_SYMBOLS = re.compile(f"[^\\w\\s{_CJK_RANGES}]", re.ASCII)


class TokenEstimator(Protocol):
	def estimate(self, text: str) -> int:
		...


class HeuristicTokenEstimator:
	"""Character-class based estimate tuned for mixed Japanese/English text."""

	cjk_weight = 0.5
	word_weight = 1.0
	symbol_weight = 0.3

	def estimate(self, text: str) -> int:
		cjk = len(_CJK_CHARS.findall(text))
		words = len(_LATIN_WORDS.findall(text))
		symbols = len(_SYMBOLS.findall(text))
		return math.ceil(cjk * self.cjk_weight + words * self.word_weight + symbols * self.symbol_weight)


DEFAULT_ESTIMATOR: TokenEstimator = HeuristicTokenEstimator()


def estimate_token_count(text: str, estimator: TokenEstimator | None = None) -> int:
	"""Approximate token count of text using the given (or default) estimator."""
	return (estimator or DEFAULT_ESTIMATOR).estimate(text)
