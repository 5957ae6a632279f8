"""
Input normalizer.

Canonicalizes raw player input before classification:
    1. collapse whitespace
    2. mask profanity
    3. compound phrases ("one hundred fifty" -> "150", "seven iron" -> "7-iron")
    4. club abbreviations and number words ("7i" -> "7-iron", "fifty" -> "50")
    5. golf slang ("flat stick" -> "putter")

Each stage is one case-insensitive alternation with longer keys first, so a
longer phrase always wins over any phrase it contains. A token only matches
as a whole word: letters, digits, apostrophes and hyphens on either side
block a match ("7-iron" never re-matches, "I'd" is not a driver).
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Pattern, Tuple

from . import golf_slang

_WHITESPACE = re.compile(r"\s+")


class ModificationType(Enum):
    PROFANITY = "PROFANITY"
    NUMBER = "NUMBER"
    SLANG = "SLANG"


@dataclass(frozen=True)
class Modification:
    type: ModificationType
    original: str
    replacement: str


@dataclass(frozen=True)
class NormalizationResult:
    original_input: str
    normalized_input: str
    modifications: Tuple[Modification, ...] = field(default_factory=tuple)

    @property
    def was_modified(self) -> bool:
        return bool(self.modifications) or self.normalized_input != self.original_input


def _word_pattern(keys: Iterable[str]) -> Pattern:
    ordered = sorted(keys, key=lambda k: (-len(k), k))
    alternation = "|".join(re.escape(k).replace(r"\ ", r"\s+") for k in ordered)
    return re.compile(rf"(?<![\w'-])(?:{alternation})(?![\w'-])", re.IGNORECASE)


def _folded(table: Dict[str, str]) -> Dict[str, str]:
    # re.IGNORECASE folds characters such as U+017F and U+212A, so keys are matched casefolded
    return {_WHITESPACE.sub(" ", key.casefold()): value for key, value in table.items()}


def _is_number(value: str) -> bool:
    return value.isdigit()


class InputNormalizer:
    """Pure, offline text canonicalizer. normalize() is idempotent."""

    def __init__(
        self,
        compound_phrases: Dict[str, str] = golf_slang.COMPOUND_PHRASES,
        abbreviations: Dict[str, str] = golf_slang.ABBREVIATIONS,
        slang: Dict[str, str] = golf_slang.SLANG,
        profanity: Iterable[str] = golf_slang.PROFANITY,
    ):
        self._profanity = _word_pattern(profanity)
        self._stages: List[Tuple[Pattern, Dict[str, str], Callable[[str], ModificationType]]] = [
            (_word_pattern(compound_phrases), _folded(compound_phrases), self._classify_replacement),
            (_word_pattern(abbreviations), _folded(abbreviations), self._classify_replacement),
            (_word_pattern(slang), _folded(slang), lambda _: ModificationType.SLANG),
        ]

    @staticmethod
    def _classify_replacement(replacement: str) -> ModificationType:
        return ModificationType.NUMBER if _is_number(replacement) else ModificationType.SLANG

    def normalize(self, text: str) -> str:
        return self.normalize_with_details(text).normalized_input

    def normalize_with_details(self, text: str) -> NormalizationResult:
        if not text or not text.strip():
            return NormalizationResult(original_input=text or "", normalized_input="")

        modifications: List[Modification] = []
        normalized = _WHITESPACE.sub(" ", text).strip()

        def mask(match) -> str:
            replacement = "*" * len(match.group(0))
            modifications.append(Modification(ModificationType.PROFANITY, match.group(0), replacement))
            return replacement

        normalized = self._profanity.sub(mask, normalized)

        for pattern, table, kind in self._stages:
            normalized = pattern.sub(self._substitute(table, kind, modifications), normalized)

        return NormalizationResult(
            original_input=text,
            normalized_input=normalized,
            modifications=tuple(modifications),
        )

    @staticmethod
    def _substitute(
        table: Dict[str, str],
        kind: Callable[[str], ModificationType],
        modifications: List[Modification],
    ) -> Callable:
        def replace(match) -> str:
            original = match.group(0)
            replacement = table.get(_WHITESPACE.sub(" ", original.casefold()))
            if replacement is None:
                return original
            modifications.append(Modification(kind(replacement), original, replacement))
            return replacement

        return replace
