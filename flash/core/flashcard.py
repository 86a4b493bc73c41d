"""Flashcard model and the fingerprint that identifies a card across edits."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple
import hashlib

# Shown in place of each character of a blank
BLANK_INDICATOR = "_"

# Separates the hashed parts so that ("ab", "c") and ("a", "bc") differ
_PART_SEPARATOR = b"\x1f"


class CardKind(str, Enum):
    """What the learner has to type for a flashcard."""
    WRITE_THE_LINE = "write_the_line"
    FILL_THE_BLANK = "fill_the_blank"


@dataclass(frozen=True)
class LinePart:
    """A word of a fill-the-blank line and whether it has to be typed."""
    text: str
    blank: bool
    offset: int


def _is_blank_word(word: str) -> bool:
    return any(c.isalpha() for c in word) and all(c.isupper() or not c.isalnum() for c in word)


def split_blanks(line: str) -> List[LinePart]:
    """
    Split a fill-the-blank line into words.

    UPPERCASE words are blanks and are expected in lowercase, everything else
    is context shown to the learner.
    """
    parts = []
    offset = 0
    for word in line.split():
        blank = _is_blank_word(word)
        parts.append(LinePart(word.lower() if blank else word, blank, offset))
        offset += len(word) + 1
    return parts


@dataclass(frozen=True)
class Flashcard:
    """
    A single flashcard as written in a cardbox file.

    The back holds the lines as they appear in the markup; fill-the-blank
    cards are split into words on demand.
    """
    subject: str
    face: str
    back: Tuple[str, ...]
    kind: CardKind = CardKind.WRITE_THE_LINE
    note: Optional[str] = None

    @property
    def fingerprint(self) -> int:
        return fingerprint(self)

    def lines_to_validate(self) -> List[str]:
        """The text the learner has to type, one entry per back line."""
        if self.kind == CardKind.WRITE_THE_LINE:
            return list(self.back)
        return [
            " ".join(part.text for part in split_blanks(line) if part.blank)
            for line in self.back
        ]

    def lines_to_display(self) -> List[str]:
        """The template shown while typing; empty for write-the-line cards."""
        if self.kind == CardKind.WRITE_THE_LINE:
            return ["" for _ in self.back]
        result = []
        for line in self.back:
            words = [
                BLANK_INDICATOR * len(part.text) if part.blank else part.text
                for part in split_blanks(line)
            ]
            result.append(" ".join(words))
        return result


def fingerprint(card: Flashcard) -> int:
    """
    Stable 64-bit identity of a flashcard.

    Only the subject and the back are hashed, so fixing a typo on the face or
    adding a note keeps the learning progress of the card.
    """
    hasher = hashlib.blake2b(digest_size=8)
    hasher.update(card.subject.encode("utf-8"))
    for line in card.back:
        hasher.update(_PART_SEPARATOR)
        hasher.update(line.encode("utf-8"))
    return int.from_bytes(hasher.digest(), "big")
