"""Compare what the learner typed against the back of a flashcard."""

from dataclasses import dataclass, field
from typing import List, Optional

from flash.core.config import settings
from flash.core.flashcard import Flashcard


@dataclass
class LineResult:
    """Outcome of validating one typed line."""
    expected: str
    received: str
    # For each expected character whether it was typed correctly
    matches: List[bool] = field(default_factory=list)
    typos: int = 0
    passed: bool = True


class InputValidator:
    """
    Checks a typed line character by character.

    Every differing character counts as a typo, and so does every missing or
    extra one. A line passes while its typos stay within ``allowed_typos``.
    """

    def __init__(self, expected: str, allowed_typos: Optional[int] = None):
        self.expected = expected
        self.allowed_typos = settings.allowed_typos_per_line if allowed_typos is None else allowed_typos

    def __len__(self) -> int:
        return len(self.expected)

    def validate(self, received: str) -> LineResult:
        matches = [
            i < len(received) and received[i] == c
            for i, c in enumerate(self.expected)
        ]
        typos = matches.count(False) + max(0, len(received) - len(self.expected))
        return LineResult(
            expected=self.expected,
            received=received,
            matches=matches,
            typos=typos,
            passed=typos <= self.allowed_typos,
        )


class CardValidator:
    """Validates all lines the learner has to type for a flashcard."""

    def __init__(self, flashcard: Flashcard, allowed_typos: Optional[int] = None):
        self.flashcard = flashcard
        self.validators = [
            InputValidator(line, allowed_typos) for line in flashcard.lines_to_validate()
        ]

    def validate(self, received: List[str]) -> List[LineResult]:
        if len(received) != len(self.validators):
            raise ValueError(
                f"expected {len(self.validators)} lines, got {len(received)}"
            )
        return [v.validate(line) for v, line in zip(self.validators, received)]

    @staticmethod
    def passed(results: List[LineResult]) -> bool:
        return all(r.passed for r in results)
