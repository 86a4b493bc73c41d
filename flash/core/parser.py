"""Parse cardbox files written in the flashcard markup.

    % a comment
    # Face of a write-the-line card
        every line of the back has to be typed
        ! a note shown as additional context
    ## Face of a fill-the-blank card
        only the UPPERCASE words have to be typed

A leading backslash escapes a markup character: ``\\# not a face``.
"""

from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Union

from flash.core.errors import ParseError, StorageError
from flash.core.flashcard import CardKind, Flashcard

MARKUP_FACE = "#"
MARKUP_COMMENT = "%"
MARKUP_NOTE = "!"
MARKUP_ESCAPE = "\\"
MARKUP = (MARKUP_FACE, MARKUP_COMMENT, MARKUP_NOTE)

# Number of face markers per card kind
KINDS = {1: CardKind.WRITE_THE_LINE, 2: CardKind.FILL_THE_BLANK}


class _State(str, Enum):
    INIT = "init"
    FACE = "face"
    BACK = "back"
    NOTE = "note"


class _CardBuilder:
    """Collects the parts of one flashcard while its lines are parsed."""

    def __init__(self, subject: str, face: str, kind: CardKind):
        self.subject = subject
        self.face = face
        self.kind = kind
        self.back: List[str] = []
        self.note: Optional[str] = None

    def build(self) -> Flashcard:
        return Flashcard(
            subject=self.subject,
            face=self.face,
            back=tuple(self.back),
            kind=self.kind,
            note=self.note,
        )


def _unescape(line: str) -> str:
    if line.startswith(MARKUP_ESCAPE) and line[1:2] in MARKUP:
        return line[1:]
    return line


def parse(lines: Iterable[str], subject: str) -> List[Flashcard]:
    """Parse flashcards from ``lines``; ``subject`` is shared by all of them."""
    flashcards: List[Flashcard] = []
    state = _State.INIT
    builder: Optional[_CardBuilder] = None

    def fail(message: str, line_no: int):
        raise ParseError(message, line_no, subject)

    for line_no, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith(MARKUP_COMMENT):
            continue

        if line.startswith(MARKUP_FACE):
            if state == _State.FACE:
                fail("flashcard has no back", line_no)
            if builder is not None:
                flashcards.append(builder.build())

            count = len(line) - len(line.lstrip(MARKUP_FACE))
            if count not in KINDS:
                fail(f"unsupported flashcard type {MARKUP_FACE * count!r}", line_no)
            face = line[count:].strip()
            if not face:
                fail("no flashcard front specified", line_no)
            builder = _CardBuilder(subject, face, KINDS[count])
            state = _State.FACE

        elif line.startswith(MARKUP_NOTE):
            if state != _State.BACK:
                fail("a note must follow the back of a flashcard", line_no)
            builder.note = line[len(MARKUP_NOTE):].strip()
            state = _State.NOTE

        else:
            if state == _State.INIT:
                fail("flashcard back without a front", line_no)
            if state == _State.NOTE:
                fail("the note must be the last line of a flashcard", line_no)
            builder.back.append(_unescape(line))
            state = _State.BACK

    if state == _State.FACE:
        fail("flashcard has no back", line_no)
    if builder is not None:
        flashcards.append(builder.build())
    return flashcards


def parse_file(path: Union[str, Path]) -> List[Flashcard]:
    """Parse a cardbox file; the file name becomes the subject of its cards."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise StorageError(f"error reading cardbox {path}: {e}") from e
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        line_no = data[:e.start].count(b"\n") + 1
        raise ParseError("cardbox is not valid UTF-8", line_no, path.name) from e
    return parse(text.splitlines(), path.name)
