"""Exception types raised by the flash core."""


class FlashError(Exception):
    """Base class for all errors raised by flash."""


class StageError(FlashError, ValueError):
    """A stage index outside 1-5 was used, or the stage queue is empty."""

    def __init__(self, stage: int, reason: str = "invalid stage"):
        self.stage = stage
        super().__init__(f"{reason}: {stage}")


class StorageError(FlashError, OSError):
    """The progress database could not be read or written."""


class DataIntegrityError(FlashError):
    """The progress database holds data that cannot be trusted."""


class ParseError(FlashError):
    """A cardbox file does not follow the flashcard markup."""

    def __init__(self, message: str, line_no: int, source: str = "<cardbox>"):
        self.line_no = line_no
        self.source = source
        super().__init__(f"{source}:{line_no}: {message}")
