"""The cardbox: staged queues deciding which flashcard is studied next.

Cards move through six stages. Stage 0 holds cards that were never studied,
stages 1-5 hold envelopes that remember when the card entered its stage. A
card in stage ``n`` becomes due once the cooldown of that stage has elapsed;
a correct answer moves it one stage up, a wrong answer back to stage 1.
"""

import logging
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Deque, Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

from flash.core import db
from flash.core.config import NUM_STAGES, Settings, settings as default_settings
from flash.core.db import ProgressMap, StageRecord
from flash.core.errors import DataIntegrityError, StageError
from flash.core.flashcard import Flashcard
from flash.utils.time import unix_time_millis

logger = logging.getLogger(__name__)

FIRST_STAGE = 1
LAST_STAGE = NUM_STAGES


@dataclass
class Envelope:
    """A flashcard in stages 1-5 together with its progress metadata."""
    flashcard: Flashcard
    fingerprint: int
    timestamp: int  # when the card entered its current stage (unix ms)


class StageCounts(NamedTuple):
    """Number of flashcards in each stage."""
    stage0: int
    stage1: int
    stage2: int
    stage3: int
    stage4: int
    stage5: int


class Cardbox:
    """
    Deals flashcards based on the learner's progress.

    Only the front of each stage queue is ever considered, so within a stage
    cards are studied strictly in the order they arrived there.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        clock: Callable[[], int] = unix_time_millis,
    ):
        config = config or default_settings
        self.initial_queue_size = config.initial_queue_size
        self.cooldowns = config.cooldowns_ms()
        self._clock = clock
        self._new: Deque[Flashcard] = deque()
        # index 0 is unused; stage 0 holds bare cards in self._new
        self._stages: List[Deque[Envelope]] = [deque() for _ in range(NUM_STAGES + 1)]

    def init(self, flashcards: Iterable[Flashcard], progress: ProgressMap) -> None:
        """
        Fill all stages according to the progress database.

        Cards without progress wait in stage 0 in cardbox order; stage 1 is
        then topped up with the first of them.
        """
        self._new.clear()
        for queue in self._stages:
            queue.clear()

        seen: Dict[int, Flashcard] = {}
        for flashcard in flashcards:
            fp = flashcard.fingerprint
            if fp in seen:
                logger.warning(
                    "Flashcards %r and %r share fingerprint %d and will share progress",
                    seen[fp].face, flashcard.face, fp,
                )
            seen.setdefault(fp, flashcard)

            record = progress.get(fp)
            if record is None:
                self._new.append(flashcard)
                continue
            if not FIRST_STAGE <= record.index <= LAST_STAGE:
                raise DataIntegrityError(
                    f"invalid stage {record.index} for fingerprint {fp} in progress database"
                )
            self._stages[record.index].append(Envelope(flashcard, fp, record.timestamp_ms))

        self._refill()
        logger.debug("Initialized cardbox: %s", self.progress())

    def _refill(self) -> None:
        """Move unseen cards into stage 1 until it holds the initial queue size."""
        stage1 = self._stages[FIRST_STAGE]
        while self._new and len(stage1) < self.initial_queue_size:
            flashcard = self._new.popleft()
            stage1.append(Envelope(flashcard, flashcard.fingerprint, self._clock()))

    def _pop(self, stage: int) -> Envelope:
        if isinstance(stage, bool) or not isinstance(stage, int) or not FIRST_STAGE <= stage <= LAST_STAGE:
            raise StageError(stage)
        queue = self._stages[stage]
        if not queue:
            raise StageError(stage, "no flashcard in stage")
        return queue.popleft()

    def cooldown(self, stage: int) -> int:
        """Cooldown of ``stage`` in milliseconds."""
        return self.cooldowns[stage - 1]

    def next(self) -> Optional[Tuple[Flashcard, int]]:
        """
        Return the next due flashcard and its stage, or ``None``.

        Higher stages are looked at first so that cards close to mastery are
        reviewed as soon as they are due. ``None`` means every remaining card
        still has to cool down.
        """
        now = self._clock()
        for stage in range(LAST_STAGE, FIRST_STAGE - 1, -1):
            queue = self._stages[stage]
            if queue and now - queue[0].timestamp >= self.cooldown(stage):
                return queue[0].flashcard, stage
        return None

    def next_due_in(self) -> Optional[int]:
        """Milliseconds until the next front flashcard is due, ``None`` when empty."""
        now = self._clock()
        waits = [
            max(0, queue[0].timestamp + self.cooldown(stage) - now)
            for stage, queue in enumerate(self._stages)
            if stage >= FIRST_STAGE and queue
        ]
        return min(waits) if waits else None

    def advance(self, stage: int) -> None:
        """Move the front flashcard of ``stage`` one stage up."""
        envelope = self._pop(stage)
        envelope.timestamp = self._clock()
        # flashcards stay in the last stage forever
        self._stages[min(stage + 1, LAST_STAGE)].append(envelope)
        if stage == FIRST_STAGE:
            self._refill()

    def reset(self, stage: int) -> None:
        """Send the front flashcard of ``stage`` back to stage 1."""
        envelope = self._pop(stage)
        envelope.timestamp = self._clock()
        self._stages[FIRST_STAGE].append(envelope)

    def records(self) -> ProgressMap:
        """Progress of every flashcard in stages 1-5."""
        progress: ProgressMap = {}
        for stage in range(FIRST_STAGE, LAST_STAGE + 1):
            for envelope in self._stages[stage]:
                progress[envelope.fingerprint] = StageRecord(stage, envelope.timestamp)
        return progress

    def save(self, path: Union[str, Path]) -> None:
        """
        Replace the progress database with the current state.

        Records of flashcards that are no longer part of the cardbox are
        dropped, unseen cards carry no progress and are not written.
        """
        db.save(self.records(), path)

    def cards(self, stage: int) -> List[Flashcard]:
        """Flashcards of ``stage`` in queue order."""
        if stage == 0:
            return list(self._new)
        return [envelope.flashcard for envelope in self._stages[stage]]

    def envelopes(self, stage: int) -> List[Envelope]:
        return list(self._stages[stage])

    def progress(self) -> StageCounts:
        """The current progress, measured by counting the cards of each stage."""
        return StageCounts(len(self._new), *(len(q) for q in self._stages[1:]))

    def num_active(self) -> int:
        """Number of flashcards in stages 1-5."""
        return sum(len(q) for q in self._stages[1:])

    def size(self) -> int:
        return len(self._new) + self.num_active()
