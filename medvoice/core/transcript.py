"""Transcript reconciliation for live, incrementally refined speech.

The voice SDK streams transcript chunks per speaker. Partial chunks are
provisional and refine the speaker's open utterance in place; a final chunk
closes it. ``apply_chunk`` is a pure function over (previous log, chunk) so
the merge rules can be tested without any timer or socket in the way.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any


class Speaker(str, Enum):
    """Who produced an utterance."""

    ASSISTANT = "assistant"
    USER = "user"


class Finality(str, Enum):
    """Transcript chunk finality marker."""

    PARTIAL = "partial"
    FINAL = "final"


@dataclass(frozen=True, slots=True)
class Utterance:
    """One coherent unit of speech by one speaker."""

    id: str
    speaker: Speaker
    text: str
    timestamp: str  # wall-clock time the utterance was first heard
    finality: Finality = Finality.PARTIAL

    @property
    def is_final(self) -> bool:
        return self.finality == Finality.FINAL

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the report collaborator and WebSocket frames."""
        data = asdict(self)
        data["speaker"] = self.speaker.value
        data["finality"] = self.finality.value
        return data


def new_utterance_id() -> str:
    return uuid.uuid4().hex


def wall_clock() -> str:
    return datetime.now().strftime("%H:%M:%S")


def apply_chunk(
    log: Sequence[Utterance],
    speaker: Speaker,
    text: str,
    finality: Finality,
    *,
    id_factory: Callable[[], str] = new_utterance_id,
    clock: Callable[[], str] = wall_clock,
) -> list[Utterance]:
    """Merge one transcript chunk into the log and return the new log.

    Rules:
    - Text is trimmed; empty text leaves the log unchanged.
    - If the last utterance belongs to the same speaker and is still partial,
      the chunk replaces its text (and closes it when the chunk is final).
    - A duplicate of the last final utterance (same speaker and text) is
      dropped, so redelivered final chunks converge.
    - Anything else starts a new utterance. A partial utterance superseded by
      another speaker's turn is left as-is and never revisited.

    The input sequence is never mutated.
    """
    cleaned = text.strip()
    if not cleaned:
        return list(log)

    updated = list(log)
    last = updated[-1] if updated else None

    if last is not None and last.speaker == speaker:
        if not last.is_final:
            if last.text == cleaned and last.finality == finality:
                return updated
            updated[-1] = replace(last, text=cleaned, finality=finality)
            return updated

        if finality == Finality.FINAL and last.text == cleaned:
            return updated

    updated.append(
        Utterance(
            id=id_factory(),
            speaker=speaker,
            text=cleaned,
            timestamp=clock(),
            finality=finality,
        )
    )
    return updated


class TranscriptReconciler:
    """Holds the ordered utterance log for one call.

    Chunks are applied strictly in delivery order; nothing is buffered or
    reordered.
    """

    def __init__(
        self,
        *,
        id_factory: Callable[[], str] = new_utterance_id,
        clock: Callable[[], str] = wall_clock,
    ) -> None:
        self._log: list[Utterance] = []
        self._id_factory = id_factory
        self._clock = clock

    def apply(self, speaker: Speaker, text: str, finality: Finality) -> list[Utterance]:
        self._log = apply_chunk(
            self._log,
            speaker,
            text,
            finality,
            id_factory=self._id_factory,
            clock=self._clock,
        )
        return self.utterances

    def reset(self) -> None:
        self._log = []

    @property
    def utterances(self) -> list[Utterance]:
        """Copy of the current log."""
        return list(self._log)

    def __len__(self) -> int:
        return len(self._log)
