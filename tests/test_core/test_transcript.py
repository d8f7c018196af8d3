"""Tests for transcript reconciliation."""

from __future__ import annotations

import itertools

import pytest

from medvoice.core.transcript import (
    Finality,
    Speaker,
    TranscriptReconciler,
    Utterance,
    apply_chunk,
)

PARTIAL = Finality.PARTIAL
FINAL = Finality.FINAL
USER = Speaker.USER
ASSISTANT = Speaker.ASSISTANT


@pytest.fixture
def reconciler() -> TranscriptReconciler:
    """Reconciler with predictable ids and timestamps."""
    counter = itertools.count(1)
    return TranscriptReconciler(
        id_factory=lambda: f"u{next(counter)}",
        clock=lambda: "10:15:00",
    )


def simplify(log: list[Utterance]) -> list[tuple[str, str, str]]:
    return [(u.speaker.value, u.text, u.finality.value) for u in log]


class TestApplyChunk:
    """Tests for the pure merge function."""

    def test_append_to_empty_log(self) -> None:
        """First chunk starts the log."""
        log = apply_chunk([], USER, "Hello", PARTIAL, id_factory=lambda: "a", clock=lambda: "t")

        assert log == [Utterance(id="a", speaker=USER, text="Hello", timestamp="t")]

    def test_input_not_mutated(self) -> None:
        """The previous log is left untouched."""
        previous = apply_chunk([], USER, "Hi", PARTIAL)
        snapshot = list(previous)

        apply_chunk(previous, USER, "Hi there", FINAL)

        assert previous == snapshot

    def test_text_is_trimmed(self) -> None:
        """Leading and trailing whitespace is removed."""
        log = apply_chunk([], ASSISTANT, "  How can I help?  ", FINAL)
        assert log[0].text == "How can I help?"

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_empty_text_dropped(self, text: str) -> None:
        """Whitespace-only chunks leave the log unchanged."""
        previous = apply_chunk([], USER, "Hi", PARTIAL)

        assert apply_chunk(previous, USER, text, FINAL) == previous

    def test_partial_replaced_in_place(self) -> None:
        """A same-speaker chunk refines the open partial utterance."""
        log = apply_chunk([], USER, "I have", PARTIAL)
        first_id = log[0].id

        log = apply_chunk(log, USER, "I have a headache", PARTIAL)

        assert len(log) == 1
        assert log[0].id == first_id
        assert log[0].text == "I have a headache"
        assert log[0].finality == PARTIAL


class TestTranscriptReconciler:
    """Tests for the per-call utterance log."""

    def test_partial_then_final_then_other_speaker(self, reconciler) -> None:
        """Refined partial closes, then the other speaker opens a new utterance."""
        reconciler.apply(USER, "Hi", PARTIAL)
        reconciler.apply(USER, "Hi there", FINAL)
        log = reconciler.apply(ASSISTANT, "Hello", PARTIAL)

        assert simplify(log) == [
            ("user", "Hi there", "final"),
            ("assistant", "Hello", "partial"),
        ]

    def test_repeated_partial_is_idempotent(self, reconciler) -> None:
        """Identical partial chunks converge to a single utterance."""
        first = reconciler.apply(USER, "my chest", PARTIAL)
        second = reconciler.apply(USER, "my chest", PARTIAL)

        assert first == second
        assert len(reconciler) == 1

    def test_repeated_final_is_idempotent(self, reconciler) -> None:
        """A redelivered final chunk does not duplicate the utterance."""
        reconciler.apply(ASSISTANT, "Tell me more.", FINAL)
        reconciler.apply(ASSISTANT, "Tell me more.", FINAL)

        assert simplify(reconciler.utterances) == [("assistant", "Tell me more.", "final")]

    def test_final_is_immutable(self, reconciler) -> None:
        """A new chunk after a final utterance starts a new one."""
        reconciler.apply(USER, "It hurts.", FINAL)
        reconciler.apply(USER, "Mostly at night", PARTIAL)

        assert simplify(reconciler.utterances) == [
            ("user", "It hurts.", "final"),
            ("user", "Mostly at night", "partial"),
        ]

    def test_other_speaker_does_not_merge_into_partial(self, reconciler) -> None:
        """A superseded partial is left as-is and never revisited."""
        reconciler.apply(USER, "I was", PARTIAL)
        reconciler.apply(ASSISTANT, "Go on", FINAL)
        reconciler.apply(USER, "I was saying", PARTIAL)

        assert simplify(reconciler.utterances) == [
            ("user", "I was", "partial"),
            ("assistant", "Go on", "final"),
            ("user", "I was saying", "partial"),
        ]

    def test_single_open_partial_per_speaker_at_tail(self, reconciler) -> None:
        """Only the last utterance of a speaker run may be partial."""
        for text in ("a", "a b", "a b c"):
            reconciler.apply(USER, text, PARTIAL)
        reconciler.apply(USER, "a b c d", FINAL)
        reconciler.apply(ASSISTANT, "ok", PARTIAL)

        partials = [u for u in reconciler.utterances if not u.is_final]
        assert len(partials) == 1
        assert partials[0] is reconciler.utterances[-1]

    def test_utterances_returns_copy(self, reconciler) -> None:
        """Callers cannot mutate the log through the returned list."""
        reconciler.apply(USER, "Hi", FINAL)
        reconciler.utterances.clear()

        assert len(reconciler) == 1

    def test_reset(self, reconciler) -> None:
        """reset empties the log."""
        reconciler.apply(USER, "Hi", FINAL)
        reconciler.reset()

        assert reconciler.utterances == []

    def test_to_dict_uses_plain_values(self, reconciler) -> None:
        """Serialized utterances carry enum values, not enum members."""
        utterance = reconciler.apply(USER, "Hi", FINAL)[0]

        assert utterance.to_dict() == {
            "id": "u1",
            "speaker": "user",
            "text": "Hi",
            "timestamp": "10:15:00",
            "finality": "final",
        }
