"""Probabilistic chorale composition by stitching corpus beats together.

Underlying Algorithm
--------------------
A piece is composed in three phases, and any failure restarts the whole
attempt from the beginning:

1. **Opening** – draw a random first beat of some corpus piece and keep it
   only if it opens with a plain four-voice triad of short notes.  The
   opening also fixes the mode (major or minor) the piece must end in.
2. **Chaining** – repeatedly look up the chord the current beat leads into
   and pick one of the corpus beats that starts with exactly that chord.
   After enough beats the chain stops on a beat ending with the tonic
   chord.  A beat with nowhere to go ends the attempt.
3. **Validation** – the chosen beats are re-timed back to back and the
   result is rejected when it is too short or too long, never settles long
   enough before its first held note, or opens with all voices moving in
   the same direction.

The accepted timeline then goes through the finishing pass (cadence
repair, pickup detection, transposition and final-cadence collapse).

Example
-------
>>> db = build_database(pieces)                         # doctest: +SKIP
>>> notes = compose_chorale(db, seed=3)                 # doctest: +SKIP

Design Notes
------------
Rejection sampling has no natural upper bound.  :class:`ChoraleComposer`
counts attempts and raises :class:`AttemptsExhaustedError` once
``config.max_attempts`` is reached; ``None`` keeps the unbounded loop.
Randomness comes only from ``self.rng``, and every random choice is made
from a sorted sequence, so a seed fully determines the output.
"""

from __future__ import annotations

import logging
import random
from itertools import islice
from typing import Callable, List, Literal, Optional, Sequence, Tuple

from .beats import break_into_beats, collect_beats, get_on_beat, last_beat_events
from .config import DEFAULT_CONFIG, ChoraleConfig
from .database import Database, make_name, split_name
from .errors import AttemptsExhaustedError, CompositionError
from .finishing import finish
from .note_utils import (
    chord_name,
    get_channel,
    harmonic_subset,
    pitches,
    set_to_zero,
    shift,
    sort_by_start,
    total_duration,
    voice_order,
)
from .notes import UNIT, Note
from .voice_leading import uniform_motion

__all__ = [
    "Mode",
    "GOOD_OPENINGS",
    "MAJOR_TONIC",
    "MINOR_TONIC",
    "ChoraleComposer",
    "compose_chorale",
    "is_next_in_piece",
    "retime",
    "wait_for_cadence",
    "check_for_parallel",
    "matches_tonic",
]

logger = logging.getLogger(__name__)

Mode = Literal["major", "minor"]
NearDuplicate = Callable[[str, str], bool]

# Pitch-class shapes an opening chord may be drawn from.
GOOD_OPENINGS: Tuple[Tuple[int, ...], ...] = ((0, 4, 8), (0, 4, 7), (0, 5, 8), (2, 7, 11))

MAJOR_TONIC: Tuple[int, ...] = (60, 64, 67)
MINOR_TONIC: Tuple[int, ...] = (60, 63, 67)


def is_next_in_piece(current: str, candidate: str) -> bool:
    """Return ``True`` when ``candidate`` directly follows ``current`` in its piece.

    Used to keep the composer from simply replaying a corpus piece.

    >>> is_next_in_piece("b206b-9", "b206b-10")
    True
    """

    piece, number = split_name(current)
    if number is None:
        return False
    return candidate == make_name(piece, number + 1)


def retime(beats: Sequence[Sequence[Note]]) -> List[List[Note]]:
    """Place ``beats`` back to back starting at time ``0``.

    Each beat is shifted to start where the previous one ended, measured by
    :func:`~chorale_generator.note_utils.total_duration`.
    """

    placed: List[List[Note]] = []
    current = 0
    for beat in beats:
        placed.append(shift(current, set_to_zero(sort_by_start(beat))))
        current += total_duration(beat)
    return placed


def wait_for_cadence(notes: Sequence[Note], *, wait: int = DEFAULT_CONFIG.cadence_wait) -> bool:
    """Check that the piece runs ``wait`` units before its first held note.

    Walking the start-sorted notes, the test succeeds as soon as a note
    starts more than ``wait`` after the first one and fails at the first
    note longer than a beat.
    """

    if not notes:
        return False
    origin = notes[0].start
    for note in notes:
        if note.start > origin + wait:
            return True
        if note.duration > UNIT:
            return False
    return False


def _opening_chords(notes: Sequence[Note], count: int = 2) -> List[List[int]]:
    head = sort_by_start(notes)[:30]
    return [
        pitches(voice_order(get_on_beat(beat[0].start, beat)))
        for beat in islice(collect_beats(head), count)
    ]


def check_for_parallel(notes: Sequence[Note]) -> bool:
    """Return ``True`` if the first two beats move in parallel.

    Both beats must open with a four-note chord, and every voice must move in
    the same direction between them.
    """

    chords = _opening_chords(notes)
    if len(chords) < 2:
        return False
    return uniform_motion(chords[0], chords[1])


def matches_tonic(notes: Sequence[Note], tonic: Sequence[int]) -> bool:
    """Check whether ``notes`` end on the ``tonic`` chord.

    The last aligned four-voice chord (after breaking the notes into beat
    sized pieces) must use only pitch classes of ``tonic``.
    """

    chord = last_beat_events(break_into_beats(notes))
    return bool(chord) and harmonic_subset(pitches(chord), tonic)


class ChoraleComposer:
    """Compose chorales from a :class:`~chorale_generator.database.Database`.

    Parameters
    ----------
    database:
        Corpus index to draw beats from.
    seed:
        Seed for a private :class:`random.Random`. Ignored when ``rng`` is
        supplied.
    rng:
        Random source exposing ``randrange`` and ``choice``.
    config:
        Thresholds; defaults to :data:`~chorale_generator.config.DEFAULT_CONFIG`.
    near_duplicate:
        Predicate ``(current, candidate)`` naming continuations to skip when
        there is more than one choice.
    """

    def __init__(
        self,
        database: Database,
        *,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        config: Optional[ChoraleConfig] = None,
        near_duplicate: NearDuplicate = is_next_in_piece,
    ) -> None:
        if not database.start_beats:
            raise CompositionError("database contains no pieces to compose from")
        self.database = database
        self.rng = rng if rng is not None else random.Random(seed)
        self.config = config or DEFAULT_CONFIG
        self.near_duplicate = near_duplicate
        self.attempts = 0

    # ------------------------------------------------------------------
    # Phase A
    # ------------------------------------------------------------------
    def pick_opening(self) -> Optional[Tuple[str, Mode]]:
        """Draw a start beat and return it with its mode if it is usable."""

        name = self.rng.choice(self.database.start_beats)
        events = self.database.record(name).events
        chord = voice_order(get_on_beat(events[0].start, events))
        chord_pitches = pitches(chord)
        is_good = (
            len(chord) == 4
            and all(n.duration <= UNIT for n in chord)
            and any(harmonic_subset(chord_pitches, triad) for triad in GOOD_OPENINGS)
        )
        if not is_good:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Rejected opening %s (%s)", name, chord_name(chord))
            return None
        mode: Mode = "minor" if harmonic_subset(pitches(events[:4]), MINOR_TONIC) else "major"
        return name, mode

    # ------------------------------------------------------------------
    # Phase B
    # ------------------------------------------------------------------
    def pick_next(self, name: str) -> Optional[str]:
        """Choose the beat that follows ``name`` or ``None`` at a dead end."""

        record = self.database.record(name)
        choices = sorted(self.database.continuations(record.destination_pitches))
        if not choices:
            return None
        if len(choices) == 1:
            return choices[0]
        allowed = [c for c in choices if c != name and not self.near_duplicate(name, c)]
        if not allowed:
            return None
        return self.rng.choice(allowed)

    def _should_stop(self, counter: int, chosen: Sequence[str], mode: Mode) -> bool:
        if counter <= self.config.min_steps:
            return False
        soprano = sum(
            n.duration
            for beat in chosen
            for n in get_channel(1, self.database.record(beat).events)
        )
        if soprano <= UNIT:
            return False
        tonic = MINOR_TONIC if mode == "minor" else MAJOR_TONIC
        return matches_tonic(self.database.record(chosen[-1]).events, tonic)

    def chain(self, name: str, mode: Mode) -> Optional[List[str]]:
        """Extend ``name`` into a full list of beat identifiers.

        Returns ``None`` when the chain runs into a beat with no usable
        continuation.
        """

        chosen = [name]
        counter = 0
        while True:
            record = self.database.record(name)
            if record.is_final:
                logger.debug("Dead end at final beat %s after %d steps", name, counter)
                return None
            if self._should_stop(counter, chosen, mode):
                return chosen
            following = self.pick_next(name)
            if following is None:
                logger.debug("No continuation for %s after %d steps", name, counter)
                return None
            chosen.append(following)
            name = following
            counter += 1

    # ------------------------------------------------------------------
    # Phase C
    # ------------------------------------------------------------------
    def attempt(self) -> Optional[List[Note]]:
        """Run one complete attempt; return the stitched notes or ``None``."""

        opening = self.pick_opening()
        if opening is None:
            return None
        names = self.chain(*opening)
        if names is None:
            return None

        beats = [self.database.record(n).events for n in names]
        notes = [note for beat in retime(beats) for note in beat]
        end = notes[-1].end
        if end < self.config.min_length or end > self.config.max_length:
            logger.debug("Rejected %d beats: length %s out of bounds", len(names), end)
            return None
        if not wait_for_cadence(notes, wait=self.config.cadence_wait):
            logger.debug("Rejected %d beats: held note too early", len(names))
            return None
        if check_for_parallel(notes):
            logger.debug("Rejected %d beats: parallel opening", len(names))
            return None
        return notes

    def compose_unfinished(self) -> List[Note]:
        """Retry :meth:`attempt` until one passes validation.

        Raises
        ------
        AttemptsExhaustedError
            If ``config.max_attempts`` attempts all fail.
        """

        limit = self.config.max_attempts
        self.attempts = 0
        while limit is None or self.attempts < limit:
            self.attempts += 1
            notes = self.attempt()
            if notes is not None:
                logger.info("Accepted chorale after %d attempt(s)", self.attempts)
                return notes
        logger.error("Giving up after %d attempts", self.attempts)
        raise AttemptsExhaustedError(self.attempts)

    def compose(self) -> List[Note]:
        """Compose and finish a chorale."""

        return finish(self.compose_unfinished(), self.config)


def compose_chorale(
    database: Database,
    seed: Optional[int] = None,
    *,
    config: Optional[ChoraleConfig] = None,
    near_duplicate: NearDuplicate = is_next_in_piece,
) -> List[Note]:
    """Return a finished chorale composed from ``database``.

    The same ``seed`` and database always produce the same notes.
    """

    composer = ChoraleComposer(
        database, seed=seed, config=config, near_duplicate=near_duplicate
    )
    return composer.compose()
