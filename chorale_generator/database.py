"""Corpus database of beats and their possible continuations.

:func:`build_database` decomposes every piece of a corpus into beats and
records, for each beat, the chord it starts with and the chord that follows
it in the source piece.  The *lexicon* indexes beats by their exact
starting chord (pitches in voice order), so a beat's possible successors are
simply ``lexicon[beat.destination_pitches]``.

Example
-------
>>> from chorale_generator.notes import Note
>>> piece = [Note(60, 0, 1000, 1), Note(64, 0, 1000, 2),
...          Note(62, 1000, 1000, 1), Note(67, 1000, 1000, 2)]
>>> db = build_database([("toy", piece)])
>>> db.record("toy-1").destination_pitches
(62, 67)
>>> sorted(db.lexicon[(62, 67)])
['toy-2']

Design Notes
------------
The database is built once per session and never changes afterwards.
Mappings are exposed through :class:`types.MappingProxyType` and lexicon
entries are frozensets, so composing cannot alter it by accident.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

import numpy as np

from .beats import collect_beats
from .note_utils import onset_notes, pitches, set_to_zero, sort_by_start, voice_order
from .notes import Note, Time, Timeline
from .voice_leading import VoiceLeading, get_rules, observation_matrix

__all__ = [
    "BeatRecord",
    "Database",
    "build_database",
    "make_name",
    "split_name",
    "EMPTY_DATABASE",
]

logger = logging.getLogger(__name__)

Pitches = Tuple[int, ...]


def make_name(piece: str, counter: int) -> str:
    """Return the identifier of beat ``counter`` (1-based) in ``piece``."""

    return f"{piece}-{counter}"


def split_name(name: str) -> Tuple[str, Optional[int]]:
    """Split a beat identifier into piece name and beat number.

    The number is ``None`` when the identifier has no numeric suffix.

    >>> split_name("b206b-12")
    ('b206b', 12)
    """

    piece, sep, suffix = name.rpartition("-")
    if not sep or not suffix.isdigit():
        return name, None
    return piece, int(suffix)


@dataclass(frozen=True)
class BeatRecord:
    """A beat of the corpus together with what surrounds it."""

    name: str
    events: Tuple[Note, ...]
    start_pitches: Pitches
    destination_pitches: Pitches
    voice_leading: Tuple[VoiceLeading, ...]
    start_time: Time = 0

    @property
    def is_final(self) -> bool:
        """``True`` for the last beat of a piece (nothing follows it)."""

        return not self.destination_pitches


@dataclass(frozen=True)
class Database:
    """Read-only index over a decomposed corpus."""

    compose_beats: Tuple[str, ...] = ()
    start_beats: Tuple[str, ...] = ()
    voice_leading: Tuple[VoiceLeading, ...] = ()
    beats: Mapping[str, BeatRecord] = field(default_factory=lambda: MappingProxyType({}))
    lexicon: Mapping[Pitches, FrozenSet[str]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __len__(self) -> int:
        return len(self.compose_beats)

    def __contains__(self, name: object) -> bool:
        return name in self.beats

    def record(self, name: str) -> BeatRecord:
        """Return the record for ``name``; unknown names raise ``KeyError``."""

        return self.beats[name]

    def continuations(self, pitch_list: Iterable[int]) -> FrozenSet[str]:
        """Return the beats starting with exactly ``pitch_list``."""

        return self.lexicon.get(tuple(pitch_list), frozenset())

    def observation_matrix(self) -> np.ndarray:
        """Return all voice-leading observations as an ``(n, 3)`` array."""

        return observation_matrix(self.voice_leading)


EMPTY_DATABASE = Database()


class _Builder:
    """Mutable accumulator used while folding pieces into a database."""

    def __init__(self) -> None:
        self.compose_beats: List[str] = []
        self.start_beats: List[str] = []
        self.voice_leading: List[VoiceLeading] = []
        self.beats: Dict[str, BeatRecord] = {}
        self.lexicon: Dict[Pitches, Set[str]] = {}
        self.pieces: Set[str] = set()

    def add_piece(self, piece: str, notes: Timeline) -> int:
        if piece in self.pieces:
            logger.warning("Skipping duplicate piece %r", piece)
            return 0
        if not notes:
            logger.debug("Skipping empty piece %r", piece)
            return 0
        self.pieces.add(piece)

        beats = [b for b in collect_beats(set_to_zero(sort_by_start(notes))) if b]
        successors = beats[1:] + [()]
        for counter, (beat, following) in enumerate(zip(beats, successors), start=1):
            name = make_name(piece, counter)
            if name in self.beats:
                # A piece named like "x-1" can collide with beats of piece "x".
                logger.warning("Skipping beat %r: identifier already in use", name)
                continue
            start = tuple(pitches(voice_order(onset_notes(beat))))
            destination = tuple(pitches(voice_order(onset_notes(following))))
            rules = tuple(get_rules(name, start, destination))
            record = BeatRecord(
                name=name,
                events=tuple(beat),
                start_pitches=start,
                destination_pitches=destination,
                voice_leading=rules,
                start_time=beat[0].start,
            )
            self.compose_beats.append(name)
            if counter == 1:
                self.start_beats.append(name)
            self.voice_leading.extend(rules)
            self.beats[name] = record
            self.lexicon.setdefault(start, set()).add(name)
        return len(beats)

    def freeze(self) -> Database:
        return Database(
            compose_beats=tuple(self.compose_beats),
            start_beats=tuple(self.start_beats),
            voice_leading=tuple(self.voice_leading),
            beats=MappingProxyType(dict(self.beats)),
            lexicon=MappingProxyType({k: frozenset(v) for k, v in self.lexicon.items()}),
        )


def build_database(pieces: Iterable[Tuple[str, Timeline]]) -> Database:
    """Create a complete database from ``(name, notes)`` pairs.

    Each piece is sorted, shifted to start at zero and segmented into beats.
    Beat ``i`` of piece ``p`` is stored as ``"p-i"``; the first beat of
    every piece is also listed in :attr:`Database.start_beats`.  Pieces
    without notes contribute nothing.

    Parameters
    ----------
    pieces:
        Iterable of ``(piece name, notes)`` pairs in the order they should
        be indexed.

    Returns
    -------
    Database
        Immutable index over every beat in the corpus.
    """

    builder = _Builder()
    piece_count = 0
    for piece, notes in pieces:
        if builder.add_piece(piece, notes):
            piece_count += 1
    database = builder.freeze()
    logger.info(
        "Indexed %d beats from %d pieces (%d lexicon entries, %d voice-leading observations)",
        len(database),
        piece_count,
        len(database.lexicon),
        len(database.voice_leading),
    )
    return database
