"""Beat segmentation for four-voice textures.

A *beat* is the smallest group of notes that closes cleanly: it ends at the
first point in time where every active voice finishes a note on a beat
boundary (a multiple of :data:`~chorale_generator.notes.UNIT`).  Chorales
written mostly in quarter notes therefore split into one-chord beats, while
suspensions and passing notes that tie across a boundary extend the beat
until the voices line up again.

Example
-------
>>> from chorale_generator.notes import Note
>>> piece = [Note(60, 0, 1000, 1), Note(64, 0, 1000, 2),
...          Note(62, 1000, 1000, 1), Note(67, 1000, 1000, 2)]
>>> [len(b) for b in collect_beats(piece)]
[2, 2]

Design Notes
------------
``collect_beats`` returns a :class:`BeatSequence` rather than a list.  The
sequence is lazy (beats are computed while iterating) but restartable: each
``iter()`` call walks the stored notes again, so a caller may iterate more
than once without re-supplying the input.
"""

from __future__ import annotations

from typing import Iterator, List, Sequence, Tuple

from .note_utils import channel_numbers, get_channel, sort_by_start
from .notes import UNIT, Note, Time

__all__ = [
    "BeatSequence",
    "collect_beats",
    "is_unit_multiple",
    "first_place_where_all_together",
    "break_into_beats",
    "chop",
    "remainder",
    "get_on_beat",
    "on_beat",
    "last_beat_events",
]

Beat = Tuple[Note, ...]


def is_unit_multiple(time: Time) -> bool:
    """Return ``True`` when ``time`` falls on a beat boundary."""

    return round(time) % UNIT == 0


def first_place_where_all_together(notes: Sequence[Note]) -> Time:
    """Return the first time at which all voices end a note together.

    Endpoints of the lowest-numbered voice are tried in note order; the
    first one that lies on a beat boundary and is shared by every other
    voice wins.  When no such point exists the latest end time is returned
    so the final beat absorbs everything that is left.
    """

    voices = [[n.end for n in get_channel(c, notes)] for c in channel_numbers(notes)]
    if not voices:
        raise ValueError("notes must not be empty")
    lead, others = voices[0], [set(v) for v in voices[1:]]
    for point in lead:
        if is_unit_multiple(point) and all(point in ends for ends in others):
            return point
    return max(n.end for n in notes)


class BeatSequence:
    """Restartable, lazily computed sequence of beats over a fixed input."""

    def __init__(self, notes: Sequence[Note]) -> None:
        self._notes: Tuple[Note, ...] = tuple(notes)

    def __iter__(self) -> Iterator[Beat]:
        remaining = list(self._notes)
        while remaining:
            boundary = first_place_where_all_together(remaining)
            beat = tuple(n for n in remaining if n.end <= boundary)
            remaining = [n for n in remaining if n.end > boundary]
            yield beat

    def __repr__(self) -> str:
        return f"BeatSequence({len(self._notes)} notes)"


def collect_beats(notes: Sequence[Note]) -> BeatSequence:
    """Decompose ``notes`` into consecutive beats.

    ``notes`` should be sorted by start time. Every note lands in exactly one
    beat and beats are produced in time order.
    """

    return BeatSequence(notes)


def chop(note: Note) -> List[Note]:
    """Split ``note`` into one-beat pieces, discarding a shorter remainder.

    >>> [p.start for p in chop(Note(48, 20000, 2000, 4))]
    [20000, 21000]
    """

    pieces: List[Note] = []
    start, left = note.start, note.duration
    while left >= UNIT:
        pieces.append(note.replace(start=start, duration=UNIT))
        start += UNIT
        left -= UNIT
    return pieces


def remainder(note: Note) -> List[Note]:
    """Return the trailing part of ``note`` shorter than one beat, if any."""

    whole = (note.duration // UNIT) * UNIT
    if whole == note.duration:
        return []
    return [note.replace(start=note.start + whole, duration=note.duration - whole)]


def _split_at_boundaries(note: Note) -> List[Note]:
    pieces: List[Note] = []
    start, end = note.start, note.end
    while start < end:
        boundary = (start // UNIT + 1) * UNIT
        stop = min(boundary, end)
        pieces.append(note.replace(start=start, duration=stop - start))
        start = stop
    return pieces or [note]


def break_into_beats(notes: Sequence[Note]) -> List[Note]:
    """Break notes into beat-sized groupings.

    Every note is cut at beat boundaries, so a held note becomes a run of
    one-beat notes and a fragment left over after the last full beat stays
    behind as a short note that groups with the next note of its voice.

    Cuts fall on the beat grid, not a whole beat after the note's own start
    the way :func:`chop` measures, so an off-beat note first yields the
    fragment up to the next boundary.

    >>> [(n.start, n.duration) for n in break_into_beats([Note(48, 0, 1500, 4)])]
    [(0, 1000), (1000, 500)]
    >>> [(n.start, n.end) for n in break_into_beats([Note(60, 500, 1500, 1)])]
    [(500, 1000), (1000, 2000)]
    """

    pieces: List[Note] = []
    for note in sort_by_start(notes):
        pieces.extend(_split_at_boundaries(note))
    return sort_by_start(pieces)


def get_on_beat(time: Time, notes: Sequence[Note]) -> List[Note]:
    """Return the leading notes starting at ``time`` when it is on a beat.

    An empty list is returned for off-beat times.
    """

    if not is_unit_multiple(time):
        return []
    chord: List[Note] = []
    for note in notes:
        if note.start != time:
            break
        chord.append(note)
    return chord


def on_beat(time: Time, notes: Sequence[Note]) -> bool:
    """Check that every note starts at ``time`` and ``time`` is on a beat."""

    return is_unit_multiple(time) and all(n.start == time for n in notes)


def last_beat_events(notes: Sequence[Note]) -> List[Note]:
    """Return the final four-note chord of ``notes`` or an empty list.

    The chord qualifies only when exactly four notes share the last start
    time and the first of them lasts a whole number of beats.
    """

    if not notes:
        return []
    ordered = sort_by_start(notes)
    begin = ordered[-1].start
    chord = [n for n in notes if n.start == begin]
    if len(chord) == 4 and is_unit_multiple(chord[0].duration):
        return chord
    return []
