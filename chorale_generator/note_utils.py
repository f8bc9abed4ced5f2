"""Pitch and timeline helpers used throughout the chorale pipeline.

This module groups the small, pure functions that every other component
relies on: interval reduction, pitch-class sets, triad recognition, voice
filtering, transposition and time-window selection.  None of them mutate
their input; each returns a new list.

Example
-------
>>> from chorale_generator.note_utils import is_triad, reduce_interval
>>> is_triad([64, 67, 72])
True
>>> reduce_interval(-19)
-7
"""

# Modification Summary
# ---------------------
# * Replaced the note-name parser with pitch-class helpers; names are only
#   produced for log output through ``midi_to_note``.
# * ``midi_to_note`` accepts any integer pitch so chords outside the usual
#   vocal range still render in debug logs; negatives print as numbers.
# * ``voice_order`` lines simultaneous notes up soprano first so chords
#   compare element by element whatever order a corpus file lists them in.
# * Added half-open region helpers (``get_region``/``remove_region``) so the
#   cadence pass can splice resolved chords into a timeline.

from __future__ import annotations

import logging
from typing import FrozenSet, Iterable, List, Sequence, Tuple

from .notes import REST, Note, Time

__all__ = [
    "NOTES",
    "midi_to_note",
    "chord_name",
    "reduce_interval",
    "pitch_class_set",
    "inversions",
    "is_third",
    "is_triad",
    "harmonic_subset",
    "sort_by_start",
    "voice_order",
    "onset_notes",
    "pitches",
    "channel_numbers",
    "get_channel",
    "get_other_channels",
    "transpose",
    "clear_to",
    "get_region",
    "remove_region",
    "set_to_zero",
    "shift",
    "total_duration",
    "find_closest",
]

# Sharp spellings for each pitch class (0 == C).
NOTES: List[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]


def midi_to_note(pitch: int) -> str:
    """Convert a pitch number into a note name using sharps.

    Examples
    --------
    >>> midi_to_note(60)
    'C4'
    >>> midi_to_note(0)
    'rest'

    Negative pitches have no name and are shown as plain numbers.
    """

    if pitch < 0:
        return str(pitch)
    if pitch == REST:
        return "rest"
    octave = pitch // 12 - 1
    return f"{NOTES[pitch % 12]}{octave}"


def chord_name(notes: Iterable[Note]) -> str:
    """Return a compact ``"C4-E4-G4"`` style label for logging."""

    return "-".join(midi_to_note(n.pitch) for n in notes)


def reduce_interval(interval: int) -> int:
    """Fold ``interval`` into ``[-12, 12]`` keeping its direction.

    Compound intervals lose whole octaves until they fit, so ``19`` (a
    twelfth) becomes ``7`` and ``-19`` becomes ``-7``.  Exact octaves stay
    at ``12``/``-12``.
    """

    if abs(interval) <= 12:
        return interval
    reduced = abs(interval) % 12 or 12
    return reduced if interval > 0 else -reduced


def pitch_class_set(pitch_list: Iterable[int]) -> FrozenSet[int]:
    """Return the set of pitch classes (pitch modulo 12) in ``pitch_list``."""

    return frozenset(p % 12 for p in pitch_list)


def inversions(pitch_list: Sequence[int]) -> List[List[int]]:
    """List every rotation of a chord.

    Each rotation moves the lowest members up by an octave.

    >>> inversions([0, 4, 7])
    [[0, 4, 7], [4, 7, 12], [7, 12, 16]]
    """

    items = list(pitch_list)
    return [items[i:] + [p + 12 for p in items[:i]] for i in range(len(items))]


def is_third(interval: int) -> bool:
    """Return ``True`` for a minor or major third."""

    return interval in (3, 4)


def is_triad(pitch_list: Iterable[int]) -> bool:
    """Test whether the pitches form a triad in any inversion.

    Major, minor, diminished and augmented triads are recognised. Doubled
    pitches are ignored because the test runs on the pitch-class set.
    """

    classes = sorted(pitch_class_set(pitch_list))

    def is_root_position(chord: List[int]) -> bool:
        return len(chord) == 3 and is_third(chord[1] - chord[0]) and is_third(chord[2] - chord[1])

    return any(is_root_position(chord) for chord in inversions(classes))


def harmonic_subset(xs: Iterable[int], ys: Iterable[int]) -> bool:
    """Return ``True`` if the pitch classes of ``xs`` all occur in ``ys``."""

    return pitch_class_set(xs) <= pitch_class_set(ys)


def sort_by_start(notes: Iterable[Note]) -> List[Note]:
    """Stable sort by start time; simultaneous notes keep their order."""

    return sorted(notes, key=lambda n: n.start)


def voice_order(notes: Iterable[Note]) -> List[Note]:
    """Order simultaneous notes by voice, soprano (channel 1) first."""

    return sorted(notes, key=lambda n: n.channel)


def onset_notes(notes: Sequence[Note]) -> List[Note]:
    """Return the notes starting together with the first note."""

    if not notes:
        return []
    onset = notes[0].start
    return [n for n in notes if n.start == onset]


def pitches(notes: Iterable[Note]) -> List[int]:
    return [n.pitch for n in notes]


def channel_numbers(notes: Iterable[Note]) -> List[int]:
    """Return the distinct voices present in ``notes`` in ascending order."""

    return sorted({n.channel for n in notes})


def get_channel(channel: int, notes: Iterable[Note]) -> List[Note]:
    """Return all notes played by ``channel``."""

    return [n for n in notes if n.channel == channel]


def get_other_channels(channel: int, notes: Iterable[Note]) -> List[Note]:
    """Return all notes *not* played by ``channel``."""

    return [n for n in notes if n.channel != channel]


def transpose(interval: int, notes: Iterable[Note]) -> List[Note]:
    """Shift every pitch by ``interval`` semitones.

    Notes carrying the :data:`~chorale_generator.notes.REST` sentinel keep
    pitch ``0``.
    """

    return [n if n.pitch == REST else n.replace(pitch=n.pitch + interval) for n in notes]


def clear_to(time: Time, notes: Iterable[Note]) -> List[Note]:
    """Drop every note that starts at or before ``time``."""

    return [n for n in notes if n.start > time]


def get_region(region: Tuple[Time, Time], notes: Iterable[Note]) -> List[Note]:
    """Return the notes starting inside the half-open ``[t1, t2)`` window."""

    t1, t2 = region
    return [n for n in notes if t1 <= n.start < t2]


def remove_region(region: Tuple[Time, Time], notes: Iterable[Note]) -> List[Note]:
    """Return the notes starting outside the half-open ``[t1, t2)`` window."""

    t1, t2 = region
    return [n for n in notes if not t1 <= n.start < t2]


def shift(delta: Time, notes: Iterable[Note]) -> List[Note]:
    """Move every note ``delta`` units later (earlier when negative)."""

    return [n.replace(start=n.start + delta) for n in notes]


def set_to_zero(notes: Sequence[Note]) -> List[Note]:
    """Shift ``notes`` so the first one starts at time ``0``.

    The first element is taken as the reference, so callers pass
    start-sorted input.
    """

    if not notes:
        return []
    return shift(-notes[0].start, notes)


def total_duration(notes: Sequence[Note]) -> Time:
    """Return the span from the earliest start to the latest end."""

    if not notes:
        return 0
    return max(n.end for n in notes) - min(n.start for n in notes)


def find_closest(target: Time, values: Iterable[Time]) -> Time:
    """Return the member of ``values`` nearest to ``target``.

    The first of several equally close values wins.
    """

    items = list(values)
    if not items:
        logging.error("find_closest called without candidates")
        raise ValueError("values must not be empty")
    return min(items, key=lambda v: abs(v - target))
