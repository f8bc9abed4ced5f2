"""Cadence detection and repair for stitched chorales.

A stitched chorale can run for a long time without a clean, fully aligned
chord, which sounds like a phrase that never breathes.  This module finds
the *clean chords* already present (every voice attacks together with a
quarter or half note) and, wherever two of them lie more than three
measures apart, turns a suitable triad near the middle of that stretch into
a cadence by holding it for a full beat.

Example
-------
>>> repaired = ensure_necessary_cadences(notes)         # doctest: +SKIP
"""

from __future__ import annotations

from fractions import Fraction
from typing import List, Optional, Sequence, Tuple

from .beats import collect_beats, on_beat
from .config import DEFAULT_CONFIG
from .note_utils import (
    clear_to,
    find_closest,
    get_region,
    is_triad,
    onset_notes,
    pitches,
    remove_region,
    sort_by_start,
)
from .notes import UNIT, Note, Time

__all__ = [
    "find_with_duration",
    "distance_to_cadence",
    "find_cadence_start_times",
    "get_long_phrases",
    "find_cadence_places",
    "resolve",
    "discover_cadence",
    "discover_cadences",
    "ensure_necessary_cadences",
]

Phrase = Tuple[Time, Time]

VOICES = (1, 2, 3, 4)


def find_with_duration(duration: Time, notes: Sequence[Note]) -> Optional[Time]:
    """Return the first onset where every voice attacks a ``duration`` note.

    Starting from each note in turn, the first remaining note of every
    voice present must begin at that note's start time and last exactly
    ``duration``.
    """

    for index in range(len(notes)):
        onset = notes[index].start
        leads = _first_of_each_voice(notes, index)
        if all(n.start == onset and n.duration == duration for n in leads):
            return onset
    return None


def _first_of_each_voice(notes: Sequence[Note], index: int) -> List[Note]:
    leads = {}
    for note in notes[index:]:
        if note.channel in VOICES and note.channel not in leads:
            leads[note.channel] = note
            if len(leads) == len(VOICES):
                break
    return list(leads.values())


def distance_to_cadence(notes: Sequence[Note]) -> Optional[Time]:
    """Return the nearer of the next quarter-note and half-note clean chords."""

    found = [
        t
        for t in (find_with_duration(UNIT, notes), find_with_duration(2 * UNIT, notes))
        if t is not None
    ]
    return min(found) if found else None


def find_cadence_start_times(notes: Sequence[Note]) -> List[Time]:
    """Find every time where the notes form a well separated chord.

    Such chords contain no held or passing notes, only quarter or half
    notes attacked together.  ``notes`` must be sorted by start time.
    """

    times: List[Time] = []
    rest = list(notes)
    while rest:
        found = distance_to_cadence(rest)
        if found is None:
            break
        times.append(found)
        rest = clear_to(found, rest)
    return times


def get_long_phrases(times: Sequence[Time], *, longest: int = DEFAULT_CONFIG.long_phrase) -> List[Phrase]:
    """Return consecutive pairs of ``times`` further apart than ``longest``."""

    return [(x, y) for x, y in zip(times, times[1:]) if y - x > longest]


def find_cadence_places(notes: Sequence[Note]) -> List[Time]:
    """Return onsets of beats that could be turned into a cadence.

    A beat qualifies when its first four notes form a triad attacked
    together on the beat and none of its notes last beyond one beat.
    """

    places: List[Time] = []
    for beat in collect_beats(notes):
        onset = beat[0].start
        chord = beat[:4]
        if (
            on_beat(onset, chord)
            and is_triad(pitches(chord))
            and all(n.end - onset <= UNIT for n in beat)
        ):
            places.append(onset)
    return places


def resolve(notes: Sequence[Note]) -> List[Note]:
    """Keep the onset chord of ``notes`` and hold short notes for a full beat."""

    return [n if n.duration >= UNIT else n.replace(duration=UNIT) for n in onset_notes(notes)]


def discover_cadence(phrase: Phrase, notes: Sequence[Note]) -> List[Note]:
    """Resolve a cadence within ``phrase`` if a suitable beat exists.

    The qualifying beat closest to the middle of the phrase is resolved and
    replaces whatever started in its one-beat window.  Without a
    qualifying beat ``notes`` is returned unchanged.
    """

    start, stop = phrase
    relevant = get_region(phrase, notes)
    places = find_cadence_places(relevant) if relevant else []
    if not places:
        return list(notes)
    position = find_closest(Fraction(start + stop, 2), places)
    window = (position, position + UNIT)
    return sort_by_start(resolve(get_region(window, relevant)) + remove_region(window, notes))


def discover_cadences(phrases: Sequence[Phrase], notes: Sequence[Note]) -> List[Note]:
    """Apply :func:`discover_cadence` to each phrase in turn."""

    result = list(notes)
    for phrase in phrases:
        result = discover_cadence(phrase, result)
    return result


def ensure_necessary_cadences(
    notes: Sequence[Note], *, longest: int = DEFAULT_CONFIG.long_phrase
) -> List[Note]:
    """Interrupt phrases longer than ``longest`` with a full chord.

    ``notes`` must be sorted by start time.  The piece start counts as a
    phrase boundary even when it is not itself a clean chord.
    """

    times = find_cadence_start_times(notes)
    if not times or times[0] != 0:
        times = [0] + times
    return discover_cadences(get_long_phrases(times, longest=longest), notes)
