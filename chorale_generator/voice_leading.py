"""Voice-leading observations and parallel-motion detection.

Two concerns live here because both compare a chord with the chord that
follows it voice by voice:

* :func:`get_rules` records, for every pair of voices, the interval between
  them and how each moves into the next chord.  The database stores these
  observations for the whole corpus.
* :func:`uniform_motion` flags a pair of four-voice chords in which every
  voice moves the same way, which the composer rejects at the start of a
  piece.

Example
-------
>>> get_rules("b206b-1", [57, 60, 69, 76], [59, 62, 67, 79])[0]
VoiceLeading(dyad=3, move_low=2, move_high=2, source='b206b-1')

Design Notes
------------
``numpy`` is used to compute motion vectors in bulk; chords are at most a
handful of voices so the arrays stay tiny, but the vectorised form mirrors
how the checks read musically (one difference per voice).
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import List, Sequence

import numpy as np

from .note_utils import reduce_interval

__all__ = ["VoiceLeading", "get_rules", "motion_vector", "uniform_motion", "observation_matrix"]


@dataclass(frozen=True)
class VoiceLeading:
    """Motion of two voices from one chord into the next."""

    dyad: int
    move_low: int
    move_high: int
    source: str


def get_rules(name: str, start: Sequence[int], destination: Sequence[int]) -> List[VoiceLeading]:
    """Extract voice-leading observations from two chords.

    Voices are paired positionally, and one observation is produced for
    every two-voice combination ``(i, j)`` with ``i < j``.  When
    ``destination`` is empty (the last beat of a piece) there is nothing to
    observe and an empty list is returned.

    Parameters
    ----------
    name:
        Identifier of the beat the chords were taken from.
    start:
        Pitches of the starting chord in voice order.
    destination:
        Pitches of the following chord in the same voice order.
    """

    moves = list(zip(start, destination))
    return [
        VoiceLeading(
            dyad=reduce_interval(b - a),
            move_low=c - a,
            move_high=d - b,
            source=name,
        )
        for (a, c), (b, d) in combinations(moves, 2)
    ]


def motion_vector(first: Sequence[int], second: Sequence[int]) -> np.ndarray:
    """Return per-voice differences ``first - second`` as an integer array."""

    return np.asarray(first, dtype=np.int64) - np.asarray(second, dtype=np.int64)


def uniform_motion(first: Sequence[int], second: Sequence[int], *, voices: int = 4) -> bool:
    """Return ``True`` when two full chords move in one direction.

    Both chords must contain exactly ``voices`` pitches.  The differences
    ``first - second`` are then either all non-negative or all negative.
    """

    if len(first) != voices or len(second) != voices:
        return False
    diffs = motion_vector(first, second)
    return bool(np.all(diffs >= 0) or np.all(diffs < 0))


def observation_matrix(observations: Sequence[VoiceLeading]) -> np.ndarray:
    """Stack observations into an ``(n, 3)`` array of dyad and motions."""

    if not observations:
        return np.zeros((0, 3), dtype=np.int64)
    return np.array(
        [(o.dyad, o.move_low, o.move_high) for o in observations], dtype=np.int64
    )
