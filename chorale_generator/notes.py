"""Note value type shared by every stage of the chorale pipeline.

A :class:`Note` is an immutable event with a pitch, start time, duration and
voice.  Times are rational numbers measured in sub-beat units where
``UNIT`` (1000) units equal one beat; plain integers and
:class:`fractions.Fraction` values are both accepted so MIDI ticks can be
converted exactly.

Example
-------
>>> n = Note(60, 0, 1000, 1)
>>> n.end
1000
"""

from __future__ import annotations

from dataclasses import dataclass, replace as _replace
from fractions import Fraction
from typing import Sequence, Union

__all__ = ["Note", "Timeline", "Time", "UNIT", "REST"]

Time = Union[int, Fraction]

# One beat expressed in time units. Every rhythmic test in the package is
# phrased in multiples of this value.
UNIT = 1000

# Pitch ``0`` marks a placeholder event with no sounding pitch. It is never
# transposed and is ignored when computing ranges.
REST = 0


@dataclass(frozen=True)
class Note:
    """Single event in a four-voice texture.

    ``channel`` identifies the voice: ``1`` is the soprano (top) and ``4``
    the bass.
    """

    pitch: int
    start: Time
    duration: Time
    channel: int

    def __post_init__(self) -> None:
        if self.duration < 0:
            raise ValueError(f"duration must be >= 0, got {self.duration}")
        if self.channel <= 0:
            raise ValueError(f"channel must be positive, got {self.channel}")

    @property
    def end(self) -> Time:
        return self.start + self.duration

    def replace(self, **changes) -> "Note":
        """Return a copy of the note with ``changes`` applied."""

        return _replace(self, **changes)


Timeline = Sequence[Note]
