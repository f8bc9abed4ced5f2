"""Finishing pass applied to an accepted chorale.

After composition the piece is cleaned up in four steps:

1. :func:`~chorale_generator.cadence.ensure_necessary_cadences` breaks up
   phrases that run too long without a clean chord.
2. :func:`fix_up_beat` treats a piece that does not open on the tonic as
   starting with a pickup and delays it accordingly.
3. :func:`transpose_to_range` centres the pitches between the bass floor
   and soprano ceiling.
4. :func:`cadence_collapse` shortens held four-voice half-note chords to
   quarter notes so the closing chord has no offbeats.
"""

# Modification Summary
# ---------------------
# * ``transpose_to_range`` ignores rest sentinels when measuring the range so
#   placeholder events do not drag the piece upwards.
# * ``cadence_collapse`` requires all four notes of a beat to be simultaneous
#   half notes, which keeps a second pass over its own output a no-op.

from __future__ import annotations

import logging
from fractions import Fraction
from typing import List, Optional, Sequence

from .beats import collect_beats, get_on_beat
from .cadence import ensure_necessary_cadences
from .config import DEFAULT_CONFIG, ChoraleConfig
from .note_utils import (
    get_channel,
    harmonic_subset,
    pitches,
    set_to_zero,
    shift,
    sort_by_start,
    transpose,
)
from .notes import REST, UNIT, Note

__all__ = [
    "check_tonic_start",
    "delay_for_upbeat",
    "fix_up_beat",
    "range_interval",
    "transpose_to_range",
    "cadence_collapse",
    "finish",
]

logger = logging.getLogger(__name__)


def check_tonic_start(chord: Sequence[Note]) -> bool:
    """Return ``True`` if ``chord`` is a C major or C minor triad over C.

    The pitch classes must fit a tonic triad and the bass (voice 4) must
    sound the root.  A chord without a bass note is not a tonic.
    """

    chord_pitches = pitches(chord)
    if not chord_pitches:
        return False
    if not (harmonic_subset(chord_pitches, [0, 4, 7]) or harmonic_subset(chord_pitches, [0, 3, 7])):
        return False
    bass = get_channel(4, sort_by_start(chord))
    return bool(bass) and bass[0].pitch % 12 == 0


def delay_for_upbeat(notes: Sequence[Note], *, delay: int = DEFAULT_CONFIG.upbeat_delay) -> List[Note]:
    """Restart ``notes`` at time ``delay`` so the opening acts as a pickup."""

    return shift(delay, set_to_zero(notes))


def fix_up_beat(notes: Sequence[Note], *, delay: int = DEFAULT_CONFIG.upbeat_delay) -> List[Note]:
    """Delay pieces that do not begin on the tonic.

    Such a piece really begins with an upbeat, so its pitches are left alone
    and the timing is shifted instead.
    """

    if not notes:
        return []
    if check_tonic_start(get_on_beat(notes[0].start, notes)):
        return list(notes)
    logger.debug("Opening is not a tonic chord; delaying by %d", delay)
    return delay_for_upbeat(notes, delay=delay)


def range_interval(
    notes: Sequence[Note],
    *,
    low: int = DEFAULT_CONFIG.range_low,
    high: int = DEFAULT_CONFIG.range_high,
) -> int:
    """Return the transposition centring ``notes`` between ``low`` and ``high``.

    The margins below the lowest and above the highest pitch are averaged;
    halves round to the nearest even number.
    """

    sounding = [p for p in pitches(notes) if p != REST]
    if not sounding:
        return 0
    return round(Fraction((high - max(sounding)) + (low - min(sounding)), 2))


def transpose_to_range(
    notes: Sequence[Note],
    *,
    low: int = DEFAULT_CONFIG.range_low,
    high: int = DEFAULT_CONFIG.range_high,
) -> List[Note]:
    """Transpose ``notes`` into the customary four-voice vocal range."""

    return transpose(range_interval(notes, low=low, high=high), notes)


def _is_held_chord(beat: Sequence[Note]) -> bool:
    return (
        len(beat) == 4
        and all(n.start == beat[0].start for n in beat)
        and all(n.duration == 2 * UNIT for n in beat)
    )


def cadence_collapse(notes: Sequence[Note]) -> List[Note]:
    """Shorten four-voice half-note chords to quarter notes.

    Every beat after a shortened chord moves one beat earlier so the
    timeline stays contiguous.  Applying the function twice gives the same
    result as applying it once.
    """

    result: List[Note] = []
    offset = 0
    for beat in collect_beats(sort_by_start(notes)):
        moved = shift(-offset, beat) if offset else list(beat)
        if _is_held_chord(beat):
            moved = [n.replace(duration=UNIT) for n in moved]
            offset += UNIT
        result.extend(moved)
    return result


def finish(notes: Sequence[Note], config: Optional[ChoraleConfig] = None) -> List[Note]:
    """Run the complete finishing pass over an accepted chorale."""

    config = config or DEFAULT_CONFIG
    ordered = sort_by_start(notes)
    repaired = ensure_necessary_cadences(ordered, longest=config.long_phrase)
    opened = fix_up_beat(repaired, delay=config.upbeat_delay)
    centred = transpose_to_range(opened, low=config.range_low, high=config.range_high)
    return cadence_collapse(centred)
