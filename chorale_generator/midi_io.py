"""Reading corpus pieces from and writing chorales to MIDI files.

Modification summary
--------------------
* ``write_midi`` writes one track per voice so notation software shows the
  four parts separately; voice ``n`` uses MIDI channel ``n - 1``.
* ``read_midi`` assigns voices by average pitch (highest part first) so
  files whose tracks are stored bass-first still load with the soprano as
  voice 1.
* Imports from ``mido`` are deferred inside both helpers so the core
  modules load without it; a broken install is reported with the
  ``pip install mido`` hint when a MIDI helper is called.
* ``write_midi`` creates the destination directory automatically and
  returns the ``MidiFile`` for inspection in tests.

Times inside the package are measured in units of ``1000`` per beat, while
MIDI files count ``ticks_per_beat`` ticks per beat.  Reading converts ticks
to exact :class:`fractions.Fraction` values; writing rounds back to whole
ticks.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from fractions import Fraction
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Sequence, Tuple, Union

from .note_utils import sort_by_start
from .notes import REST, UNIT, Note

if TYPE_CHECKING:
    # ``MidiFile`` is only needed for type checking; ``mido`` itself is
    # imported when a MIDI helper runs.
    from mido import MidiFile

__all__ = ["read_midi", "write_midi", "MAX_VOICES"]

logger = logging.getLogger(__name__)

MAX_VOICES = 4


def _import_mido():
    try:
        import mido
    except ModuleNotFoundError as exc:
        raise ImportError(
            "mido is required to read or write MIDI files; install it with 'pip install mido'"
        ) from exc
    return mido


def read_midi(path: Union[str, Path]) -> List[Note]:
    """Load a four-part piece from the MIDI file at ``path``.

    Every ``(track, channel)`` pair holding notes is treated as one part.
    Parts are ranked by average pitch and the highest becomes voice ``1``.
    Files with more than :data:`MAX_VOICES` parts keep the four highest.

    Returns
    -------
    List[Note]
        Notes sorted by start time.
    """

    mido = _import_mido()
    mid = mido.MidiFile(str(path))
    tpb = mid.ticks_per_beat
    parts: Dict[Tuple[int, int], List[Tuple[int, int, int]]] = defaultdict(list)

    for track_index, track in enumerate(mid.tracks):
        tick = 0
        sounding: Dict[Tuple[int, int], List[int]] = defaultdict(list)
        for msg in track:
            tick += msg.time
            if msg.type not in ("note_on", "note_off"):
                continue
            key = (msg.channel, msg.note)
            if msg.type == "note_on" and msg.velocity > 0:
                sounding[key].append(tick)
            elif sounding[key]:
                begin = sounding[key].pop(0)
                if tick > begin:
                    parts[(track_index, msg.channel)].append((msg.note, begin, tick))
        for (channel, note), begins in sounding.items():
            if begins:
                logger.debug("Dropping %d unterminated note(s) %d on channel %d", len(begins), note, channel)

    ranked = sorted(
        parts.items(),
        key=lambda item: sum(p for p, _, _ in item[1]) / len(item[1]),
        reverse=True,
    )
    if len(ranked) > MAX_VOICES:
        logger.warning("%s has %d parts; keeping the highest %d", path, len(ranked), MAX_VOICES)

    notes: List[Note] = []
    for voice, (_, events) in enumerate(ranked[:MAX_VOICES], start=1):
        for pitch, begin, end in events:
            notes.append(
                Note(
                    pitch=pitch,
                    start=Fraction(begin * UNIT, tpb),
                    duration=Fraction((end - begin) * UNIT, tpb),
                    channel=voice,
                )
            )
    return sort_by_start(notes)


def _to_ticks(time, ticks_per_beat: int) -> int:
    return round(Fraction(time) * ticks_per_beat / UNIT)


def write_midi(
    notes: Sequence[Note],
    output_file: Union[str, Path],
    *,
    bpm: int = 90,
    time_signature: Tuple[int, int] = (4, 4),
    program: int = 19,
    ticks_per_beat: int = 480,
) -> "MidiFile":
    """Write ``notes`` to ``output_file`` as a multi-track MIDI file.

    Parameters
    ----------
    notes:
        Finished chorale. Rest sentinels (pitch ``0``) are not written.
    output_file:
        Destination path; missing parent directories are created.
    bpm:
        Tempo in beats per minute. Must be positive.
    time_signature:
        Meter written to the conductor track.
    program:
        General MIDI program used by every voice (church organ by default).
    ticks_per_beat:
        File resolution.

    Returns
    -------
    MidiFile
        In-memory representation of the written file.
    """

    mido = _import_mido()
    if bpm <= 0:
        raise ValueError("bpm must be a positive integer")
    if not 0 <= program <= 127:
        raise ValueError("program must be between 0 and 127")

    mid = mido.MidiFile(ticks_per_beat=ticks_per_beat)
    conductor = mido.MidiTrack()
    mid.tracks.append(conductor)
    conductor.append(mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(bpm)))
    conductor.append(
        mido.MetaMessage(
            "time_signature", numerator=time_signature[0], denominator=time_signature[1]
        )
    )

    voices = sorted({n.channel for n in notes})
    for voice in voices:
        channel = (voice - 1) % 16
        track = mido.MidiTrack()
        mid.tracks.append(track)
        track.append(mido.Message("program_change", program=program, channel=channel, time=0))

        # Absolute (tick, order, message) triples; note_off sorts before
        # note_on at the same tick so repeated pitches re-attack cleanly.
        events: List[Tuple[int, int, object]] = []
        for note in notes:
            if note.channel != voice or note.pitch == REST:
                continue
            on = _to_ticks(note.start, ticks_per_beat)
            off = _to_ticks(note.end, ticks_per_beat)
            events.append((on, 1, mido.Message("note_on", note=note.pitch, velocity=80, channel=channel)))
            events.append((off, 0, mido.Message("note_off", note=note.pitch, velocity=0, channel=channel)))
        events.sort(key=lambda e: (e[0], e[1]))

        last = 0
        for tick, _, msg in events:
            msg.time = tick - last
            track.append(msg)
            last = tick

    Path(output_file).expanduser().parent.mkdir(parents=True, exist_ok=True)
    mid.save(str(output_file))
    logger.info("MIDI file saved to %s", output_file)
    return mid
