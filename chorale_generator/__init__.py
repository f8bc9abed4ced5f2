"""Chorale Generator library.

This package composes new four-voice chorales by recombining beats taken
from a corpus of existing chorales.  A typical workflow loads a corpus with
:func:`load_corpus`, indexes it with :func:`build_database`, calls
:func:`compose_chorale` with a seed and writes the result with
:func:`write_midi`.

Underlying Algorithm
--------------------
Each corpus piece is cut into *beats*: the shortest groups of notes after
which all voices end together on a beat boundary.  Every beat remembers the
chord it starts with and the chord that followed it in its source piece.
Indexing beats by their starting chord gives a *lexicon* of possible
continuations: any beat that starts with the chord the current beat leads
into can follow it.

Composition walks this graph at random from a triadic opening until enough
beats have been chained and the last one closes on the tonic.  Attempts
that run into a dead end, come out too short or too long, or open with
parallel motion are thrown away and composition starts over.  The accepted
piece is then repaired so long phrases get a cadence, transposed into a
comfortable vocal range and given a clean final chord.

Algorithm Pseudocode
--------------------
The following outlines :meth:`ChoraleComposer.compose`::

    repeat:
        opening = random start beat with a simple triad, else retry
        names = [opening]
        while not (enough beats and last beat is the tonic):
            candidates = lexicon[destination(names[-1])]
            names.append(random candidate other than the obvious successor)
        notes = retime(beats of names)
    until notes pass the length, cadence-wait and parallel checks
    return finish(notes)

Features include:
- Beat segmentation that follows the voices rather than a fixed grid.
- An immutable corpus database with a continuation lexicon and a pool of
  voice-leading observations.
- Seeded, reproducible composition with a configurable attempt ceiling.
- Cadence detection and repair for long phrases.
- MIDI import and export through ``mido`` plus a JSON note-list format.
- A command line interface with persistent settings.
"""

__version__ = "0.1.0"

# ---------------------------------------------------------------
# Modification Summary
# ---------------------------------------------------------------
# * The composer counts attempts and raises ``AttemptsExhaustedError`` once
#   ``ChoraleConfig.max_attempts`` is reached instead of retrying forever.
# * Skipping the immediate successor of a beat is expressed as an injectable
#   ``near_duplicate`` predicate; the default compares whole beat numbers so
#   ``piece-9`` correctly excludes ``piece-10``.
# * Beat segmentation returns a restartable ``BeatSequence`` so callers can
#   iterate a piece's beats more than once.
# * Range normalisation ignores rest sentinels (pitch ``0``).
# * Corpus files are loaded in sorted order so a seed reproduces the same
#   chorale regardless of directory listing order.
# ---------------------------------------------------------------

from .notes import REST, UNIT, Note, Timeline  # noqa: F401
from .errors import AttemptsExhaustedError, ChoraleError, CompositionError  # noqa: F401
from .config import ChoraleConfig, DEFAULT_CONFIG, load_settings, save_settings  # noqa: F401
from .beats import break_into_beats, collect_beats  # noqa: F401
from .voice_leading import VoiceLeading, get_rules  # noqa: F401
from .database import BeatRecord, Database, build_database  # noqa: F401
from .cadence import ensure_necessary_cadences  # noqa: F401
from .finishing import cadence_collapse, finish, fix_up_beat, transpose_to_range  # noqa: F401
from .composer import ChoraleComposer, compose_chorale  # noqa: F401
from .midi_io import read_midi, write_midi  # noqa: F401
from .corpus import load_corpus  # noqa: F401

__all__ = [
    "REST",
    "UNIT",
    "Note",
    "Timeline",
    "ChoraleError",
    "CompositionError",
    "AttemptsExhaustedError",
    "ChoraleConfig",
    "DEFAULT_CONFIG",
    "load_settings",
    "save_settings",
    "collect_beats",
    "break_into_beats",
    "VoiceLeading",
    "get_rules",
    "BeatRecord",
    "Database",
    "build_database",
    "ensure_necessary_cadences",
    "fix_up_beat",
    "transpose_to_range",
    "cadence_collapse",
    "finish",
    "ChoraleComposer",
    "compose_chorale",
    "read_midi",
    "write_midi",
    "load_corpus",
]
