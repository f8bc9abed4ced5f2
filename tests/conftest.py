"""Shared fixtures: small synthetic chorales used across the test suite.

``cycle_piece`` repeats a I-IV-V progression in C major twelve times and
closes on a held tonic.  Every chord recurs many times, so the continuation
lexicon offers several candidates at each step and the composer can chain
well past the minimum length before returning to a quarter-note tonic.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from chorale_generator.database import build_database  # noqa: E402
from chorale_generator.notes import Note  # noqa: E402

# Voices listed soprano to bass.
TONIC = (72, 64, 55, 48)
SUBDOMINANT = (72, 65, 57, 53)
DOMINANT = (71, 62, 55, 43)


def chord(pitch_list, start, duration=1000):
    """Return one note per voice, soprano first."""

    return [Note(p, start, duration, voice) for voice, p in enumerate(pitch_list, start=1)]


def make_cycle_piece(repeats=12):
    notes = []
    time = 0
    for _ in range(repeats):
        for harmony in (TONIC, SUBDOMINANT, DOMINANT):
            notes.extend(chord(harmony, time))
            time += 1000
    notes.extend(chord(TONIC, time, 2000))
    return notes


def make_through_composed_piece():
    """Five different chords; no beat ever leads back into the piece."""

    progression = [
        (72, 64, 55, 48),
        (72, 65, 57, 53),
        (71, 62, 55, 43),
        (69, 64, 57, 45),
        (69, 65, 62, 50),
    ]
    notes = []
    for index, harmony in enumerate(progression):
        notes.extend(chord(harmony, index * 1000))
    return notes


@pytest.fixture
def cycle_piece():
    return make_cycle_piece()


@pytest.fixture
def cycle_database(cycle_piece):
    return build_database([("cycle", cycle_piece)])


@pytest.fixture
def dead_end_database():
    return build_database([("through", make_through_composed_piece())])


@pytest.fixture
def toy_piece():
    return [
        Note(60, 0, 1000, 1),
        Note(64, 0, 1000, 2),
        Note(62, 1000, 1000, 1),
        Note(67, 1000, 1000, 2),
    ]
