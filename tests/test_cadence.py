"""Tests for cadence detection and repair."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from conftest import TONIC, chord  # noqa: E402

from chorale_generator.cadence import (  # noqa: E402
    discover_cadence,
    distance_to_cadence,
    ensure_necessary_cadences,
    find_cadence_places,
    find_cadence_start_times,
    find_with_duration,
    get_long_phrases,
    resolve,
)
from chorale_generator.note_utils import get_region, sort_by_start  # noqa: E402
from chorale_generator.notes import Note  # noqa: E402


def running_soprano_piece():
    """A clean chord, fourteen beats of eighth notes in the soprano, two clean chords."""

    notes = chord(TONIC, 0)
    for beat in range(1, 15):
        t = beat * 1000
        notes.append(Note(72, t, 500, 1))
        notes.extend(chord(TONIC, t)[1:])
        notes.append(Note(74, t + 500, 500, 1))
    notes.extend(chord(TONIC, 15000))
    notes.extend(chord(TONIC, 16000))
    return sort_by_start(notes)


def test_find_with_duration():
    """All four voices attacking a quarter note at 3000 are found."""

    notes = [Note(61, 3000, 1000, 1)] + [Note(69, 3000, 1000, c) for c in (2, 3, 4)]
    assert find_with_duration(1000, notes) == 3000
    assert find_with_duration(2000, notes) is None


def test_distance_to_cadence_prefers_nearest():
    """A half-note chord before any quarter-note chord wins."""

    notes = chord(TONIC, 0, 2000) + chord(TONIC, 2000)
    assert distance_to_cadence(notes) == 0
    assert distance_to_cadence([Note(72, 0, 500, 1)]) is None


def test_cadence_start_times_skip_running_passages():
    """Beats with moving eighth notes are not clean chords."""

    assert find_cadence_start_times(running_soprano_piece()) == [0, 15000, 16000]


def test_get_long_phrases():
    """Only gaps longer than the limit are reported."""

    assert get_long_phrases([0, 1000, 14000, 15000]) == [(1000, 14000)]
    assert get_long_phrases([0, 12000]) == []
    assert get_long_phrases([0, 5000], longest=4000) == [(0, 5000)]


def test_find_cadence_places_requires_triads():
    """Triadic on-beat chords qualify, clusters do not."""

    assert find_cadence_places(chord(TONIC, 0) + chord(TONIC, 1000)) == [0, 1000]
    assert find_cadence_places(chord((63, 62, 61, 60), 0)) == []


def test_resolve_holds_onset_chord():
    """Short onset notes are held for a beat and later notes dropped."""

    notes = [Note(72, 0, 500, 1), Note(64, 0, 1000, 2), Note(74, 500, 500, 1)]
    assert resolve(notes) == [Note(72, 0, 1000, 1), Note(64, 0, 1000, 2)]


def test_discover_cadence_without_places_is_identity():
    """A phrase with no triadic beat is left alone."""

    notes = [n for t in range(13) for n in chord((63, 62, 61, 60), t * 1000)]
    assert discover_cadence((0, 13000), notes) == notes


def test_ensure_necessary_cadences_breaks_long_phrase():
    """A cadence is inserted at the triad closest to the phrase middle."""

    notes = running_soprano_piece()
    repaired = ensure_necessary_cadences(notes)
    assert len(repaired) == len(notes) - 1
    window = get_region((7000, 8000), repaired)
    assert [(n.start, n.duration) for n in window] == [(7000, 1000)] * 4
    assert 7000 in find_cadence_start_times(repaired)
    assert get_region((0, 7000), repaired) == get_region((0, 7000), notes)


def test_ensure_necessary_cadences_leaves_short_phrases(cycle_piece):
    """Pieces with regular clean chords are unchanged."""

    assert ensure_necessary_cadences(cycle_piece) == cycle_piece
