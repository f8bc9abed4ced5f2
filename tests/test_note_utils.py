"""Tests for the pitch and timeline helpers."""

import sys
from fractions import Fraction
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from chorale_generator.note_utils import (  # noqa: E402
    chord_name,
    find_closest,
    get_channel,
    get_other_channels,
    get_region,
    harmonic_subset,
    inversions,
    is_triad,
    midi_to_note,
    onset_notes,
    pitch_class_set,
    reduce_interval,
    remove_region,
    set_to_zero,
    sort_by_start,
    total_duration,
    transpose,
    voice_order,
)
from chorale_generator.notes import REST, Note  # noqa: E402


def test_midi_to_note_names_and_rest():
    """Pitch numbers render with sharps and ``0`` renders as a rest."""

    assert midi_to_note(60) == "C4"
    assert midi_to_note(61) == "C#4"
    assert midi_to_note(REST) == "rest"
    assert chord_name([Note(60, 0, 1000, 1), Note(64, 0, 1000, 2)]) == "C4-E4"
    assert midi_to_note(-5) == "-5"
    assert chord_name([Note(-5, 0, 1000, 4)]) == "-5"


def test_reduce_interval_keeps_direction():
    """Compound intervals fold into an octave without changing sign."""

    assert reduce_interval(7) == 7
    assert reduce_interval(19) == 7
    assert reduce_interval(-19) == -7
    assert reduce_interval(24) == 12
    assert reduce_interval(-12) == -12


def test_inversions_rotate_upwards():
    """Each rotation raises the displaced members by an octave."""

    assert inversions([0, 4, 7]) == [[0, 4, 7], [4, 7, 12], [7, 12, 16]]


@pytest.mark.parametrize(
    "chord",
    [[60, 64, 67], [57, 60, 64], [59, 62, 65], [60, 64, 68], [64, 67, 72, 76], [43, 59, 62, 67]],
)
def test_is_triad_accepts_all_qualities_and_inversions(chord):
    """Major, minor, diminished and augmented triads are triads in any voicing."""

    assert is_triad(chord)


@pytest.mark.parametrize("chord", [[60, 62, 64], [60, 64, 67, 70], [60, 67], [60]])
def test_is_triad_rejects_other_sets(chord):
    """Clusters, seventh chords and dyads are not triads."""

    assert not is_triad(chord)


def test_pitch_classes_and_subset():
    """Harmonic subsets compare pitch classes regardless of octave."""

    assert pitch_class_set([48, 60, 64]) == frozenset({0, 4})
    assert harmonic_subset([48, 67, 76], [60, 64, 67])
    assert not harmonic_subset([48, 63], [60, 64, 67])


def test_transpose_skips_rests():
    """Rest sentinels keep pitch 0 while other notes move."""

    notes = [Note(60, 0, 1000, 1), Note(REST, 0, 1000, 2)]
    moved = transpose(5, notes)
    assert [n.pitch for n in moved] == [65, REST]
    assert transpose(-5, moved) == notes


def test_regions_are_half_open():
    """``get_region`` and ``remove_region`` split a timeline without overlap."""

    notes = [Note(60, t, 1000, 1) for t in (0, 1000, 2000, 3000)]
    inside = get_region((1000, 3000), notes)
    outside = remove_region((1000, 3000), notes)
    assert [n.start for n in inside] == [1000, 2000]
    assert [n.start for n in outside] == [0, 3000]


def test_sort_by_start_is_stable():
    """Simultaneous notes keep their voice order after sorting."""

    notes = [Note(55, 1000, 1000, 3), Note(72, 0, 1000, 1), Note(64, 0, 1000, 2)]
    assert [n.channel for n in sort_by_start(notes)] == [1, 2, 3]


def test_onset_and_channel_selection():
    """Onset notes and channel filters pick the expected events."""

    notes = [Note(72, 0, 1000, 1), Note(48, 0, 2000, 4), Note(74, 1000, 1000, 1)]
    assert onset_notes(notes) == notes[:2]
    assert get_channel(1, notes) == [notes[0], notes[2]]
    assert get_other_channels(1, notes) == [notes[1]]
    assert onset_notes([]) == []


def test_set_to_zero_and_total_duration():
    """Pieces shift to time zero and report their span."""

    notes = [Note(60, 4000, 1000, 1), Note(48, 4000, 2000, 4)]
    zeroed = set_to_zero(notes)
    assert [n.start for n in zeroed] == [0, 0]
    assert total_duration(zeroed) == 2000
    assert total_duration([]) == 0


def test_find_closest_prefers_first_on_tie():
    """Equally close candidates resolve to the first one given."""

    assert find_closest(Fraction(7500), [0, 7000, 8000]) == 7000
    assert find_closest(2100, [1000, 2000, 3000]) == 2000
    with pytest.raises(ValueError):
        find_closest(0, [])


def test_voice_order_puts_soprano_first():
    """Notes listed bass first come back in voice order."""

    notes = [Note(48, 0, 1000, 4), Note(55, 0, 1000, 3), Note(72, 0, 1000, 1), Note(64, 0, 1000, 2)]
    assert [n.channel for n in voice_order(notes)] == [1, 2, 3, 4]
