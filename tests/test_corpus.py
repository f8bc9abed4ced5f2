"""Tests for locating and loading corpus files."""

import json
import sys
from fractions import Fraction
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from chorale_generator.corpus import (  # noqa: E402
    corpus_files,
    load_corpus,
    load_json_piece,
    load_piece,
)
from chorale_generator.notes import Note  # noqa: E402


def write_piece(path, name, notes):
    path.write_text(json.dumps({"name": name, "notes": notes}))
    return path


def test_load_json_piece_parses_and_sorts(tmp_path):
    """Notes are read as ``[pitch, start, duration, channel]`` and sorted."""

    path = write_piece(
        tmp_path / "a.json",
        "alpha",
        [[64, 1000, 1000, 1], [60, 0, 1000, 1], [48, 0.5, 500, 4]],
    )
    name, notes = load_json_piece(path)
    assert name == "alpha"
    assert notes == [
        Note(60, 0, 1000, 1),
        Note(48, Fraction(1, 2), 500, 4),
        Note(64, 1000, 1000, 1),
    ]


def test_name_defaults_to_file_stem(tmp_path):
    """Documents without a name use the file name."""

    path = tmp_path / "chorale7.json"
    path.write_text(json.dumps({"notes": [[60, 0, 1000, 1]]}))
    assert load_json_piece(path)[0] == "chorale7"


@pytest.mark.parametrize(
    "document",
    [[1, 2, 3], {"notes": "abc"}, {"notes": [[60, 0, 1000]]}, {"notes": [[60, True, 1000, 1]]}],
)
def test_malformed_documents_raise(tmp_path, document):
    """Anything other than the expected layout is rejected."""

    path = tmp_path / "bad.json"
    path.write_text(json.dumps(document))
    with pytest.raises(ValueError):
        load_json_piece(path)


def test_unsupported_suffix(tmp_path):
    """Only MIDI and JSON corpus files are accepted."""

    path = tmp_path / "notes.txt"
    path.write_text("")
    with pytest.raises(ValueError):
        load_piece(path)


def test_directories_load_in_sorted_order(tmp_path):
    """Directory contents are filtered by suffix and sorted."""

    write_piece(tmp_path / "b.json", "bravo", [[60, 0, 1000, 1]])
    write_piece(tmp_path / "a.json", "alpha", [[62, 0, 1000, 1]])
    (tmp_path / "readme.txt").write_text("ignored")

    assert [p.name for p in corpus_files([tmp_path])] == ["a.json", "b.json"]
    pieces = load_corpus([tmp_path])
    assert [name for name, _ in pieces] == ["alpha", "bravo"]
