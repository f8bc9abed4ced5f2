"""Command line tests.

Each test writes a small JSON corpus into ``tmp_path`` and drives
``run_cli`` with an explicit argument list, checking the written file or
the exit status.  A settings file inside ``tmp_path`` keeps the tests
away from the user's home directory.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from conftest import make_cycle_piece, make_through_composed_piece  # noqa: E402

from chorale_generator.cli import build_parser, run_cli  # noqa: E402


def write_corpus(directory: Path, name: str, notes) -> Path:
    directory.mkdir(exist_ok=True)
    path = directory / f"{name}.json"
    data = {"name": name, "notes": [[n.pitch, n.start, n.duration, n.channel] for n in notes]}
    path.write_text(json.dumps(data))
    return directory


def base_args(tmp_path: Path, corpus: Path, *extra: str) -> list:
    return [
        "--corpus",
        str(corpus),
        "--output",
        str(tmp_path / "out" / "chorale.mid"),
        "--settings-file",
        str(tmp_path / "settings.json"),
        *extra,
    ]


def test_parser_defaults():
    """Tempo and instrument fall back to organ at 90 BPM."""

    args = build_parser().parse_args(["--corpus", "a.json", "--output", "o.mid"])
    assert args.bpm == 90
    assert args.instrument == 19
    assert args.seed is None


def test_compose_from_directory(tmp_path, caplog):
    """A seeded run writes a readable MIDI file and logs the seed."""

    pytest.importorskip("mido")
    from chorale_generator.midi_io import read_midi

    corpus = write_corpus(tmp_path / "corpus", "cycle", make_cycle_piece())
    with caplog.at_level(logging.INFO):
        run_cli(base_args(tmp_path, corpus, "--seed", "4"))

    output = tmp_path / "out" / "chorale.mid"
    assert output.exists()
    assert "Using seed 4" in caplog.text
    notes = read_midi(output)
    assert len(notes) == 160
    assert min(n.pitch for n in notes) == 47


def test_save_settings(tmp_path):
    """``--save-settings`` stores the effective values."""

    pytest.importorskip("mido")
    corpus = write_corpus(tmp_path / "corpus", "cycle", make_cycle_piece())
    run_cli(base_args(tmp_path, corpus, "--seed", "1", "--max-attempts", "200", "--save-settings"))
    saved = json.loads((tmp_path / "settings.json").read_text())
    assert saved["max_attempts"] == 200
    assert saved["min_steps"] == 36


@pytest.mark.parametrize(
    "extra",
    [["--bpm", "0"], ["--instrument", "200"], ["--max-attempts", "0"]],
)
def test_invalid_arguments_exit_with_status_one(tmp_path, caplog, extra):
    """Bad numeric options are logged and rejected."""

    corpus = write_corpus(tmp_path / "corpus", "cycle", make_cycle_piece())
    with caplog.at_level(logging.ERROR):
        with pytest.raises(SystemExit) as exc:
            run_cli(base_args(tmp_path, corpus, *extra))
    assert exc.value.code == 1
    assert caplog.records


def test_unreadable_corpus_exits_with_status_one(tmp_path):
    """An unsupported corpus file stops the run."""

    bad = tmp_path / "notes.txt"
    bad.write_text("")
    with pytest.raises(SystemExit) as exc:
        run_cli(base_args(tmp_path, bad))
    assert exc.value.code == 1


def test_exhausted_attempts_exit_with_status_two(tmp_path, caplog):
    """A corpus that never closes gives up after ``--max-attempts``."""

    corpus = write_corpus(tmp_path / "corpus", "through", make_through_composed_piece())
    with caplog.at_level(logging.ERROR):
        with pytest.raises(SystemExit) as exc:
            run_cli(base_args(tmp_path, corpus, "--seed", "0", "--max-attempts", "3"))
    assert exc.value.code == 2
    assert "3 attempts" in caplog.text
    assert not (tmp_path / "out" / "chorale.mid").exists()
