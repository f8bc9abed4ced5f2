"""Locating and loading corpus pieces.

A corpus is any collection of files, each holding one four-part piece:

* ``.mid``/``.midi`` files are read with :func:`~chorale_generator.midi_io.read_midi`;
* ``.json`` files contain ``{"name": ..., "notes": [[pitch, start, duration, channel], ...]}``.

Directories are searched (non-recursively) and their files are loaded in
sorted order so the resulting database, and therefore every seeded
composition, does not depend on file-system ordering.

Example
-------
>>> pieces = load_corpus(["data/chorales"])            # doctest: +SKIP
>>> db = build_database(pieces)                         # doctest: +SKIP
"""

from __future__ import annotations

import json
import logging
from fractions import Fraction
from pathlib import Path
from typing import Iterable, List, Tuple, Union

from .midi_io import read_midi
from .note_utils import sort_by_start
from .notes import Note

__all__ = ["SUPPORTED_SUFFIXES", "load_json_piece", "load_piece", "corpus_files", "load_corpus"]

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

SUPPORTED_SUFFIXES = (".mid", ".midi", ".json")


def _parse_time(value) -> Union[int, Fraction]:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"invalid time value: {value!r}")
    if isinstance(value, int):
        return value
    # Floats are parsed from their decimal repr (0.1 -> 1/10).
    parsed = Fraction(str(value)) if isinstance(value, float) else Fraction(value)
    return int(parsed) if parsed.denominator == 1 else parsed


def load_json_piece(path: PathLike) -> Tuple[str, List[Note]]:
    """Return ``(name, notes)`` from a JSON piece file.

    The name defaults to the file stem when the document omits it.

    Raises
    ------
    ValueError
        If the document does not follow the expected layout.
    """

    path = Path(path)
    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict) or not isinstance(data.get("notes"), list):
        raise ValueError(f"{path}: expected an object with a 'notes' list")

    notes: List[Note] = []
    for index, entry in enumerate(data["notes"]):
        if not isinstance(entry, (list, tuple)) or len(entry) != 4:
            raise ValueError(f"{path}: note {index} must be [pitch, start, duration, channel]")
        pitch, start, duration, channel = entry
        notes.append(Note(int(pitch), _parse_time(start), _parse_time(duration), int(channel)))
    return str(data.get("name") or path.stem), sort_by_start(notes)


def load_piece(path: PathLike) -> Tuple[str, List[Note]]:
    """Load one corpus file, choosing the reader from its suffix."""

    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        return load_json_piece(path)
    if suffix in (".mid", ".midi"):
        return path.stem, read_midi(path)
    raise ValueError(f"Unsupported corpus file: {path}")


def corpus_files(paths: Iterable[PathLike]) -> List[Path]:
    """Expand ``paths`` into the list of corpus files they denote.

    Directories contribute their supported files in sorted order; explicit
    files are kept as given.
    """

    files: List[Path] = []
    for entry in paths:
        entry = Path(entry).expanduser()
        if entry.is_dir():
            found = sorted(
                p for p in entry.iterdir() if p.is_file() and p.suffix.lower() in SUPPORTED_SUFFIXES
            )
            if not found:
                logger.warning("No corpus files found in %s", entry)
            files.extend(found)
        else:
            files.append(entry)
    return files


def load_corpus(paths: Iterable[PathLike]) -> List[Tuple[str, List[Note]]]:
    """Load every piece named by ``paths`` (files or directories)."""

    pieces = []
    for path in corpus_files(paths):
        logger.debug("Loading %s", path)
        pieces.append(load_piece(path))
    logger.info("Loaded %d corpus piece(s)", len(pieces))
    return pieces
