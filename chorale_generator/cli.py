"""Command line entry point for the chorale generator.

Modification summary
--------------------
* ``--seed`` is optional; when omitted a seed is drawn and logged so any
  run can be reproduced later.
* ``--settings-file`` selects the JSON file holding composer thresholds and
  ``--save-settings`` writes the effective values back to it.
* Exhausting the attempt ceiling exits with status ``2`` so scripts can
  tell an unlucky corpus apart from invalid arguments (status ``1``).

This module implements the console script. :func:`run_cli` parses the
arguments, loads the corpus, builds the database, composes a chorale and
writes it as MIDI; :func:`main` configures logging first.

Example
-------
Running ``python -m chorale_generator --corpus data/chorales --seed 3 \
    --output out/chorale.mid`` composes a chorale from every MIDI or JSON
piece in ``data/chorales`` and saves it to ``out/chorale.mid``.
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
from dataclasses import asdict, replace
from pathlib import Path
from typing import List, Optional

from .composer import ChoraleComposer
from .config import DEFAULT_SETTINGS_FILE, config_from_settings, load_settings, save_settings
from .corpus import load_corpus
from .database import build_database
from .errors import AttemptsExhaustedError, CompositionError
from .midi_io import write_midi

__all__ = ["build_parser", "run_cli", "main"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compose a four-voice chorale by recombining beats from a corpus."
    )
    parser.add_argument(
        "--corpus",
        nargs="+",
        required=True,
        metavar="PATH",
        help="Corpus files (.mid, .midi, .json) or directories containing them.",
    )
    parser.add_argument("--output", type=str, required=True, help="Output MIDI file path.")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible output.")
    parser.add_argument(
        "--max-attempts",
        type=int,
        metavar="N",
        help="Give up after N rejected attempts (default from settings, 10000).",
    )
    parser.add_argument("--bpm", type=int, default=90, help="Tempo of the written file (default: 90).")
    parser.add_argument(
        "--instrument",
        type=int,
        default=19,
        help="MIDI program number for all voices (default: 19, church organ).",
    )
    parser.add_argument(
        "--settings-file",
        type=str,
        help=f"JSON settings file (default: {DEFAULT_SETTINGS_FILE}).",
    )
    parser.add_argument(
        "--save-settings",
        action="store_true",
        help="Store the effective composer settings in the settings file.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every rejected attempt.")
    return parser


def run_cli(argv: Optional[List[str]] = None) -> None:
    """Parse ``argv`` and compose a chorale.

    Invalid arguments and I/O failures are logged and end the process with
    exit status ``1``.
    """

    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.bpm <= 0:
        logging.error("BPM must be a positive integer.")
        sys.exit(1)
    if args.instrument < 0 or args.instrument > 127:
        logging.error("Instrument must be between 0 and 127.")
        sys.exit(1)
    if args.max_attempts is not None and args.max_attempts <= 0:
        logging.error("Max attempts must be a positive integer.")
        sys.exit(1)

    settings_path = Path(args.settings_file).expanduser() if args.settings_file else DEFAULT_SETTINGS_FILE
    try:
        config = config_from_settings(load_settings(settings_path))
        if args.max_attempts is not None:
            config = replace(config, max_attempts=args.max_attempts)
    except (TypeError, ValueError) as exc:
        logging.error("Invalid settings: %s", exc)
        sys.exit(1)
    if args.save_settings:
        save_settings(asdict(config), settings_path)

    try:
        pieces = load_corpus(args.corpus)
    except (OSError, ValueError) as exc:
        logging.error("Could not load corpus: %s", exc)
        sys.exit(1)

    seed = args.seed if args.seed is not None else random.randrange(2**32)
    logging.info("Using seed %d", seed)

    try:
        composer = ChoraleComposer(build_database(pieces), seed=seed, config=config)
        notes = composer.compose()
    except AttemptsExhaustedError as exc:
        logging.error("%s; try another seed or a larger corpus.", exc)
        sys.exit(2)
    except CompositionError as exc:
        logging.error(str(exc))
        sys.exit(1)

    try:
        write_midi(notes, args.output, bpm=args.bpm, program=args.instrument)
    except OSError as exc:
        logging.error("Could not write MIDI file: %s", exc)
        sys.exit(1)
    logging.info("Chorale composition complete.")


def main() -> None:
    """Console script entry point."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    run_cli()
