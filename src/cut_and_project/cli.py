"""
Command-line driver.

Reads a JSON model, generates the atoms within the parallel cutoff radius
and writes them as::

    <atom count>
    <comment>
    <species> <x> <y> <z> ...
"""
import argparse
import logging
import sys
from typing import Optional, Sequence

from .config import DEFAULT_CUTOFF_SCALE, DEFAULT_EPS, DEFAULT_SETTINGS
from .io import load_model, write_atoms
from .logging_config import setup_logging
from .placement import generate_atoms

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cut-and-project",
        description="Generate the physical atomic structure of a quasicrystal "
                    "from its superspace model by the cut-and-project method.",
    )
    parser.add_argument("model", help="JSON model file")
    parser.add_argument("r_cut_par", type=float, help="parallel-space cutoff radius")
    parser.add_argument(
        "cutoff_scale",
        type=float,
        nargs="?",
        default=DEFAULT_CUTOFF_SCALE,
        help=f"scale applied to the perpendicular cutoff radius (default: {DEFAULT_CUTOFF_SCALE})",
    )
    parser.add_argument("--comment", default="", help="text of the comment line")
    parser.add_argument("-o", "--output", help="output file (default: stdout)")
    parser.add_argument(
        "--eps",
        type=float,
        default=DEFAULT_EPS,
        help=f"relative tolerance of the cutoff bounds (default: {DEFAULT_EPS})",
    )
    parser.add_argument(
        "--check-exclusivity",
        action="store_true",
        help="warn about lattice points accepted by more than one domain copy",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging level (default: WARNING)",
    )
    parser.add_argument("--log-file", help="also write the log to this file")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=getattr(logging, args.log_level), log_file=args.log_file)

    try:
        settings = DEFAULT_SETTINGS.with_updates(
            eps=args.eps,
            cutoff_scale=args.cutoff_scale,
            check_exclusivity=args.check_exclusivity,
        )
        model = load_model(args.model, settings)
        atoms = generate_atoms(model, args.r_cut_par, settings)
    except (ValueError, OSError) as e:
        logger.error("%s", e)
        return 1

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            n = write_atoms(atoms, f, args.comment)
    else:
        n = write_atoms(atoms, sys.stdout, args.comment)
    logger.info("Wrote %d atoms", n)
    return 0
