"""
Create cost_function.txt from labels.txt and TED coefficients.

Coefficients are matched to problem variables by segment hash. Unless
--just-copy is given, they are recomputed from the split and merge counts of
the TED evaluation.
"""

import argparse
import logging

from segrecon.io.problem_files import read_labels, read_ted_coefficients, write_cost_function

logger = logging.getLogger(__name__)


def add_arguments(parser: argparse.ArgumentParser) -> None:
    """
    Add arguments to the parser.

    Args:
        parser: ArgumentParser instance
    """
    parser.add_argument("--labels", default="labels.txt", help="The gold standard label file")
    parser.add_argument("--coefficients", default="ted_coefficients.txt",
                        help="TED coefficients, one per line: [var] [coef] # [hash] [gs] [fs] [fm] [fp] [fn]")
    parser.add_argument("--out", default="cost_function.txt", help="The file to store the coefficients in")
    parser.add_argument("--just-copy", action="store_true",
                        help="Take the coefficients as they are instead of recomputing them")
    parser.add_argument("--weight-splits", type=float, default=1.0,
                        help="Factor for split errors")
    parser.add_argument("--weight-merges", type=float, default=1.0,
                        help="Factor for merge errors")


def main(args: argparse.Namespace) -> int:
    labels = read_labels(args.labels)
    coefficients = read_ted_coefficients(
        args.coefficients,
        just_copy=args.just_copy,
        weight_splits=args.weight_splits,
        weight_merges=args.weight_merges,
    )
    constant = write_cost_function([segment_hash for _, segment_hash in labels], coefficients, args.out)
    logger.info(f"Cost function constant: {constant:g}")
    return 0
