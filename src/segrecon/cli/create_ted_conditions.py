"""
Create ted_conditions.txt from labels.txt and flip information.

For every variable the file lists the variables that change together with it
when it is flipped.
"""

import argparse
import logging

from segrecon.io.problem_files import read_flips, read_labels, write_ted_conditions

logger = logging.getLogger(__name__)


def add_arguments(parser: argparse.ArgumentParser) -> None:
    """
    Add arguments to the parser.

    Args:
        parser: ArgumentParser instance
    """
    parser.add_argument("--labels", default="labels.txt", help="The gold standard label file")
    parser.add_argument("--flipped", default="flipped.txt",
                        help="Flip information, one per line: [hash of flipped segment] : [hashes of also flipped]")
    parser.add_argument("--out", default="ted_conditions.txt", help="The file to store the conditions in")


def main(args: argparse.Namespace) -> int:
    labels = read_labels(args.labels)
    flips = read_flips(args.flipped)
    write_ted_conditions([segment_hash for _, segment_hash in labels], flips, args.out)
    logger.info("Warnings about missing segments can be due to labels.txt covering only part "
                "of the problem the flips were computed on")
    return 0
