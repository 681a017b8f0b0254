"""
Reconstruct neurons from a section stack.

Slices are extracted per section, candidate segments per pair of adjacent
sections; the selection is solved as a binary linear program and the selected
segments are written as a zarr label volume, one label per neuron.
"""

import argparse
import logging

from segrecon.io.stacks import write_neurons
from segrecon.processing.reconstruction import Reconstruction

from ._sources import add_source_arguments, load_parameters_from_args, load_sections

logger = logging.getLogger(__name__)


def add_arguments(parser: argparse.ArgumentParser) -> None:
    """
    Add arguments to the parser.

    Args:
        parser: ArgumentParser instance
    """
    parser.add_argument("output", help="Output zarr path for the neuron label volume")
    add_source_arguments(parser)
    parser.add_argument("--prior-end", type=float, default=None,
                        help="Cost added to every end segment")
    parser.add_argument("--prior-continuation", type=float, default=None,
                        help="Cost added to every continuation segment")
    parser.add_argument("--prior-branch", type=float, default=None,
                        help="Cost added to every branch segment")
    parser.add_argument("--time-limit", type=float, default=None,
                        help="Time limit of the solver in seconds")


def main(args: argparse.Namespace) -> int:
    """
    Main entry point for the reconstruct command.

    Args:
        args: Command-line arguments

    Returns:
        Exit code
    """
    parameters = load_parameters_from_args(args)
    if args.prior_end is not None:
        parameters.priors.prior_end = args.prior_end
    if args.prior_continuation is not None:
        parameters.priors.prior_continuation = args.prior_continuation
    if args.prior_branch is not None:
        parameters.priors.prior_branch = args.prior_branch
    if args.time_limit is not None:
        parameters.solver.time_limit = args.time_limit

    reconstruction = Reconstruction(parameters)
    sections, shape = load_sections(args, reconstruction)
    result = reconstruction.run(sections)

    logger.info(f"Selected {len(result.reconstruction)} of {result.problem.num_variables} segments, "
                f"{len(result.neurons)} neurons")
    write_neurons(result.neurons, shape, args.output)
    return 0
