"""
Extract the gold standard of a section stack and write labels.txt.

The candidate segments of the stack are compared to the segments of a
ground-truth label volume. The best-agreeing consistent selection is the gold
standard; each problem variable is labeled 1 if its segment belongs to it.
"""

import argparse
import logging

from segrecon.graph.neurons import NeuronExtractor
from segrecon.io.problem_files import write_labels
from segrecon.io.stacks import read_volume, write_neurons
from segrecon.processing.reconstruction import Reconstruction
from segrecon.segments.ground_truth import GroundTruthExtractor
from segrecon.training.gold_standard import GoldStandardExtractor, gold_standard_labels

from ._sources import add_source_arguments, load_parameters_from_args, load_sections

logger = logging.getLogger(__name__)


def add_arguments(parser: argparse.ArgumentParser) -> None:
    """
    Add arguments to the parser.

    Args:
        parser: ArgumentParser instance
    """
    parser.add_argument("ground_truth", help="Ground-truth label volume (zarr or TIFF)")
    add_source_arguments(parser)
    parser.add_argument("--labels", default="labels.txt", help="Output labels file")
    parser.add_argument("--output", default=None,
                        help="Optional zarr path for the gold standard label volume")


def main(args: argparse.Namespace) -> int:
    """
    Main entry point for the gold_standard command.

    Args:
        args: Command-line arguments

    Returns:
        Exit code
    """
    parameters = load_parameters_from_args(args)
    reconstruction = Reconstruction(parameters)

    sections, shape = load_sections(args, reconstruction)
    labels_volume = read_volume(args.ground_truth)
    if labels_volume.shape != shape:
        logger.error(f"Ground truth has shape {labels_volume.shape}, expected {shape}")
        return 1

    ground_truth_extractor = GroundTruthExtractor(
        reconstruction.slice_ids,
        reconstruction.segment_ids,
        parameters.ground_truth,
        parameters.slices.min_slice_size,
    )
    ground_truth = ground_truth_extractor.extract(
        ground_truth_extractor.slices_from_labels(list(labels_volume)))

    problem = reconstruction.assemble(sections)
    gold_standard, _ = GoldStandardExtractor(reconstruction.solver).extract(ground_truth, problem)

    write_labels(gold_standard_labels(problem, gold_standard), args.labels)
    if args.output:
        write_neurons(NeuronExtractor().extract(gold_standard), shape, args.output)
    return 0
