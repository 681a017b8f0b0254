"""
Arguments and loading shared by the commands that extract slices.
"""

import argparse
import logging
from typing import List, Tuple

import numpy as np

from segrecon.core.parameters import ReconstructionParameters, load_parameters
from segrecon.io.stacks import read_hypothesis_stacks, read_volume
from segrecon.processing.reconstruction import Reconstruction
from segrecon.segments.pipeline import SectionSlices

logger = logging.getLogger(__name__)


def add_source_arguments(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--membranes",
                        help="Membrane volume (zarr or TIFF); slices are extracted from "
                             "component trees of thresholded regions")
    source.add_argument("--hypotheses", nargs="+",
                        help="Binary hypothesis volumes (zarr or TIFF), highest priority first")
    parser.add_argument("--thresholds", default="0.25,0.5,0.75",
                        help="Comma-separated thresholds for --membranes")
    parser.add_argument("--parameters", help="JSON file with reconstruction parameters")
    parser.add_argument("--force-explanation", action="store_true",
                        help="Require every leaf region to be explained by exactly one slice")
    parser.add_argument("--workers", type=int, default=None,
                        help="Number of threads for segment extraction")


def parse_thresholds(thresholds: str) -> List[float]:
    try:
        return [float(x) for x in thresholds.split(',')]
    except ValueError:
        raise ValueError(f"Invalid thresholds: {thresholds}. Use format: '0.25,0.5,0.75'")


def load_parameters_from_args(args: argparse.Namespace) -> ReconstructionParameters:
    """Parameters from --parameters, overridden by explicit command line flags."""
    parameters = load_parameters(args.parameters) if args.parameters else ReconstructionParameters()
    if args.force_explanation:
        parameters.slices.force_explanation = True
    if args.workers is not None:
        parameters.num_workers = args.workers
    return parameters


def load_sections(args: argparse.Namespace,
                  reconstruction: Reconstruction) -> Tuple[List[SectionSlices], Tuple[int, int, int]]:
    """
    Returns:
        Slices and constraints of every section, and the shape of the stack
    """
    if args.membranes:
        volume = read_volume(args.membranes).astype(np.float64)
        sections = reconstruction.slices_from_membranes(volume, parse_thresholds(args.thresholds))
        return sections, volume.shape

    hypotheses = read_hypothesis_stacks(args.hypotheses)
    shape = (len(hypotheses),) + hypotheses[0][0].shape
    return reconstruction.slices_from_hypotheses(hypotheses), shape
