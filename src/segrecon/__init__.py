"""
segrecon: Neuron reconstruction from stacks of electron microscopy sections.

Candidate regions (slices) of every section are linked across sections by
segments; a consistent selection of segments is found with a binary linear
program and split into neurons.
"""

__version__ = "0.1.0"

# Import key functionality for package-level access
from .core import (
    ConnectedComponent,
    Direction,
    IdAllocator,
    LinearConstraint,
    LinearConstraints,
    ReconstructionParameters,
    Relation,
    Segment,
    Segments,
    SegmentType,
    Slice,
    Slices,
)
from .graph.neurons import NeuronExtractor, SegmentTree, SegmentTrees
from .inference import (
    LinearSolver,
    ObjectiveGenerator,
    ProblemAssembler,
    ProblemConfiguration,
    Reconstructor,
)
from .processing.reconstruction import Reconstruction
from .segments import GroundTruthExtractor, SegmentExtractor
from .slices import ComponentTreeConverter, StackSliceExtractor
