"""
Core data model: slices, segments, constraints and their parameters.
"""

from .components import ConnectedComponent, components_from_image
from .constraints import LinearConstraint, LinearConstraints, Relation
from .exceptions import (
    EmptyProblemError,
    FileFormatError,
    InfeasibleProblemError,
    NoSuchSegment,
    SegreconError,
)
from .ids import IdAllocator
from .parameters import (
    GroundTruthParameters,
    PriorParameters,
    ReconstructionParameters,
    SegmentParameters,
    SliceParameters,
    SolverParameters,
    load_parameters,
)
from .segments import Direction, Segment, Segments, SegmentType
from .slices import Slice, Slices

__all__ = [
    'ConnectedComponent',
    'components_from_image',
    'LinearConstraint',
    'LinearConstraints',
    'Relation',
    'EmptyProblemError',
    'FileFormatError',
    'InfeasibleProblemError',
    'NoSuchSegment',
    'SegreconError',
    'IdAllocator',
    'GroundTruthParameters',
    'PriorParameters',
    'ReconstructionParameters',
    'SegmentParameters',
    'SliceParameters',
    'SolverParameters',
    'load_parameters',
    'Direction',
    'Segment',
    'Segments',
    'SegmentType',
    'Slice',
    'Slices',
]
