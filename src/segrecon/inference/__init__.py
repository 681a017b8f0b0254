"""
Problem assembly, objectives, solving and reconstruction.
"""

from .objective import LinearObjective, ObjectiveGenerator, PriorCostFunction
from .problem import Problem, ProblemAssembler, ProblemConfiguration
from .reconstructor import Reconstructor
from .solver import LinearSolver, Solution

__all__ = [
    'LinearObjective',
    'ObjectiveGenerator',
    'PriorCostFunction',
    'Problem',
    'ProblemAssembler',
    'ProblemConfiguration',
    'Reconstructor',
    'LinearSolver',
    'Solution',
]
