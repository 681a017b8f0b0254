"""
Linear objectives from segment cost functions.

A cost function is any object with a method

    costs(ends, continuations, branches) -> sequence of floats

returning one cost per segment, ends first, then continuations, then
branches. The objective of a problem is the sum of all cost functions.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from ..core.parameters import PriorParameters
from ..core.segments import Segment, Segments
from .problem import ProblemConfiguration

logger = logging.getLogger(__name__)


class LinearObjective:
    """Minimize coefficients . x."""
    def __init__(self, num_variables: int = 0):
        self.coefficients = np.zeros(num_variables, dtype=np.float64)

    def set_coefficient(self, variable: int, value: float) -> None:
        self.coefficients[variable] = value

    def value(self, assignment: np.ndarray) -> float:
        return float(np.dot(self.coefficients, assignment))

    def __len__(self) -> int:
        return len(self.coefficients)


class PriorCostFunction:
    """Constant cost per segment type."""
    def __init__(self, parameters: Optional[PriorParameters] = None):
        self.parameters = parameters or PriorParameters()

    def costs(self, ends: Sequence[Segment], continuations: Sequence[Segment],
              branches: Sequence[Segment]) -> List[float]:
        return ([self.parameters.prior_end] * len(ends) +
                [self.parameters.prior_continuation] * len(continuations) +
                [self.parameters.prior_branch] * len(branches))


class ObjectiveGenerator:
    """
    Sum the outputs of several cost functions into one objective.

    Ends in the first and the last inter-section interval close the stack
    and are free.

    Args:
        cost_functions: Objects implementing costs(ends, continuations, branches)
    """
    def __init__(self, cost_functions: Sequence):
        self.cost_functions = list(cost_functions)

    def generate(self, segments: Segments, configuration: ProblemConfiguration) -> LinearObjective:
        """
        Args:
            segments: All segments of the problem
            configuration: Mapping of segments to variables

        Returns:
            The objective, indexed by variable

        Raises:
            ValueError: If a cost function returns the wrong number of costs
        """
        objective = LinearObjective(configuration.num_variables)
        ordered = segments.ends + segments.continuations + segments.branches
        variables = np.array([configuration.get_variable(s.id) for s in ordered], dtype=np.int64)

        for cost_function in self.cost_functions:
            costs = np.asarray(
                cost_function.costs(segments.ends, segments.continuations, segments.branches),
                dtype=np.float64)
            if costs.shape != (len(ordered),):
                raise ValueError(f"{type(cost_function).__name__} returned {costs.size} costs "
                                 f"for {len(ordered)} segments")
            np.add.at(objective.coefficients, variables, costs)

        last_interval = segments.num_inter_section_intervals - 1
        for end in segments.ends:
            if end.inter_section_interval in (0, last_interval):
                objective.set_coefficient(configuration.get_variable(end.id), 0.0)

        logger.debug(f"Generated objective over {len(objective)} variables "
                     f"from {len(self.cost_functions)} cost functions")
        return objective
