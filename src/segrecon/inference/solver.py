"""
Binary linear program solver.

The problem is handed to scipy's MILP interface (HiGHS) with every variable
restricted to {0, 1}.
"""

import logging
from typing import List, Optional

import numpy as np
from scipy import sparse
from scipy.optimize import Bounds, milp
from scipy.optimize import LinearConstraint as MatrixConstraint

from ..core.constraints import LinearConstraints, Relation
from ..core.exceptions import InfeasibleProblemError
from ..core.parameters import SolverParameters
from .objective import LinearObjective

logger = logging.getLogger(__name__)


class Solution:
    """Value of every variable, indexed by variable."""
    def __init__(self, values: np.ndarray, objective_value: float = 0.0):
        self.values = np.asarray(values, dtype=np.float64)
        self.objective_value = objective_value

    def __getitem__(self, variable: int) -> float:
        return self.values[variable]

    def __len__(self) -> int:
        return len(self.values)

    def selected(self) -> List[int]:
        """Variables set to 1."""
        return [int(v) for v in np.flatnonzero(self.values > 0.5)]


class LinearSolver:
    """
    Solve binary linear programs with scipy.optimize.milp.

    Args:
        parameters: Default solver options
    """
    def __init__(self, parameters: Optional[SolverParameters] = None):
        self.parameters = parameters or SolverParameters()

    def solve(self, objective: LinearObjective, constraints: LinearConstraints,
              parameters: Optional[SolverParameters] = None) -> Solution:
        """
        Minimize the objective subject to the constraints.

        Raises:
            ValueError: If a constraint references a variable outside the objective
            InfeasibleProblemError: If no feasible assignment was found
        """
        parameters = parameters or self.parameters
        num_variables = len(objective)

        rows, columns, data = [], [], []
        lower = np.empty(len(constraints))
        upper = np.empty(len(constraints))
        for row, constraint in enumerate(constraints):
            for variable, coefficient in constraint.coefficients.items():
                if not 0 <= variable < num_variables:
                    raise ValueError(f"Constraint '{constraint}' references variable {variable}, "
                                     f"but the problem has {num_variables} variables")
                rows.append(row)
                columns.append(variable)
                data.append(coefficient)
            if constraint.relation is Relation.LESS_EQUAL:
                lower[row], upper[row] = -np.inf, constraint.value
            elif constraint.relation is Relation.GREATER_EQUAL:
                lower[row], upper[row] = constraint.value, np.inf
            else:
                lower[row], upper[row] = constraint.value, constraint.value

        matrix_constraints = []
        if len(constraints) > 0:
            matrix = sparse.csr_matrix((data, (rows, columns)),
                                       shape=(len(constraints), num_variables))
            matrix_constraints.append(MatrixConstraint(matrix, lower, upper))

        options = {"disp": parameters.verbose}
        if parameters.time_limit is not None:
            options["time_limit"] = parameters.time_limit
        if parameters.mip_rel_gap is not None:
            options["mip_rel_gap"] = parameters.mip_rel_gap

        logger.info(f"Solving problem with {num_variables} variables and {len(constraints)} constraints")
        result = milp(
            c=objective.coefficients,
            constraints=matrix_constraints or None,
            integrality=np.ones(num_variables),
            bounds=Bounds(0, 1),
            options=options,
        )

        if result.x is None:
            raise InfeasibleProblemError(f"Solver failed (status {result.status}): {result.message}")
        if result.status != 0:
            logger.warning(f"Solver stopped early: {result.message}")

        values = np.round(result.x)
        solution = Solution(values, objective.value(values))
        logger.info(f"Found solution with value {solution.objective_value:g}, "
                    f"{len(solution.selected())} variables selected")
        return solution
