"""
Sparse linear constraints over binary variables.

Depending on the stage a constraint's variables are slice ids, segment ids or
global variable indices of the assembled problem.
"""

from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional


class Relation(Enum):
    LESS_EQUAL = "<="
    EQUAL = "=="
    GREATER_EQUAL = ">="


class LinearConstraint:
    """
    sum(coefficient * x[variable]) <relation> value

    Args:
        coefficients: Mapping from variable to coefficient
        relation: Comparison operator
        value: Right hand side
    """
    def __init__(self,
                 coefficients: Optional[Dict[int, float]] = None,
                 relation: Relation = Relation.LESS_EQUAL,
                 value: float = 0.0):
        self.coefficients: Dict[int, float] = dict(coefficients or {})
        self.relation = relation
        self.value = value

    def set_coefficient(self, variable: int, coefficient: float) -> None:
        self.coefficients[variable] = coefficient

    def add_coefficient(self, variable: int, coefficient: float) -> None:
        """Add to the coefficient of a variable, dropping it once it reaches zero."""
        total = self.coefficients.get(variable, 0.0) + coefficient
        if total == 0:
            self.coefficients.pop(variable, None)
        else:
            self.coefficients[variable] = total

    def is_satisfied(self, assignment: Dict[int, float]) -> bool:
        """Check the constraint for an assignment; missing variables count as 0."""
        total = sum(c * assignment.get(v, 0.0) for v, c in self.coefficients.items())
        if self.relation is Relation.LESS_EQUAL:
            return total <= self.value
        if self.relation is Relation.GREATER_EQUAL:
            return total >= self.value
        return total == self.value

    def __eq__(self, other) -> bool:
        if not isinstance(other, LinearConstraint):
            return NotImplemented
        return (self.coefficients == other.coefficients and
                self.relation is other.relation and
                self.value == other.value)

    def __str__(self) -> str:
        terms = " + ".join(f"{c:g}*{v}" for v, c in sorted(self.coefficients.items()))
        return f"{terms or '0'} {self.relation.value} {self.value:g}"

    def __repr__(self) -> str:
        return f"LinearConstraint({self})"


class LinearConstraints:
    """Append-only ordered collection of linear constraints."""
    def __init__(self, constraints: Optional[Iterable[LinearConstraint]] = None):
        self._constraints: List[LinearConstraint] = list(constraints or [])

    def add(self, constraint: LinearConstraint) -> None:
        self._constraints.append(constraint)

    def add_all(self, constraints: Iterable[LinearConstraint]) -> None:
        self._constraints.extend(constraints)

    def __getitem__(self, index: int) -> LinearConstraint:
        return self._constraints[index]

    def __iter__(self) -> Iterator[LinearConstraint]:
        return iter(self._constraints)

    def __len__(self) -> int:
        return len(self._constraints)

    def __repr__(self) -> str:
        return f"LinearConstraints(n={len(self)})"
