"""
Assembly of the global integer linear program.

Every segment becomes one binary variable. Besides the explanation constraints
collected per interval, every slice gets a consistency constraint: the number
of selected segments using the slice on its right side has to equal the
number of selected segments using it on its left side.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

from ..core.constraints import LinearConstraint, LinearConstraints, Relation
from ..core.exceptions import EmptyProblemError, NoSuchSegment
from ..core.segments import Segment, Segments

logger = logging.getLogger(__name__)


class ProblemConfiguration:
    """Bijection between segment ids and variable indices of the problem."""
    def __init__(self):
        self._variables: Dict[int, int] = {}
        self._segment_ids: Dict[int, int] = {}

    def set_variable(self, segment: Segment, variable: int) -> None:
        """
        Map a segment to a variable index.

        Raises:
            ValueError: If the segment or the variable is already mapped elsewhere
        """
        if self._variables.get(segment.id, variable) != variable:
            raise ValueError(f"Segment {segment.id} is already mapped to variable "
                             f"{self._variables[segment.id]}")
        if self._segment_ids.get(variable, segment.id) != segment.id:
            raise ValueError(f"Variable {variable} is already used by segment "
                             f"{self._segment_ids[variable]}")
        self._variables[segment.id] = variable
        self._segment_ids[variable] = segment.id

    def get_variable(self, segment_id: int) -> int:
        """
        Raises:
            NoSuchSegment: If the segment is not part of the problem
        """
        try:
            return self._variables[segment_id]
        except KeyError:
            raise NoSuchSegment(f"Segment {segment_id} is not part of the problem") from None

    def get_segment_id(self, variable: int) -> int:
        """
        Raises:
            NoSuchSegment: If no segment is mapped to the variable
        """
        try:
            return self._segment_ids[variable]
        except KeyError:
            raise NoSuchSegment(f"No segment is mapped to variable {variable}") from None

    def has_segment(self, segment_id: int) -> bool:
        return segment_id in self._variables

    @property
    def num_variables(self) -> int:
        return len(self._segment_ids)

    def __len__(self) -> int:
        return self.num_variables


@dataclass
class Problem:
    """An assembled problem: all segments, all constraints, the variable mapping."""
    segments: Segments
    constraints: LinearConstraints
    configuration: ProblemConfiguration

    @property
    def num_variables(self) -> int:
        return self.configuration.num_variables


class ProblemAssembler:
    """Merge per-interval segments and constraints into a single problem."""

    def assemble(self,
                 segments: Sequence[Segments],
                 constraints: Sequence[LinearConstraints]) -> Problem:
        """
        Args:
            segments: Segments of every interval
            constraints: Constraints over segment ids of every interval

        Returns:
            The assembled problem; variables are numbered ends first, then
            continuations, then branches

        Raises:
            EmptyProblemError: If there are no segments at all
        """
        all_segments = Segments()
        for interval_segments in segments:
            all_segments.add_all(interval_segments)
        if len(all_segments) == 0:
            raise EmptyProblemError("Can not assemble a problem without segments")

        configuration = ProblemConfiguration()
        all_constraints = LinearConstraints()
        all_constraints.add_all(self._consistency_constraints(all_segments, configuration))

        num_remapped = 0
        for interval_constraints in constraints:
            for constraint in interval_constraints:
                all_constraints.add(self._remap(constraint, configuration))
                num_remapped += 1

        logger.info(f"Assembled problem with {configuration.num_variables} variables and "
                    f"{len(all_constraints)} constraints ({num_remapped} explanation constraints)")
        return Problem(all_segments, all_constraints, configuration)

    def _consistency_constraints(self, segments: Segments,
                                 configuration: ProblemConfiguration) -> List[LinearConstraint]:
        slice_rows: Dict[int, int] = {}
        for segment in segments:
            for slice_ in segment.slices:
                slice_rows.setdefault(slice_.id, len(slice_rows))

        rows = [LinearConstraint(relation=Relation.EQUAL, value=0.0) for _ in slice_rows]

        for variable, segment in enumerate(segments):
            configuration.set_variable(segment, variable)
            for slice_ in segment.left_slices:
                rows[self._row(slice_rows, slice_.id)].add_coefficient(variable, -1.0)
            for slice_ in segment.right_slices:
                rows[self._row(slice_rows, slice_.id)].add_coefficient(variable, 1.0)

        return rows

    @staticmethod
    def _row(slice_rows: Dict[int, int], slice_id: int) -> int:
        if slice_id not in slice_rows:
            logger.error(f"Slice {slice_id} has no consistency constraint")
            return 0
        return slice_rows[slice_id]

    @staticmethod
    def _remap(constraint: LinearConstraint, configuration: ProblemConfiguration) -> LinearConstraint:
        coefficients = {}
        for segment_id, coefficient in constraint.coefficients.items():
            try:
                coefficients[configuration.get_variable(segment_id)] = coefficient
            except NoSuchSegment as e:
                logger.warning(f"Dropping coefficient from constraint '{constraint}': {e}")
        return LinearConstraint(coefficients, constraint.relation, constraint.value)
