"""
Gold standard selection for training.

The gold standard is the consistent subset of candidate segments that best
agrees with a ground-truth reconstruction. It is found by solving the
assembled problem with an objective rewarding pixel agreement with the
ground truth; all unselected candidates serve as negative samples.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.segments import Segment, Segments
from ..core.slices import Slice
from ..graph.neurons import NeuronExtractor
from ..inference.objective import ObjectiveGenerator
from ..inference.problem import Problem
from ..inference.reconstructor import Reconstructor
from ..inference.solver import LinearSolver

logger = logging.getLogger(__name__)


class GoldStandardCostFunction:
    """
    Cost of a candidate segment given the ground truth.

    The candidate is compared to every group of connected ground-truth
    segments in the same interval that overlaps it. Its cost is the lowest
    `sum of sizes - 3 * overlap` of both sides, or just the sum of its slice
    sizes if nothing overlaps.

    Args:
        ground_truth: Ground-truth segments of the whole stack
    """
    def __init__(self, ground_truth: Segments):
        self._by_interval = ground_truth.intervals()
        self._neuron_extractor = NeuronExtractor()

    def costs(self, ends: Sequence[Segment], continuations: Sequence[Segment],
              branches: Sequence[Segment]) -> List[float]:
        return [self.segment_costs(segment) for segment in list(ends) + list(continuations) + list(branches)]

    def segment_costs(self, segment: Segment) -> float:
        overlapping = [
            gt_segment for gt_segment in self._by_interval.get(segment.inter_section_interval, ())
            if _overlaps(segment, gt_segment)
        ]
        min_costs = float(segment.size)
        if not overlapping:
            return min_costs
        for tree in self._neuron_extractor.extract(overlapping):
            min_costs = min(min_costs, _matching_costs(segment, list(tree)))
        return min_costs


class GoldStandardExtractor:
    """
    Args:
        solver: Solver for the gold standard problem
    """
    def __init__(self, solver: Optional[LinearSolver] = None):
        self.solver = solver or LinearSolver()

    def extract(self, ground_truth: Segments, problem: Problem) -> Tuple[Segments, Segments]:
        """
        Select the gold standard among the candidates of a problem.

        Args:
            ground_truth: Ground-truth segments
            problem: Assembled problem over all candidate segments

        Returns:
            Tuple of gold standard segments and negative samples
        """
        objective = ObjectiveGenerator([GoldStandardCostFunction(ground_truth)]).generate(
            problem.segments, problem.configuration)
        solution = self.solver.solve(objective, problem.constraints)
        gold_standard, negative = Reconstructor().reconstruct(
            solution, problem.segments, problem.configuration)
        logger.info(f"Gold standard: {len(gold_standard)} segments, "
                    f"negative samples: {len(negative)} segments")
        return gold_standard, negative


def gold_standard_labels(problem: Problem, gold_standard: Segments) -> List[Tuple[int, int]]:
    """
    Label of every variable of a problem.

    Returns:
        (1 if in the gold standard else 0, segment hash) for each variable, in
        variable order
    """
    labels = []
    seen: Dict[int, int] = {}
    for variable in range(problem.num_variables):
        segment = problem.segments.get(problem.configuration.get_segment_id(variable))
        if segment.hash_value in seen:
            logger.warning(f"Segments {seen[segment.hash_value]} and {segment.id} have the same "
                           f"hash {segment.hash_value}")
        seen[segment.hash_value] = segment.id
        labels.append((1 if segment.id in gold_standard else 0, segment.hash_value))
    return labels


def _overlaps(a: Segment, b: Segment) -> bool:
    for a_slices, b_slices in ((a.left_slices, b.left_slices), (a.right_slices, b.right_slices)):
        for a_slice in a_slices:
            for b_slice in b_slices:
                if a_slice.component.overlap(b_slice.component) > 0:
                    return True
    return False


def _matching_costs(segment: Segment, gt_segments: List[Segment]) -> float:
    gt_left = [s for gt_segment in gt_segments for s in gt_segment.left_slices]
    gt_right = [s for gt_segment in gt_segments for s in gt_segment.right_slices]

    left_sum = _sum_sizes(segment.left_slices) + _sum_sizes(gt_left)
    right_sum = _sum_sizes(segment.right_slices) + _sum_sizes(gt_right)
    left_overlap = _overlap(segment.left_slices, gt_left)
    right_overlap = _overlap(segment.right_slices, gt_right)

    # number of differing pixels minus overlap
    return float((left_sum + right_sum) - 3 * (left_overlap + right_overlap))


def _sum_sizes(slices: Sequence[Slice]) -> int:
    return sum(s.size for s in slices)


def _overlap(a_slices: Sequence[Slice], b_slices: Sequence[Slice]) -> int:
    return sum(a.component.overlap(b.component) for a in a_slices for b in b_slices)
