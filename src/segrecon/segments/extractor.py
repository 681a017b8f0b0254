"""
Candidate segment extraction between two adjacent sections.

All plausible segments are enumerated; choosing a consistent subset is left to
the integer linear program assembled later.
"""

import logging
from collections import defaultdict
from itertools import combinations
from typing import Dict, List, Optional, Set, Tuple

from ..core.components import intersect_boxes
from ..core.constraints import LinearConstraint, LinearConstraints
from ..core.features import normalized_branch_overlap, normalized_overlap, size_ratio
from ..core.ids import IdAllocator
from ..core.parameters import SegmentParameters
from ..core.segments import Direction, Segment, Segments
from ..core.slices import Slice, Slices

logger = logging.getLogger(__name__)

OverlapMap = Dict[int, List[Tuple[Slice, int]]]


class SegmentExtractor:
    """
    Enumerate ends, continuations and branches between two sections.

    Every slice of the previous section gets an end in both directions.
    Continuations connect overlapping slices whose normalized overlap reaches
    the continuation threshold, branches connect a slice with two
    non-conflicting slices of the other section.

    Explanation constraints over slice ids are translated into constraints over
    segment ids: each slice is replaced by all segments that use the slice on
    their left side.

    Args:
        ids: Allocator for segment ids
        parameters: Thresholds for continuations and branches
    """
    def __init__(self, ids: IdAllocator, parameters: Optional[SegmentParameters] = None):
        self.ids = ids
        self.parameters = parameters or SegmentParameters()

    def extract(self,
                previous_slices: Slices,
                next_slices: Slices,
                previous_constraints: Optional[LinearConstraints] = None,
                next_constraints: Optional[LinearConstraints] = None,
                last_interval: bool = False) -> Tuple[Segments, LinearConstraints]:
        """
        Extract the segments between two sections.

        Args:
            previous_slices: Slices of the lower section
            next_slices: Slices of the higher section
            previous_constraints: Explanation constraints of the lower section
            next_constraints: Explanation constraints of the higher section,
                only used on the last interval
            last_interval: Whether `next_slices` is the last section of the stack; if
                so its slices get ends as well

        Returns:
            Tuple of the segments and the explanation constraints over segment ids
        """
        segments = Segments()
        left_usage: Dict[int, List[int]] = defaultdict(list)

        def add(segment: Segment) -> None:
            segments.add(segment)
            for slice_ in segment.left_slices:
                left_usage[slice_.id].append(segment.id)

        for slice_ in previous_slices:
            add(Segment.end(self.ids.next_id(), Direction.LEFT, slice_))
            add(Segment.end(self.ids.next_id(), Direction.RIGHT, slice_))
        if last_interval:
            for slice_ in next_slices:
                add(Segment.end(self.ids.next_id(), Direction.LEFT, slice_))
                add(Segment.end(self.ids.next_id(), Direction.RIGHT, slice_))

        previous_overlaps, next_overlaps = self._overlap_map(previous_slices, next_slices)

        for segment in self._continuations(previous_slices, next_slices, previous_overlaps, next_overlaps):
            add(segment)

        if not self.parameters.disable_branches:
            for segment in self._branches(previous_slices, next_slices, previous_overlaps, Direction.RIGHT):
                add(segment)
            for segment in self._branches(next_slices, previous_slices, next_overlaps, Direction.LEFT):
                add(segment)

        constraints = LinearConstraints()
        for constraint in previous_constraints or []:
            constraints.add(self._to_segment_space(constraint, left_usage))
        if last_interval:
            for constraint in next_constraints or []:
                constraints.add(self._to_segment_space(constraint, left_usage))

        logger.debug(f"Extracted {segments} with {len(constraints)} constraints")
        return segments, constraints

    @staticmethod
    def _overlap_map(previous_slices: Slices, next_slices: Slices) -> Tuple[OverlapMap, OverlapMap]:
        """Overlapping slices of the other section for each slice, largest overlap first."""
        previous_overlaps: OverlapMap = defaultdict(list)
        next_overlaps: OverlapMap = defaultdict(list)
        next_list = list(next_slices)
        for prev_slice in previous_slices:
            for next_slice in next_list:
                if intersect_boxes(prev_slice.bounding_box, next_slice.bounding_box) is None:
                    continue
                shared = prev_slice.component.overlap(next_slice.component)
                if shared > 0:
                    previous_overlaps[prev_slice.id].append((next_slice, shared))
                    next_overlaps[next_slice.id].append((prev_slice, shared))
        for overlaps in (previous_overlaps, next_overlaps):
            for partners in overlaps.values():
                partners.sort(key=lambda pair: (-pair[1], pair[0].id))
        return previous_overlaps, next_overlaps

    def _continuations(self, previous_slices: Slices, next_slices: Slices,
                       previous_overlaps: OverlapMap, next_overlaps: OverlapMap) -> List[Segment]:
        threshold = self.parameters.continuation_overlap_threshold
        pairs: List[Tuple[Slice, Slice]] = []
        seen: Set[Tuple[int, int]] = set()

        for prev_slice in previous_slices:
            for next_slice, shared in previous_overlaps.get(prev_slice.id, []):
                if normalized_overlap(prev_slice, next_slice, shared) >= threshold:
                    pairs.append((prev_slice, next_slice))
                    seen.add((prev_slice.id, next_slice.id))

        # best-overlapping partners for slices with too few continuations
        minimum = self.parameters.min_continuation_partners
        if minimum > 0:
            for prev_slice in previous_slices:
                self._ensure_partners(prev_slice, previous_overlaps, minimum, seen, pairs, True)
            for next_slice in next_slices:
                self._ensure_partners(next_slice, next_overlaps, minimum, seen, pairs, False)

        return [Segment.continuation(self.ids.next_id(), Direction.RIGHT, p, n) for p, n in pairs]

    @staticmethod
    def _ensure_partners(slice_: Slice, overlaps: OverlapMap, minimum: int,
                         seen: Set[Tuple[int, int]], pairs: List[Tuple[Slice, Slice]],
                         is_previous: bool) -> None:
        def key(other: Slice) -> Tuple[int, int]:
            return (slice_.id, other.id) if is_previous else (other.id, slice_.id)

        partners = overlaps.get(slice_.id, [])
        num_partners = sum(1 for other, _ in partners if key(other) in seen)
        for other, _ in partners:
            if num_partners >= minimum:
                break
            if key(other) in seen:
                continue
            seen.add(key(other))
            pairs.append((slice_, other) if is_previous else (other, slice_))
            num_partners += 1

    def _branches(self, sources: Slices, targets: Slices, overlaps: OverlapMap,
                  direction: Direction) -> List[Segment]:
        branches = []
        for source in sources:
            for (target1, shared1), (target2, shared2) in combinations(overlaps.get(source.id, []), 2):
                if targets.are_conflicting(target1.id, target2.id):
                    continue
                overlap = normalized_branch_overlap(source, target1, target2, shared1, shared2)
                if overlap < self.parameters.branch_overlap_threshold:
                    continue
                if size_ratio(target1, target2) < self.parameters.branch_size_ratio_threshold:
                    continue
                first, second = sorted((target1, target2), key=lambda s: s.id)
                branches.append(Segment.branch(self.ids.next_id(), direction, source, first, second))
        return branches

    @staticmethod
    def _to_segment_space(constraint: LinearConstraint,
                          left_usage: Dict[int, List[int]]) -> LinearConstraint:
        coefficients = {}
        for slice_id, coefficient in constraint.coefficients.items():
            segment_ids = left_usage.get(slice_id)
            if not segment_ids:
                logger.warning(f"Slice {slice_id} of constraint '{constraint}' is not used by any segment")
                continue
            for segment_id in segment_ids:
                coefficients[segment_id] = coefficient
        return LinearConstraint(coefficients, constraint.relation, constraint.value)
