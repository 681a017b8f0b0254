"""
Segments from ground-truth label stacks.

Ground-truth slices carry the label of the neuron they belong to. Between two
adjacent sections, slices with equal labels are matched greedily: candidate
branches and continuations are sorted by the distance of their slice centers
and accepted while all of their slices are still unexplained on the required
side. Whatever is left over terminates with an end segment.
"""

import logging
from collections import defaultdict
from itertools import combinations
from typing import Dict, List, Optional, Sequence, Set

import numpy as np

from ..core.components import components_from_image
from ..core.features import center_distance, set_difference
from ..core.ids import IdAllocator
from ..core.parameters import GroundTruthParameters
from ..core.segments import Direction, Segment, Segments
from ..core.slices import Slice, Slices

logger = logging.getLogger(__name__)


class GroundTruthSegmentExtractor:
    """
    Greedy matching of labeled slices between two adjacent sections.

    Args:
        ids: Allocator for segment ids
        parameters: Distance cutoff and branch set-difference limit
    """
    def __init__(self, ids: IdAllocator, parameters: Optional[GroundTruthParameters] = None):
        self.ids = ids
        self.parameters = parameters or GroundTruthParameters()

    def extract(self, previous_slices: Slices, next_slices: Slices) -> Segments:
        """
        Match the slices of two sections.

        Every slice ends up in exactly one segment on each side of the
        interval: either in a branch, a continuation or an end.

        Returns:
            The accepted segments
        """
        previous_groups = _group_by_label(previous_slices)
        next_groups = _group_by_label(next_slices)

        segments = Segments()
        for label in sorted(set(previous_groups) | set(next_groups)):
            self._match(previous_groups.get(label, []), next_groups.get(label, []), label, segments)

        logger.debug(f"Ground truth matching produced {segments}")
        return segments

    def _match(self, previous: List[Slice], next_: List[Slice], label: float,
               segments: Segments) -> None:
        remaining = {
            Direction.RIGHT: {s.id for s in previous},
            Direction.LEFT: {s.id for s in next_},
        }

        continuations = sorted(
            ((center_distance(p, n), p.id, n.id), p, n)
            for p in previous for n in next_
        )
        branches = sorted(
            [((center_distance(p, n1) + center_distance(p, n2), p.id, n1.id, n2.id),
              Direction.RIGHT, p, n1, n2)
             for p in previous for n1, n2 in combinations(next_, 2)] +
            [((center_distance(n, p1) + center_distance(n, p2), n.id, p1.id, p2.id),
              Direction.LEFT, n, p1, p2)
             for n in next_ for p1, p2 in combinations(previous, 2)],
            key=lambda candidate: candidate[0]
        )

        for _, direction, source, target1, target2 in branches:
            if self._try_branch(direction, source, target1, target2, remaining):
                segments.add(Segment.branch(self.ids.next_id(), direction, source, target1, target2))

        for _, prev_slice, next_slice in continuations:
            if self._try_continuation(prev_slice, next_slice, remaining):
                segments.add(Segment.continuation(self.ids.next_id(), Direction.RIGHT,
                                                  prev_slice, next_slice))

        unexplained = 0
        for prev_slice in previous:
            if prev_slice.id in remaining[Direction.RIGHT]:
                segments.add(Segment.end(self.ids.next_id(), Direction.RIGHT, prev_slice))
                unexplained += 1
        for next_slice in next_:
            if next_slice.id in remaining[Direction.LEFT]:
                segments.add(Segment.end(self.ids.next_id(), Direction.LEFT, next_slice))
                unexplained += 1

        if unexplained and previous and next_:
            logger.warning(f"Label {label:g}: {unexplained} slices could not be matched "
                           f"across the interval and end there")

    def _try_continuation(self, prev_slice: Slice, next_slice: Slice,
                            remaining: Dict[Direction, Set[int]]) -> bool:
        if prev_slice.id not in remaining[Direction.RIGHT]:
            return False
        if next_slice.id not in remaining[Direction.LEFT]:
            return False
        if center_distance(prev_slice, next_slice) > self.parameters.max_segment_distance:
            return False
        remaining[Direction.RIGHT].discard(prev_slice.id)
        remaining[Direction.LEFT].discard(next_slice.id)
        return True

    def _try_branch(self, direction: Direction, source: Slice, target1: Slice, target2: Slice,
                      remaining: Dict[Direction, Set[int]]) -> bool:
        source_side = remaining[direction]
        target_side = remaining[direction.opposite()]
        if source.id not in source_side:
            return False
        if target1.id not in target_side or target2.id not in target_side:
            return False
        for target in (target1, target2):
            if set_difference(source, target) > self.parameters.max_branch_set_difference:
                return False
            if center_distance(source, target) > self.parameters.max_segment_distance:
                return False
        source_side.discard(source.id)
        target_side.discard(target1.id)
        target_side.discard(target2.id)
        return True


class GroundTruthExtractor:
    """
    Ground-truth segments of a whole label stack.

    Slices of the first section are opened with left ends, slices of the last
    section closed with right ends, so the result is a consistent selection of
    segments.

    Args:
        slice_ids: Allocator for slice ids
        segment_ids: Allocator for segment ids
        parameters: Greedy matching parameters
        min_slice_size: Labeled regions smaller than this are ignored
    """
    def __init__(self, slice_ids: IdAllocator, segment_ids: IdAllocator,
                 parameters: Optional[GroundTruthParameters] = None,
                 min_slice_size: int = 0):
        self.slice_ids = slice_ids
        self.segment_ids = segment_ids
        self.parameters = parameters or GroundTruthParameters()
        self.min_slice_size = min_slice_size

    def slices_from_labels(self, label_images: Sequence[np.ndarray]) -> List[Slices]:
        """
        Slices of every section of a label stack.

        Args:
            label_images: One 2D label image per section, 0 is background

        Returns:
            One Slices collection per section
        """
        sections = []
        for section, image in enumerate(label_images):
            components = components_from_image(image, background=0, min_size=self.min_slice_size)
            sections.append(Slices(Slice(self.slice_ids.next_id(), section, c) for c in components))
        return sections

    def extract(self, sections: Sequence[Slices]) -> Segments:
        """
        Args:
            sections: Labeled slices of each section, in section order

        Returns:
            Ground-truth segments of all intervals, including the boundary ends
        """
        segments = Segments()
        if not sections:
            return segments

        for slice_ in sections[0]:
            segments.add(Segment.end(self.segment_ids.next_id(), Direction.LEFT, slice_))

        matcher = GroundTruthSegmentExtractor(self.segment_ids, self.parameters)
        for previous_slices, next_slices in zip(sections[:-1], sections[1:]):
            segments.add_all(matcher.extract(previous_slices, next_slices))

        for slice_ in sections[-1]:
            segments.add(Segment.end(self.segment_ids.next_id(), Direction.RIGHT, slice_))

        logger.info(f"Extracted ground truth: {segments}")
        return segments


def _group_by_label(slices: Slices) -> Dict[float, List[Slice]]:
    groups: Dict[float, List[Slice]] = defaultdict(list)
    for slice_ in slices:
        groups[slice_.value].append(slice_)
    return groups
