"""
Slices from stacks of independent segmentation hypotheses.

Each hypothesis ("level") of a section is a binary image whose connected
components are candidate slices. Levels may overlap arbitrarily. Near-identical
slices of later levels are merged into the earlier slice, and every pair of
remaining overlapping slices from different levels gets an exclusivity
constraint.
"""

import logging
from typing import Iterator, List, Optional, Sequence, Set, Tuple

import numpy as np

from ..core.components import BoundingBox, components_from_image
from ..core.constraints import LinearConstraint, LinearConstraints, Relation
from ..core.features import similarity
from ..core.ids import IdAllocator
from ..core.parameters import SliceParameters
from ..core.slices import Slice, Slices

logger = logging.getLogger(__name__)


class SliceCollector:
    """
    Merge the slices of several hypothesis levels of one section.

    Levels are processed in order. A slice of a lower-priority (later) level
    that covers the same region as a slice of an earlier level is a duplicate:
    it is dropped and the earlier slice shrinks to the pixels both share.
    Passes are repeated until no more duplicates are found.

    Args:
        similarity_threshold: Slices whose overlap relative to the larger one
            reaches this value are considered duplicates
        set_difference_threshold: Duplicates must also differ in fewer pixels
            than this
    """
    def __init__(self, similarity_threshold: float = 0.75, set_difference_threshold: int = 200):
        self.similarity_threshold = similarity_threshold
        self.set_difference_threshold = set_difference_threshold

    def collect(self, levels: Sequence[Sequence[Slice]]) -> Tuple[Slices, LinearConstraints]:
        """
        Args:
            levels: Slices of each hypothesis level, highest priority first

        Returns:
            Tuple of the kept slices and the exclusivity constraints over slice ids
        """
        levels = [list(level) for level in levels]
        num_slices = sum(len(level) for level in levels)
        if num_slices == 0:
            return Slices(), LinearConstraints()

        previous_count = None
        while previous_count != num_slices:
            previous_count = num_slices
            levels = self._remove_duplicates_pass(levels)
            num_slices = sum(len(level) for level in levels)

        box = _union_box([slice_ for level in levels for slice_ in level])
        id_maps = [self._id_map(level, box) for level in levels]

        slices = Slices(slice_ for level in levels for slice_ in level)
        constraints = LinearConstraints()

        for level_index, level in enumerate(levels):
            for slice_ in level:
                num_overlaps = 0
                for sub_level in range(level_index + 1, len(levels)):
                    for other, shared in self._overlapping(slice_, id_maps[sub_level], levels[sub_level], box):
                        constraints.add(LinearConstraint(
                            {slice_.id: 1.0, other.id: 1.0}, Relation.LESS_EQUAL, 1.0))
                        slices.add_conflicts([slice_.id, other.id])
                        num_overlaps += 1
                # picked at most once, even without overlapping slices below
                if num_overlaps == 0:
                    constraints.add(LinearConstraint({slice_.id: 1.0}, Relation.LESS_EQUAL, 1.0))

        logger.debug(f"Collected {len(slices)} slices, {len(constraints)} constraints")
        return slices, constraints

    def _remove_duplicates_pass(self, levels: List[List[Slice]]) -> List[List[Slice]]:
        """Drop duplicates of earlier slices and intersect each kept slice with its duplicates."""
        levels = [list(level) for level in levels]
        box = _union_box([slice_ for level in levels for slice_ in level])
        id_maps = [self._id_map(level, box) for level in levels]
        removed: Set[int] = set()

        for level_index, level in enumerate(levels):
            for position, slice_ in enumerate(level):
                if slice_.id in removed:
                    continue
                merged = slice_
                for sub_level in range(level_index + 1, len(levels)):
                    for other, shared in self._overlapping(slice_, id_maps[sub_level], levels[sub_level], box):
                        if other.id in removed or not self._is_duplicate(slice_, other, shared):
                            continue
                        logger.debug(f"Slice {other.id} duplicates slice {slice_.id}")
                        removed.add(other.id)
                        merged = merged.intersect(other, slice_.id)
                level[position] = merged

        return [[s for s in level if s.id not in removed] for level in levels]

    def _is_duplicate(self, slice_: Slice, other: Slice, shared: int) -> bool:
        if similarity(slice_, other, shared) < self.similarity_threshold:
            return False
        differing = (slice_.size - shared) + (other.size - shared)
        return differing < self.set_difference_threshold

    @staticmethod
    def _id_map(level: Sequence[Slice], box: BoundingBox) -> np.ndarray:
        """Raster of each pixel's slice index within the level, -1 for none."""
        min_x, min_y, max_x, max_y = box
        id_map = np.full((max_y - min_y, max_x - min_x), -1, dtype=np.int64)
        for index, slice_ in enumerate(level):
            pixels = slice_.component.pixels
            id_map[pixels[:, 1] - min_y, pixels[:, 0] - min_x] = index
        return id_map

    @staticmethod
    def _overlapping(slice_: Slice, id_map: np.ndarray, level: Sequence[Slice],
                     box: BoundingBox) -> Iterator[Tuple[Slice, int]]:
        """Slices of another level under this slice's pixels, with the overlap."""
        pixels = slice_.component.pixels
        values = id_map[pixels[:, 1] - box[1], pixels[:, 0] - box[0]]
        values = values[values >= 0]
        indices, counts = np.unique(values, return_counts=True)
        for index, count in zip(indices, counts):
            yield level[int(index)], int(count)


class StackSliceExtractor:
    """
    Extract the slices of one section from a stack of binary hypothesis images.

    Args:
        section: Section index assigned to the slices
        ids: Allocator for slice ids
        parameters: Slice parameters (similarity threshold, minimal slice size)
    """
    def __init__(self, section: int, ids: IdAllocator,
                 parameters: Optional[SliceParameters] = None):
        self.section = section
        self.ids = ids
        self.parameters = parameters or SliceParameters()

    def extract(self, hypotheses: Sequence[np.ndarray]) -> Tuple[Slices, LinearConstraints]:
        """
        Args:
            hypotheses: Binary images of the section, highest priority first

        Returns:
            Tuple of the slices and their exclusivity constraints over slice ids
        """
        levels = []
        for image in hypotheses:
            components = components_from_image(np.asarray(image) != 0,
                                               min_size=self.parameters.min_slice_size)
            levels.append([Slice(self.ids.next_id(), self.section, c) for c in components])

        logger.debug(f"Section {self.section}: {sum(len(l) for l in levels)} slice candidates "
                     f"in {len(levels)} hypotheses")
        collector = SliceCollector(self.parameters.similarity_threshold,
                                   self.parameters.set_difference_threshold)
        return collector.collect(levels)


def _union_box(slices: Sequence[Slice]) -> BoundingBox:
    boxes = np.array([s.bounding_box for s in slices])
    return (int(boxes[:, 0].min()), int(boxes[:, 1].min()),
            int(boxes[:, 2].max()), int(boxes[:, 3].max()))
