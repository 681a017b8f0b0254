"""
Segments linking slices across one inter-section interval.

A segment is one of three kinds:

    END           one slice, the region's sequence terminates in `direction`
    CONTINUATION  source slice -> target slice
    BRANCH        source slice -> two target slices

The direction decides which section the targets live in. RIGHT segments flow
from a source in section s to targets in section s + 1, LEFT segments from a
source in section s to targets in section s - 1. Interval i is the gap between
sections i - 1 and i.
"""

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

import numpy as np

from .slices import Slice, combine_hashes


class Direction(Enum):
    LEFT = "left"
    RIGHT = "right"

    def opposite(self) -> 'Direction':
        return Direction.RIGHT if self is Direction.LEFT else Direction.LEFT


class SegmentType(Enum):
    END = "end"
    CONTINUATION = "continuation"
    BRANCH = "branch"


_NUM_SLICES = {
    SegmentType.END: 1,
    SegmentType.CONTINUATION: 2,
    SegmentType.BRANCH: 3,
}

_DIRECTION_CODES = {
    Direction.LEFT: 0x6C656674,
    Direction.RIGHT: 0x7269676874,
}


@dataclass(frozen=True, eq=False)
class Segment:
    """
    A hypothesis connecting one, two or three slices.

    `slices[0]` is the source slice, the remaining slices are the targets.
    Use the `end`, `continuation` and `branch` constructors.
    """
    id: int
    type: SegmentType
    direction: Direction
    slices: Tuple[Slice, ...]

    def __post_init__(self):
        expected = _NUM_SLICES[self.type]
        if len(self.slices) != expected:
            raise ValueError(
                f"A {self.type.value} segment needs {expected} slices, got {len(self.slices)}")
        step = 1 if self.direction is Direction.RIGHT else -1
        for target in self.slices[1:]:
            if target.section != self.slices[0].section + step:
                raise ValueError(
                    f"Target slice {target.id} in section {target.section} does not follow "
                    f"source slice {self.slices[0].id} in section {self.slices[0].section} "
                    f"in direction {self.direction.value}")

    @classmethod
    def end(cls, segment_id: int, direction: Direction, slice_: Slice) -> 'Segment':
        return cls(segment_id, SegmentType.END, direction, (slice_,))

    @classmethod
    def continuation(cls, segment_id: int, direction: Direction,
                     source: Slice, target: Slice) -> 'Segment':
        return cls(segment_id, SegmentType.CONTINUATION, direction, (source, target))

    @classmethod
    def branch(cls, segment_id: int, direction: Direction,
               source: Slice, target1: Slice, target2: Slice) -> 'Segment':
        return cls(segment_id, SegmentType.BRANCH, direction, (source, target1, target2))

    @property
    def source(self) -> Slice:
        return self.slices[0]

    @property
    def targets(self) -> Tuple[Slice, ...]:
        return self.slices[1:]

    @property
    def inter_section_interval(self) -> int:
        return self.source.section + (0 if self.direction is Direction.LEFT else 1)

    @property
    def left_slices(self) -> Tuple[Slice, ...]:
        """Slices in the lower section of the interval."""
        if self.direction is Direction.RIGHT:
            return (self.source,)
        return self.targets

    @property
    def right_slices(self) -> Tuple[Slice, ...]:
        """Slices in the higher section of the interval."""
        if self.direction is Direction.RIGHT:
            return self.targets
        return (self.source,)

    @property
    def size(self) -> int:
        return sum(slice_.size for slice_ in self.slices)

    @cached_property
    def center(self) -> np.ndarray:
        """Size-weighted mean of the slice centers."""
        if self.size == 0:
            return np.mean([slice_.center for slice_ in self.slices], axis=0)
        weighted = sum(slice_.center * slice_.size for slice_ in self.slices)
        return weighted / self.size

    @cached_property
    def hash_value(self) -> int:
        """
        Content hash of the segment.

        Continuations and branches hash the sorted member slice hashes, so the
        discovery order of the slices does not matter. Ends also hash their
        direction.
        """
        if self.type is SegmentType.END:
            return combine_hashes([self.source.hash_value, _DIRECTION_CODES[self.direction]])
        return combine_hashes(sorted(slice_.hash_value for slice_ in self.slices))

    def __repr__(self) -> str:
        ids = ", ".join(str(slice_.id) for slice_ in self.slices)
        return (f"Segment(id={self.id}, type={self.type.value}, "
                f"direction={self.direction.value}, slices=[{ids}])")


class Segments:
    """
    Collection of segments, kept separately by type.

    Iteration yields ends first, then continuations, then branches.
    """
    def __init__(self, segments: Optional[Iterable[Segment]] = None):
        self.ends: List[Segment] = []
        self.continuations: List[Segment] = []
        self.branches: List[Segment] = []
        self._by_id: Dict[int, Segment] = {}
        if segments is not None:
            self.add_all(segments)

    def add(self, segment: Segment) -> None:
        """
        Add a segment.

        Raises:
            ValueError: If a segment with the same id is already present
        """
        if segment.id in self._by_id:
            raise ValueError(f"Segment id {segment.id} is already part of this collection")
        self._by_id[segment.id] = segment
        if segment.type is SegmentType.END:
            self.ends.append(segment)
        elif segment.type is SegmentType.CONTINUATION:
            self.continuations.append(segment)
        elif segment.type is SegmentType.BRANCH:
            self.branches.append(segment)
        else:
            raise ValueError(f"Unknown segment type {segment.type}")

    def add_all(self, segments: Iterable[Segment]) -> None:
        for segment in segments:
            self.add(segment)

    def get(self, segment_id: int) -> Segment:
        return self._by_id[segment_id]

    def __contains__(self, segment_id: int) -> bool:
        return segment_id in self._by_id

    def __iter__(self) -> Iterator[Segment]:
        yield from self.ends
        yield from self.continuations
        yield from self.branches

    def __len__(self) -> int:
        return len(self._by_id)

    def intervals(self) -> Dict[int, 'Segments']:
        """Segments grouped by inter-section interval, in ascending order."""
        grouped: Dict[int, List[Segment]] = defaultdict(list)
        for segment in self:
            grouped[segment.inter_section_interval].append(segment)
        return {interval: Segments(grouped[interval]) for interval in sorted(grouped)}

    @property
    def num_inter_section_intervals(self) -> int:
        """Largest interval index plus one, 0 for an empty collection."""
        if len(self) == 0:
            return 0
        return max(s.inter_section_interval for s in self) + 1

    def slice_ids(self) -> Set[int]:
        return {slice_.id for segment in self for slice_ in segment.slices}

    def __repr__(self) -> str:
        return (f"Segments(ends={len(self.ends)}, continuations={len(self.continuations)}, "
                f"branches={len(self.branches)})")
