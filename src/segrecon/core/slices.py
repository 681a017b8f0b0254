"""
Slices and slice collections.

A slice is one candidate region of one section. Slices are created once by a
slice extractor and never change afterwards; collections of slices own them
and keep track of which slices exclude each other.
"""

import hashlib
import struct
from collections import defaultdict
from dataclasses import dataclass
from functools import cached_property
from typing import Dict, Iterable, Iterator, List, Optional, Set

import numpy as np

from .components import BoundingBox, ConnectedComponent


def combine_hashes(values: Iterable[int]) -> int:
    """Order-dependent 64 bit hash of a sequence of 64 bit hashes."""
    digest = hashlib.blake2b(digest_size=8)
    for value in values:
        digest.update(struct.pack("<Q", value & 0xFFFFFFFFFFFFFFFF))
    return int.from_bytes(digest.digest(), "little")


@dataclass(frozen=True, eq=False)
class Slice:
    """A candidate region in a single section."""
    id: int
    section: int
    component: ConnectedComponent

    @property
    def size(self) -> int:
        return self.component.size

    @property
    def center(self) -> np.ndarray:
        return self.component.center

    @property
    def bounding_box(self) -> BoundingBox:
        return self.component.bounding_box

    @property
    def value(self) -> float:
        return self.component.value

    @cached_property
    def hash_value(self) -> int:
        """Content hash over the section and the pixel set."""
        digest = hashlib.blake2b(digest_size=8)
        digest.update(struct.pack("<q", self.section))
        digest.update(self.component.sorted_pixels().tobytes())
        return int.from_bytes(digest.digest(), "little")

    def intersect(self, other: 'Slice', new_id: int) -> 'Slice':
        """Derive a new slice from the pixels shared with another slice."""
        return Slice(new_id, self.section, self.component.intersect(other.component))

    def __repr__(self) -> str:
        return f"Slice(id={self.id}, section={self.section}, size={self.size})"


class Slices:
    """
    Ordered collection of slices, addressable by id.

    Besides the slices themselves the collection stores which slices are in
    conflict, i.e. can not be selected together.
    """
    def __init__(self, slices: Optional[Iterable[Slice]] = None):
        self._slices: Dict[int, Slice] = {}
        self._conflicts: Dict[int, Set[int]] = defaultdict(set)
        if slices is not None:
            self.add_all(slices)

    def add(self, slice_: Slice) -> None:
        """
        Add a slice.

        Raises:
            ValueError: If a slice with the same id is already present
        """
        if slice_.id in self._slices:
            raise ValueError(f"Slice id {slice_.id} is already part of this collection")
        self._slices[slice_.id] = slice_

    def add_all(self, slices: Iterable[Slice]) -> None:
        for slice_ in slices:
            self.add(slice_)

    def get(self, slice_id: int) -> Slice:
        """
        Get a slice by id.

        Raises:
            KeyError: If the id is unknown
        """
        try:
            return self._slices[slice_id]
        except KeyError:
            raise KeyError(f"No slice with id {slice_id}") from None

    def ids(self) -> List[int]:
        return list(self._slices.keys())

    def add_conflicts(self, slice_ids: Iterable[int]) -> None:
        """Mark all given slices as mutually conflicting."""
        slice_ids = list(slice_ids)
        for slice_id in slice_ids:
            for other in slice_ids:
                if other != slice_id:
                    self._conflicts[slice_id].add(other)

    def are_conflicting(self, slice_id_1: int, slice_id_2: int) -> bool:
        """True if both slices are known and marked as conflicting."""
        return slice_id_2 in self._conflicts.get(slice_id_1, ())

    def __contains__(self, slice_id: int) -> bool:
        return slice_id in self._slices

    def __iter__(self) -> Iterator[Slice]:
        return iter(list(self._slices.values()))

    def __len__(self) -> int:
        return len(self._slices)

    def __repr__(self) -> str:
        return f"Slices(n={len(self)})"
