"""
Geometric comparisons between slices.

All measures operate on the pixel sets of the slices' components.
"""

from typing import Optional

import numpy as np

from .slices import Slice


def overlap(a: Slice, b: Slice) -> int:
    """Number of pixels two slices share."""
    return a.component.overlap(b.component)


def normalized_overlap(a: Slice, b: Slice, shared: Optional[int] = None) -> float:
    """
    Jaccard overlap |a & b| / |a | b|.

    Args:
        a: First slice
        b: Second slice
        shared: Precomputed overlap of a and b

    Returns:
        Overlap in [0, 1]; 1 for two empty slices
    """
    if shared is None:
        shared = overlap(a, b)
    total = a.size + b.size - shared
    if total <= 0:
        return 1.0
    return shared / total


def normalized_branch_overlap(source: Slice, target1: Slice, target2: Slice,
                              shared1: Optional[int] = None, shared2: Optional[int] = None) -> float:
    """
    Overlap of a source slice with the union of two disjoint targets, relative
    to the size of the union of all three.
    """
    if shared1 is None:
        shared1 = overlap(source, target1)
    if shared2 is None:
        shared2 = overlap(source, target2)
    shared = shared1 + shared2
    total = source.size + target1.size + target2.size - shared
    if total <= 0:
        return 1.0
    return shared / total


def similarity(a: Slice, b: Slice, shared: Optional[int] = None) -> float:
    """Overlap relative to the larger of two slices."""
    if shared is None:
        shared = overlap(a, b)
    largest = max(a.size, b.size)
    if largest == 0:
        return 1.0
    return shared / largest


def set_difference(a: Slice, b: Slice) -> float:
    """Number of pixels in exactly one of two slices, relative to their total size."""
    total = a.size + b.size
    if total == 0:
        return 0.0
    shared = overlap(a, b)
    return ((a.size - shared) + (b.size - shared)) / total


def size_ratio(a: Slice, b: Slice) -> float:
    """Size of the smaller slice over the size of the larger one."""
    largest = max(a.size, b.size)
    if largest == 0:
        return 1.0
    return min(a.size, b.size) / largest


def center_distance(a: Slice, b: Slice) -> float:
    """Euclidean distance between the centers of two slices."""
    return float(np.linalg.norm(a.center - b.center))
