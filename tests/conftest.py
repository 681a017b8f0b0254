"""Shared test fixtures."""

import numpy as np
import pytest

from segrecon.core.components import ConnectedComponent
from segrecon.core.ids import IdAllocator
from segrecon.core.slices import Slice, Slices


def rect(x, y, width, height, value=1.0):
    """Rectangular component covering [x, x + width) x [y, y + height)."""
    return ConnectedComponent.from_mask(np.ones((height, width), dtype=bool), (x, y), value)


def make_slice(slice_id, section, x, y, width, height, value=1.0):
    return Slice(slice_id, section, rect(x, y, width, height, value))


@pytest.fixture
def ids():
    return IdAllocator()


@pytest.fixture
def branching_stack():
    """
    Three sections of one neuron splitting and merging again.

    Section 0 holds A (10x10), section 1 holds B (left half of A) and C (right
    part of A, separated from B by a one pixel gap), section 2 holds D, equal
    to A.
    """
    a = make_slice(0, 0, 0, 0, 10, 10)
    b = make_slice(1, 1, 0, 0, 5, 10)
    c = make_slice(2, 1, 6, 0, 4, 10)
    d = make_slice(3, 2, 0, 0, 10, 10)
    return {
        "a": a, "b": b, "c": c, "d": d,
        "sections": [Slices([a]), Slices([b, c]), Slices([d])],
    }


@pytest.fixture
def branching_volume():
    """Binary (3, 10, 10) volume with the same layout as branching_stack."""
    volume = np.zeros((3, 10, 10), dtype=np.uint8)
    volume[0] = 1
    volume[1, :, 0:5] = 1
    volume[1, :, 6:10] = 1
    volume[2] = 1
    return volume
