"""
Connected 2D image regions.

A ConnectedComponent is the pixel-level payload of a slice: an immutable list
of (x, y) pixel coordinates together with the intensity or label value of the
region it was extracted from.
"""

import logging
from functools import cached_property
from typing import List, Optional, Tuple

import numpy as np
from scipy import ndimage

logger = logging.getLogger(__name__)

BoundingBox = Tuple[int, int, int, int]


class ConnectedComponent:
    """
    Immutable set of pixels of one 2D region.

    Args:
        pixels: Integer array of shape (N, 2) holding unique (x, y) coordinates
        value: Intensity or label value of the region
    """
    def __init__(self, pixels: np.ndarray, value: float = 0.0):
        pixels = np.asarray(pixels, dtype=np.int64)
        if pixels.size == 0:
            pixels = pixels.reshape(0, 2)
        if pixels.ndim != 2 or pixels.shape[1] != 2:
            raise ValueError(f"Pixels must have shape (N, 2), got {pixels.shape}")
        pixels.setflags(write=False)
        self._pixels = pixels
        self.value = float(value)

    @classmethod
    def from_mask(cls, mask: np.ndarray, offset: Tuple[int, int] = (0, 0),
                  value: float = 1.0) -> 'ConnectedComponent':
        """
        Create a component from a boolean mask indexed as mask[y, x].

        Args:
            mask: 2D boolean array
            offset: (x, y) position of mask[0, 0] in section coordinates
            value: Value of the region
        """
        ys, xs = np.nonzero(mask)
        pixels = np.stack([xs + offset[0], ys + offset[1]], axis=1)
        return cls(pixels, value)

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    @property
    def size(self) -> int:
        return int(self._pixels.shape[0])

    def __len__(self) -> int:
        return self.size

    @cached_property
    def center(self) -> np.ndarray:
        """Mean pixel position as float array (x, y)."""
        if self.size == 0:
            return np.zeros(2)
        return self._pixels.mean(axis=0)

    @cached_property
    def bounding_box(self) -> BoundingBox:
        """Half-open box (min_x, min_y, max_x, max_y)."""
        if self.size == 0:
            return (0, 0, 0, 0)
        min_x, min_y = self._pixels.min(axis=0)
        max_x, max_y = self._pixels.max(axis=0)
        return (int(min_x), int(min_y), int(max_x) + 1, int(max_y) + 1)

    def sorted_pixels(self) -> np.ndarray:
        """Pixels ordered by x, then y."""
        order = np.lexsort((self._pixels[:, 1], self._pixels[:, 0]))
        return np.ascontiguousarray(self._pixels[order])

    def _shared_pixels(self, other: 'ConnectedComponent') -> np.ndarray:
        box = intersect_boxes(self.bounding_box, other.bounding_box)
        if box is None:
            return np.zeros((0, 2), dtype=np.int64)
        min_x, min_y, max_x, max_y = box

        theirs = _pixels_in_box(other.pixels, box)
        mask = np.zeros((max_y - min_y, max_x - min_x), dtype=bool)
        mask[theirs[:, 1] - min_y, theirs[:, 0] - min_x] = True

        mine = _pixels_in_box(self._pixels, box)
        hit = mask[mine[:, 1] - min_y, mine[:, 0] - min_x]
        return mine[hit]

    def overlap(self, other: 'ConnectedComponent') -> int:
        """Number of pixels shared with another component."""
        return int(self._shared_pixels(other).shape[0])

    def intersect(self, other: 'ConnectedComponent') -> 'ConnectedComponent':
        """New component holding the pixels shared with another component."""
        return ConnectedComponent(self._shared_pixels(other), self.value)

    def __repr__(self) -> str:
        return f"ConnectedComponent(size={self.size}, value={self.value}, bbox={self.bounding_box})"


def intersect_boxes(a: BoundingBox, b: BoundingBox) -> Optional[BoundingBox]:
    """Intersection of two half-open boxes, or None if they are disjoint."""
    min_x = max(a[0], b[0])
    min_y = max(a[1], b[1])
    max_x = min(a[2], b[2])
    max_y = min(a[3], b[3])
    if min_x >= max_x or min_y >= max_y:
        return None
    return (min_x, min_y, max_x, max_y)


def _pixels_in_box(pixels: np.ndarray, box: BoundingBox) -> np.ndarray:
    min_x, min_y, max_x, max_y = box
    inside = ((pixels[:, 0] >= min_x) & (pixels[:, 0] < max_x) &
              (pixels[:, 1] >= min_y) & (pixels[:, 1] < max_y))
    return pixels[inside]


def components_from_image(image: np.ndarray,
                          background: float = 0,
                          min_size: int = 0,
                          connectivity: int = 1) -> List[ConnectedComponent]:
    """
    Extract the connected components of a binary or label image.

    Boolean images yield the foreground components with value 1. For label
    images every non-background label is split into its connected pieces,
    each carrying the label as value.

    Args:
        image: 2D array indexed as image[y, x]
        background: Value treated as background
        min_size: Components smaller than this are dropped
        connectivity: 1 for 4-connectivity, 2 for 8-connectivity

    Returns:
        Components ordered by label value, then by scan order

    Raises:
        ValueError: If the image is not two-dimensional
    """
    image = np.asarray(image)
    if image.ndim != 2:
        raise ValueError(f"Expected a 2D image, got shape {image.shape}")

    structure = ndimage.generate_binary_structure(2, connectivity)
    if image.dtype == bool:
        values = [True]
    else:
        values = [v for v in np.unique(image) if v != background]

    components = []
    for value in values:
        labeled, num_features = ndimage.label(image == value, structure=structure)
        if num_features == 0:
            continue
        for index, region in enumerate(ndimage.find_objects(labeled)):
            if region is None:
                continue
            mask = labeled[region] == index + 1
            if mask.sum() < min_size:
                continue
            offset = (region[1].start, region[0].start)
            components.append(ConnectedComponent.from_mask(mask, offset, float(value)))

    logger.debug(f"Extracted {len(components)} components from image of shape {image.shape}")
    return components
