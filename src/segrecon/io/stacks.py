"""
Reading image stacks and writing reconstructed neurons.

Volumes are indexed as (section, y, x). They are read from zarr arrays or
from multi-page TIFF files; reconstructions are written as zarr label volumes.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import tifffile
import zarr

from ..graph.neurons import SegmentTrees

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

TIFF_SUFFIXES = ('.tif', '.tiff')


def read_volume(path: PathLike) -> np.ndarray:
    """
    Load a 3D volume (sections, height, width).

    Args:
        path: Zarr array or TIFF file

    Returns:
        The volume as numpy array; a single 2D image becomes a one-section volume

    Raises:
        FileNotFoundError: If the path does not exist
        ValueError: If the data is not two- or three-dimensional
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Volume not found: {path}")

    if path.suffix.lower() in TIFF_SUFFIXES:
        volume = tifffile.imread(str(path))
    else:
        volume = zarr.open(str(path), mode='r')[:]

    volume = np.asarray(volume)
    if volume.ndim == 2:
        volume = volume[np.newaxis]
    if volume.ndim != 3:
        raise ValueError(f"Expected a 3D volume in {path}, got shape {volume.shape}")
    logger.info(f"Loaded volume {path} with shape {volume.shape}, dtype {volume.dtype}")
    return volume


def read_hypothesis_stacks(paths: Sequence[PathLike]) -> List[List[np.ndarray]]:
    """
    Load several binary hypothesis volumes of the same stack.

    Args:
        paths: One volume per hypothesis, highest priority first

    Returns:
        For every section, the hypothesis images in the order of `paths`

    Raises:
        ValueError: If no paths are given or the volumes differ in shape
    """
    if not paths:
        raise ValueError("At least one hypothesis volume is required")
    volumes = [read_volume(path) for path in paths]
    shape = volumes[0].shape
    for path, volume in zip(paths, volumes):
        if volume.shape != shape:
            raise ValueError(f"Hypothesis {path} has shape {volume.shape}, expected {shape}")
    return [[volume[section] for volume in volumes] for section in range(shape[0])]


def paint_neurons(neurons: SegmentTrees, shape: Tuple[int, int, int]) -> np.ndarray:
    """
    Label volume of a reconstruction.

    Every slice of neuron i is painted with label i + 1; 0 is background.
    """
    volume = np.zeros(shape, dtype=np.uint32)
    for index, neuron in enumerate(neurons):
        painted = set()
        for segment in neuron:
            for slice_ in segment.slices:
                if slice_.id in painted:
                    continue
                painted.add(slice_.id)
                pixels = slice_.component.pixels
                volume[slice_.section, pixels[:, 1], pixels[:, 0]] = index + 1
    return volume


def write_neurons(neurons: SegmentTrees, shape: Tuple[int, int, int], output_path: PathLike,
                  chunks: Optional[Tuple[int, int, int]] = None) -> zarr.Array:
    """
    Write a reconstruction as zarr label volume.

    Args:
        neurons: Reconstructed neurons
        shape: Volume shape (sections, height, width)
        output_path: Path of the zarr array to create
        chunks: Chunk size, one section per chunk by default

    Returns:
        The written zarr array
    """
    if chunks is None:
        chunks = (1, shape[1], shape[2])
    output_zarr = zarr.open(
        str(output_path),
        mode='w',
        shape=shape,
        chunks=chunks,
        dtype=np.uint32
    )
    output_zarr[:] = paint_neurons(neurons, shape)
    logger.info(f"Wrote {len(neurons)} neurons to {output_path}")
    return output_zarr
