"""
Mapping of a solution back to segments.
"""

import logging
from typing import Tuple

from ..core.segments import Segments
from .problem import ProblemConfiguration
from .solver import Solution

logger = logging.getLogger(__name__)


class Reconstructor:
    """Split the segments of a problem into selected and discarded ones."""

    def reconstruct(self, solution: Solution, segments: Segments,
                    configuration: ProblemConfiguration) -> Tuple[Segments, Segments]:
        """
        Returns:
            Tuple of the segments whose variable is 1 and those whose variable is 0
        """
        reconstruction = Segments()
        discarded = Segments()
        for segment in segments:
            if solution[configuration.get_variable(segment.id)] > 0.5:
                reconstruction.add(segment)
            else:
                discarded.add(segment)
        logger.debug(f"Reconstruction: {reconstruction}, discarded: {discarded}")
        return reconstruction, discarded
