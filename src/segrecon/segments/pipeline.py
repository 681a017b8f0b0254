"""
Segment extraction over a whole stack of sections.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Sequence, Tuple

from tqdm import tqdm

from ..core.constraints import LinearConstraints
from ..core.ids import IdAllocator
from ..core.parameters import SegmentParameters
from ..core.segments import Segments
from ..core.slices import Slices
from .extractor import SegmentExtractor

logger = logging.getLogger(__name__)

SectionSlices = Tuple[Slices, LinearConstraints]
IntervalSegments = Tuple[Segments, LinearConstraints]


class SegmentExtractionPipeline:
    """
    Run a SegmentExtractor on every pair of adjacent sections.

    Intervals are independent of each other and can be processed by several
    threads; segment ids then depend on the scheduling, the result order does
    not.

    Args:
        ids: Allocator for segment ids, shared by all intervals
        parameters: Segment extraction parameters
        num_workers: Number of worker threads
    """
    def __init__(self, ids: IdAllocator,
                 parameters: Optional[SegmentParameters] = None,
                 num_workers: int = 1):
        self.extractor = SegmentExtractor(ids, parameters)
        self.num_workers = max(1, num_workers)

    def extract(self, sections: Sequence[SectionSlices]) -> List[IntervalSegments]:
        """
        Args:
            sections: Slices and explanation constraints of each section, in order

        Returns:
            Segments and segment-space constraints of each interval, in order

        Raises:
            ValueError: If no sections are given
        """
        if not sections:
            raise ValueError("Can not extract segments from an empty stack")

        if len(sections) == 1:
            slices, constraints = sections[0]
            return [self.extractor.extract(slices, Slices(), constraints)]

        num_intervals = len(sections) - 1
        results: List[Optional[IntervalSegments]] = [None] * num_intervals

        if self.num_workers == 1:
            for index in tqdm(range(num_intervals), desc="Extracting segments"):
                results[index] = self._extract_interval(sections, index)
        else:
            with ThreadPoolExecutor(max_workers=self.num_workers) as executor:
                futures = {
                    executor.submit(self._extract_interval, sections, index): index
                    for index in range(num_intervals)
                }
                for future in tqdm(as_completed(futures), total=num_intervals,
                                   desc="Extracting segments"):
                    results[futures[future]] = future.result()

        logger.info(f"Extracted segments of {num_intervals} intervals "
                    f"({sum(len(segments) for segments, _ in results)} segments)")
        return results

    def _extract_interval(self, sections: Sequence[SectionSlices], index: int) -> IntervalSegments:
        previous_slices, previous_constraints = sections[index]
        next_slices, next_constraints = sections[index + 1]
        last_interval = index + 2 == len(sections)
        return self.extractor.extract(
            previous_slices,
            next_slices,
            previous_constraints,
            next_constraints if last_interval else None,
            last_interval=last_interval,
        )
