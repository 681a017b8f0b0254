"""
Segment extraction between adjacent sections.
"""

from .extractor import SegmentExtractor
from .ground_truth import GroundTruthExtractor, GroundTruthSegmentExtractor
from .pipeline import SegmentExtractionPipeline

__all__ = [
    'SegmentExtractor',
    'GroundTruthExtractor',
    'GroundTruthSegmentExtractor',
    'SegmentExtractionPipeline',
]
