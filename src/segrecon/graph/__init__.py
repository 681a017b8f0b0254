"""
Connected components over selected segments.
"""

from .neurons import NeuronExtractor, SegmentTree, SegmentTrees

__all__ = ['NeuronExtractor', 'SegmentTree', 'SegmentTrees']
