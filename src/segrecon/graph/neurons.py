"""
Neurons as connected components of selected segments.

Two slices are adjacent if some segment contains both of them. A neuron is a
connected component of this slice graph together with all segments touching
its slices.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Set

import networkx as nx

from ..core.segments import Segment, Segments

logger = logging.getLogger(__name__)


class SegmentTree(Segments):
    """The segments of one neuron."""

    def sections(self) -> Set[int]:
        return {slice_.section for segment in self for slice_ in segment.slices}

    @property
    def first_section(self) -> int:
        return min(self.sections())

    @property
    def last_section(self) -> int:
        return max(self.sections())

    @property
    def num_sections(self) -> int:
        return self.last_section - self.first_section + 1


class SegmentTrees:
    """Collection of neurons."""
    def __init__(self, trees: Optional[Iterable[SegmentTree]] = None):
        self._trees: List[SegmentTree] = list(trees or [])

    def add(self, tree: SegmentTree) -> None:
        self._trees.append(tree)

    def __iter__(self) -> Iterator[SegmentTree]:
        return iter(self._trees)

    def __len__(self) -> int:
        return len(self._trees)

    def __getitem__(self, index: int) -> SegmentTree:
        return self._trees[index]

    @property
    def first_section(self) -> int:
        return min(tree.first_section for tree in self._trees)

    @property
    def last_section(self) -> int:
        return max(tree.last_section for tree in self._trees)

    @property
    def num_sections(self) -> int:
        if not self._trees:
            return 0
        return self.last_section - self.first_section + 1


class NeuronExtractor:
    """Partition segments into connected components."""

    def extract(self, segments: Iterable[Segment]) -> SegmentTrees:
        """
        Args:
            segments: Selected segments

        Returns:
            One SegmentTree per connected component, ordered by the first
            appearance of their slices in `segments`
        """
        segments = list(segments)

        graph = nx.Graph()
        for segment in segments:
            slice_ids = [slice_.id for slice_ in segment.slices]
            graph.add_nodes_from(slice_ids)
            graph.add_edges_from((slice_ids[0], other) for other in slice_ids[1:])

        component_of: Dict[int, int] = {}
        for index, component in enumerate(nx.connected_components(graph)):
            for slice_id in component:
                component_of[slice_id] = index

        trees = [SegmentTree() for _ in range(len(set(component_of.values())))]
        for segment in segments:
            trees[component_of[segment.slices[0].id]].add(segment)
        neurons = SegmentTrees(trees)

        logger.info(f"Found {len(neurons)} neurons in {graph.number_of_nodes()} slices")
        return neurons
