"""
Component trees and their conversion into slices.

A component tree holds the nested candidate regions of one section: every
node's region contains the regions of its children. The root is synthetic and
carries no region. Converting a tree yields one slice per node and, for every
leaf, an explanation constraint over the slices on the root-to-leaf path, so
that at most (or exactly) one region of every nesting chain is selected.
"""

import logging
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..core.components import ConnectedComponent, components_from_image
from ..core.constraints import LinearConstraint, LinearConstraints, Relation
from ..core.ids import IdAllocator
from ..core.slices import Slice, Slices

logger = logging.getLogger(__name__)


class ComponentTreeNode:
    """A node of a component tree. The root node has no component."""
    def __init__(self, component: Optional[ConnectedComponent] = None,
                 children: Optional[List['ComponentTreeNode']] = None):
        self.component = component
        self.children: List[ComponentTreeNode] = list(children or [])

    def add_child(self, child: 'ComponentTreeNode') -> None:
        self.children.append(child)

    @property
    def is_leaf(self) -> bool:
        return not self.children


class ComponentTreeVisitor:
    """Callbacks invoked by ComponentTree.visit()."""

    def visit_node(self, node: ComponentTreeNode) -> None:
        pass

    def leave_node(self, node: ComponentTreeNode) -> None:
        pass


class ComponentTree:
    """Tree of nested regions of one section."""
    def __init__(self, root: Optional[ComponentTreeNode] = None):
        self.root = root if root is not None else ComponentTreeNode()

    def visit(self, visitor: ComponentTreeVisitor,
              node: Optional[ComponentTreeNode] = None) -> None:
        """
        Depth-first traversal starting at `node` (the root by default).

        visit_node() is called before a node's children are visited,
        leave_node() after all of them have been left.
        """
        start = node if node is not None else self.root
        stack: List[Tuple[ComponentTreeNode, bool]] = [(start, False)]
        while stack:
            current, entered = stack.pop()
            if entered:
                visitor.leave_node(current)
                continue
            visitor.visit_node(current)
            stack.append((current, True))
            for child in reversed(current.children):
                stack.append((child, False))

    def nodes(self) -> Iterator[ComponentTreeNode]:
        """All nodes except the root, in depth-first order."""
        stack = list(reversed(self.root.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __len__(self) -> int:
        return sum(1 for _ in self.nodes())


class ComponentTreeExtractor:
    """
    Build a component tree by thresholding an image at several levels.

    Regions are the connected components of `image <= threshold`; components
    at a lower threshold are nested in those at a higher one. A component that
    does not change between two thresholds is kept only once.

    Args:
        thresholds: Threshold levels
        min_size: Components smaller than this are ignored
        connectivity: 1 for 4-connectivity, 2 for 8-connectivity
    """
    def __init__(self, thresholds: Sequence[float], min_size: int = 0, connectivity: int = 1):
        if len(thresholds) == 0:
            raise ValueError("At least one threshold is required")
        self.thresholds = sorted(thresholds, reverse=True)
        self.min_size = min_size
        self.connectivity = connectivity

    def extract(self, image: np.ndarray) -> ComponentTree:
        image = np.asarray(image)
        tree = ComponentTree()

        previous_labels = None
        previous_components: List[ConnectedComponent] = []
        previous_nodes: List[ComponentTreeNode] = []

        for threshold in self.thresholds:
            components = [
                ConnectedComponent(c.pixels, threshold)
                for c in components_from_image(image <= threshold,
                                               min_size=self.min_size,
                                               connectivity=self.connectivity)
            ]
            nodes = []
            for component in components:
                if previous_labels is None:
                    node = ComponentTreeNode(component)
                    tree.root.add_child(node)
                else:
                    x, y = component.pixels[0]
                    parent_index = previous_labels[y, x]
                    if previous_components[parent_index].size == component.size:
                        node = previous_nodes[parent_index]
                    else:
                        node = ComponentTreeNode(component)
                        previous_nodes[parent_index].add_child(node)
                nodes.append(node)

            labels = np.full(image.shape, -1, dtype=np.int64)
            for index, component in enumerate(components):
                labels[component.pixels[:, 1], component.pixels[:, 0]] = index
            previous_labels = labels
            previous_components = components
            previous_nodes = nodes

        logger.debug(f"Extracted component tree with {len(tree)} nodes")
        return tree


class ComponentTreeConverter(ComponentTreeVisitor):
    """
    Convert the component tree of one section into slices and explanation
    constraints.

    Args:
        section: Section index assigned to the slices
        ids: Allocator for slice ids
        force_explanation: Use '=' instead of '<=' in the path constraints, so
            that every leaf has to be explained by exactly one slice
    """
    def __init__(self, section: int, ids: IdAllocator, force_explanation: bool = False):
        self.section = section
        self.ids = ids
        self.force_explanation = force_explanation
        self._slices = Slices()
        self._constraints = LinearConstraints()
        self._path: List[int] = []

    def convert(self, tree: ComponentTree) -> Tuple[Slices, LinearConstraints]:
        """
        Returns:
            Tuple of the slices and the path constraints over slice ids
        """
        self._slices = Slices()
        self._constraints = LinearConstraints()
        self._path = []

        # the root is not a region
        for child in tree.root.children:
            tree.visit(self, child)

        logger.debug(f"Section {self.section}: {len(self._slices)} slices, "
                     f"{len(self._constraints)} path constraints")
        return self._slices, self._constraints

    def visit_node(self, node: ComponentTreeNode) -> None:
        slice_ = Slice(self.ids.next_id(), self.section, node.component)
        self._slices.add(slice_)
        self._path.append(slice_.id)

        if node.is_leaf:
            relation = Relation.EQUAL if self.force_explanation else Relation.LESS_EQUAL
            constraint = LinearConstraint({slice_id: 1.0 for slice_id in self._path}, relation, 1.0)
            self._constraints.add(constraint)
            self._slices.add_conflicts(self._path)

    def leave_node(self, node: ComponentTreeNode) -> None:
        self._path.pop()
