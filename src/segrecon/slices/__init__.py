"""
Slice extraction from region hierarchies and hypothesis stacks.
"""

from .component_tree import (
    ComponentTree,
    ComponentTreeConverter,
    ComponentTreeExtractor,
    ComponentTreeNode,
    ComponentTreeVisitor,
)
from .stack import SliceCollector, StackSliceExtractor

__all__ = [
    'ComponentTree',
    'ComponentTreeConverter',
    'ComponentTreeExtractor',
    'ComponentTreeNode',
    'ComponentTreeVisitor',
    'SliceCollector',
    'StackSliceExtractor',
]
