"""
Input and output: image volumes, label volumes and problem text files.
"""

from .problem_files import (
    read_flips,
    read_labels,
    read_ted_coefficients,
    write_cost_function,
    write_labels,
    write_ted_conditions,
)
from .stacks import paint_neurons, read_hypothesis_stacks, read_volume, write_neurons

__all__ = [
    'read_flips',
    'read_labels',
    'read_ted_coefficients',
    'write_cost_function',
    'write_labels',
    'write_ted_conditions',
    'paint_neurons',
    'read_hypothesis_stacks',
    'read_volume',
    'write_neurons',
]
