"""
Gold standard extraction for training cost functions.
"""

from .gold_standard import GoldStandardCostFunction, GoldStandardExtractor, gold_standard_labels

__all__ = ['GoldStandardCostFunction', 'GoldStandardExtractor', 'gold_standard_labels']
