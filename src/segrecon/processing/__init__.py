"""
End-to-end reconstruction pipeline.
"""

from .reconstruction import Reconstruction, ReconstructionResult

__all__ = ['Reconstruction', 'ReconstructionResult']
