"""
Parameters of the reconstruction stages.

Every stage takes a small dataclass of parameters. Defaults follow the values
the method was tuned with. A full set can be stored as JSON:

    {
        "slices": {"similarity_threshold": 0.75},
        "segments": {"continuation_overlap_threshold": 0.5},
        "solver": {"time_limit": 60}
    }
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class SliceParameters:
    """Slice extraction from component trees and hypothesis stacks."""
    similarity_threshold: float = 0.75
    set_difference_threshold: int = 200
    force_explanation: bool = False
    min_slice_size: int = 0


@dataclass
class SegmentParameters:
    """Candidate segment extraction between two sections."""
    continuation_overlap_threshold: float = 0.5
    min_continuation_partners: int = 0
    branch_overlap_threshold: float = 0.5
    branch_size_ratio_threshold: float = 0.5
    disable_branches: bool = False


@dataclass
class GroundTruthParameters:
    """Greedy matching of ground-truth slices."""
    max_segment_distance: float = 100.0
    max_branch_set_difference: float = 0.9


@dataclass
class PriorParameters:
    """Constant costs per segment type."""
    prior_end: float = 0.0
    prior_continuation: float = 0.0
    prior_branch: float = 0.0


@dataclass
class SolverParameters:
    """Options passed to the MILP backend."""
    time_limit: Optional[float] = None
    mip_rel_gap: Optional[float] = None
    verbose: bool = False


@dataclass
class ReconstructionParameters:
    """All parameters of one reconstruction run."""
    slices: SliceParameters = field(default_factory=SliceParameters)
    segments: SegmentParameters = field(default_factory=SegmentParameters)
    ground_truth: GroundTruthParameters = field(default_factory=GroundTruthParameters)
    priors: PriorParameters = field(default_factory=PriorParameters)
    solver: SolverParameters = field(default_factory=SolverParameters)
    num_workers: int = 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to a dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReconstructionParameters':
        """
        Create parameters from a (possibly partial) dictionary.

        Raises:
            ValueError: If the dictionary contains unknown keys
        """
        kwargs = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if isinstance(value, dict):
                value = _section_from_dict(f.default_factory, f.name, value)
            kwargs[f.name] = value
        unknown = set(data) - {f.name for f in fields(cls)}
        if unknown:
            raise ValueError(f"Unknown parameter sections: {sorted(unknown)}")
        return cls(**kwargs)


def _section_from_dict(section_type, name: str, data: Dict[str, Any]):
    known = {f.name for f in fields(section_type)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown parameters in section '{name}': {sorted(unknown)}")
    return section_type(**data)


def load_parameters(path: Union[str, Path]) -> ReconstructionParameters:
    """
    Load parameters from a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        Parameters, with defaults for everything the file does not set

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid JSON or has unknown keys
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Parameter file not found: {path}")
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid parameter file {path}: {e}")
    parameters = ReconstructionParameters.from_dict(data)
    logger.info(f"Loaded parameters from {path}")
    return parameters


def save_parameters(parameters: ReconstructionParameters, path: Union[str, Path]) -> None:
    with open(path, 'w') as f:
        json.dump(parameters.to_dict(), f, indent=2)
