"""
End-to-end reconstruction of a section stack.

    sections -> slices + explanation constraints (per section)
             -> candidate segments (per interval)
             -> assembled problem -> objective -> solution
             -> selected segments -> neurons

Every stage is a plain function call on the outputs of the previous one; the
intermediate results are kept in the returned ReconstructionResult.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
from tqdm import tqdm

from ..core.ids import IdAllocator
from ..core.parameters import ReconstructionParameters
from ..core.segments import Segments
from ..graph.neurons import NeuronExtractor, SegmentTrees
from ..inference.objective import LinearObjective, ObjectiveGenerator, PriorCostFunction
from ..inference.problem import Problem, ProblemAssembler
from ..inference.reconstructor import Reconstructor
from ..inference.solver import LinearSolver, Solution
from ..segments.pipeline import SectionSlices, SegmentExtractionPipeline
from ..slices.component_tree import ComponentTreeConverter, ComponentTreeExtractor
from ..slices.stack import StackSliceExtractor

logger = logging.getLogger(__name__)


@dataclass
class ReconstructionResult:
    """Outputs of all stages of a reconstruction."""
    problem: Problem
    objective: LinearObjective
    solution: Solution
    reconstruction: Segments
    discarded: Segments
    neurons: SegmentTrees


class Reconstruction:
    """
    Reconstruct neurons from the slices of a section stack.

    Args:
        parameters: Parameters of all stages
        cost_functions: Segment cost functions; a PriorCostFunction by default
        solver: Solver for the assembled problem
        slice_ids: Allocator for slice ids
        segment_ids: Allocator for segment ids
    """
    def __init__(self,
                 parameters: Optional[ReconstructionParameters] = None,
                 cost_functions: Optional[Sequence] = None,
                 solver: Optional[LinearSolver] = None,
                 slice_ids: Optional[IdAllocator] = None,
                 segment_ids: Optional[IdAllocator] = None):
        self.parameters = parameters or ReconstructionParameters()
        if cost_functions is None:
            cost_functions = [PriorCostFunction(self.parameters.priors)]
        self.cost_functions = list(cost_functions)
        self.solver = solver or LinearSolver(self.parameters.solver)
        self.slice_ids = slice_ids or IdAllocator()
        self.segment_ids = segment_ids or IdAllocator()

    def slices_from_membranes(self, volume: np.ndarray,
                              thresholds: Sequence[float]) -> List[SectionSlices]:
        """
        Slices of every section from a component tree of thresholded regions.

        Args:
            volume: Membrane image stack (sections, height, width), low inside cells
            thresholds: Threshold levels of the component trees
        """
        extractor = ComponentTreeExtractor(thresholds, min_size=self.parameters.slices.min_slice_size)
        sections = []
        for section in tqdm(range(volume.shape[0]), desc="Extracting slices"):
            tree = extractor.extract(volume[section])
            converter = ComponentTreeConverter(section, self.slice_ids,
                                               self.parameters.slices.force_explanation)
            sections.append(converter.convert(tree))
        return sections

    def slices_from_hypotheses(self, hypotheses: Sequence[Sequence[np.ndarray]]) -> List[SectionSlices]:
        """
        Slices of every section from binary hypothesis images.

        Args:
            hypotheses: For every section, its hypothesis images, highest priority first
        """
        sections = []
        for section, images in enumerate(tqdm(hypotheses, desc="Extracting slices")):
            extractor = StackSliceExtractor(section, self.slice_ids, self.parameters.slices)
            sections.append(extractor.extract(images))
        return sections

    def assemble(self, sections: Sequence[SectionSlices]) -> Problem:
        """Extract the candidate segments of all intervals and assemble the problem."""
        pipeline = SegmentExtractionPipeline(self.segment_ids, self.parameters.segments,
                                             self.parameters.num_workers)
        intervals = pipeline.extract(sections)
        return ProblemAssembler().assemble(
            [segments for segments, _ in intervals],
            [constraints for _, constraints in intervals],
        )

    def run(self, sections: Sequence[SectionSlices]) -> ReconstructionResult:
        """
        Args:
            sections: Slices and explanation constraints of each section

        Returns:
            All intermediate and final results

        Raises:
            EmptyProblemError: If the sections contain no slices
            InfeasibleProblemError: If the problem has no solution
        """
        logger.info(f"Reconstructing {len(sections)} sections "
                    f"({sum(len(slices) for slices, _ in sections)} slices)")
        problem = self.assemble(sections)
        objective = ObjectiveGenerator(self.cost_functions).generate(
            problem.segments, problem.configuration)
        solution = self.solver.solve(objective, problem.constraints)
        reconstruction, discarded = Reconstructor().reconstruct(
            solution, problem.segments, problem.configuration)
        neurons = NeuronExtractor().extract(reconstruction)
        return ReconstructionResult(problem, objective, solution, reconstruction, discarded, neurons)
