"""Tests for problem assembly, objectives, the solver and reconstruction."""

import logging

import numpy as np
import pytest

from segrecon.core.constraints import LinearConstraint, LinearConstraints, Relation
from segrecon.core.exceptions import EmptyProblemError, InfeasibleProblemError, NoSuchSegment
from segrecon.core.ids import IdAllocator
from segrecon.core.parameters import PriorParameters
from segrecon.core.segments import Direction, Segment, Segments
from segrecon.graph.neurons import NeuronExtractor
from segrecon.inference.objective import LinearObjective, ObjectiveGenerator, PriorCostFunction
from segrecon.inference.problem import ProblemAssembler, ProblemConfiguration
from segrecon.inference.reconstructor import Reconstructor
from segrecon.inference.solver import LinearSolver, Solution
from segrecon.segments.ground_truth import GroundTruthExtractor
from segrecon.segments.pipeline import SegmentExtractionPipeline

from conftest import make_slice


@pytest.fixture
def ground_truth(branching_stack):
    """End left of A, branch A->(B, C), branch D->(B, C), end right of D."""
    return GroundTruthExtractor(IdAllocator(100), IdAllocator()).extract(branching_stack["sections"])


@pytest.fixture
def candidate_intervals(branching_stack):
    sections = []
    for slices in branching_stack["sections"]:
        constraints = LinearConstraints(
            LinearConstraint({s.id: 1.0}, Relation.LESS_EQUAL, 1.0) for s in slices)
        sections.append((slices, constraints))
    return SegmentExtractionPipeline(IdAllocator()).extract(sections)


@pytest.fixture
def chain():
    """A single neuron passing through three sections, with an end in the middle."""
    a = make_slice(0, 0, 0, 0, 10, 10)
    b = make_slice(1, 1, 0, 0, 10, 10)
    c = make_slice(2, 2, 0, 0, 10, 10)
    return Segments([
        Segment.end(0, Direction.LEFT, a),
        Segment.continuation(1, Direction.RIGHT, a, b),
        Segment.end(2, Direction.RIGHT, b),
        Segment.continuation(3, Direction.RIGHT, b, c),
        Segment.end(4, Direction.RIGHT, c),
    ])


def assemble(intervals):
    return ProblemAssembler().assemble([s for s, _ in intervals], [c for _, c in intervals])


class TestProblemConfiguration:
    def test_bijection(self, chain):
        configuration = ProblemConfiguration()
        for variable, segment in enumerate(chain):
            configuration.set_variable(segment, variable)

        assert configuration.num_variables == 5
        assert configuration.get_variable(2) == 1
        assert configuration.get_segment_id(1) == 2
        assert configuration.has_segment(4)
        assert not configuration.has_segment(5)

    def test_unknown_ids(self):
        configuration = ProblemConfiguration()
        with pytest.raises(NoSuchSegment):
            configuration.get_variable(7)
        with pytest.raises(KeyError):
            configuration.get_segment_id(0)

    def test_conflicting_mapping(self, chain):
        configuration = ProblemConfiguration()
        configuration.set_variable(chain.get(0), 0)
        configuration.set_variable(chain.get(0), 0)
        with pytest.raises(ValueError):
            configuration.set_variable(chain.get(0), 1)
        with pytest.raises(ValueError):
            configuration.set_variable(chain.get(1), 0)


class TestProblemAssembler:
    def test_variable_order(self, ground_truth):
        problem = ProblemAssembler().assemble([ground_truth], [])
        assert problem.num_variables == 4
        for variable, segment in enumerate(ground_truth.ends + ground_truth.branches):
            assert problem.configuration.get_variable(segment.id) == variable

    def test_consistency_constraints(self, ground_truth, branching_stack):
        problem = ProblemAssembler().assemble([ground_truth], [])
        assert len(problem.constraints) == 4
        assert all(c.relation is Relation.EQUAL and c.value == 0 for c in problem.constraints)

        first_branch, second_branch = ground_truth.branches
        configuration = problem.configuration
        row_b = {
            configuration.get_variable(first_branch.id): 1.0,
            configuration.get_variable(second_branch.id): -1.0,
        }
        assert row_b in [c.coefficients for c in problem.constraints]

        assignment = {variable: 1.0 for variable in range(problem.num_variables)}
        assert all(c.is_satisfied(assignment) for c in problem.constraints)

    def test_explanation_constraints_are_remapped(self, candidate_intervals):
        problem = assemble(candidate_intervals)
        num_slices = len(problem.segments.slice_ids())
        assert len(problem.constraints) == num_slices + 4

        explanation = problem.constraints[num_slices]
        assert explanation.relation is Relation.LESS_EQUAL
        assert all(0 <= v < problem.num_variables for v in explanation.coefficients)

    def test_unknown_segment_is_dropped(self, ground_truth, caplog):
        known = ground_truth.ends[0].id
        constraint = LinearConstraint({known: 1.0, 999: 1.0}, Relation.LESS_EQUAL, 1.0)
        with caplog.at_level(logging.WARNING):
            problem = ProblemAssembler().assemble([ground_truth], [LinearConstraints([constraint])])

        remapped = problem.constraints[len(problem.constraints) - 1]
        assert remapped.coefficients == {problem.configuration.get_variable(known): 1.0}
        assert "999" in caplog.text

    def test_empty_problem(self):
        with pytest.raises(EmptyProblemError):
            ProblemAssembler().assemble([Segments()], [])


class TestObjective:
    def test_prior_costs(self, chain):
        costs = PriorCostFunction(PriorParameters(1.0, 2.0, 3.0)).costs(
            chain.ends, chain.continuations, chain.branches)
        assert costs == [1.0, 1.0, 1.0, 2.0, 2.0]

    def test_boundary_ends_are_free(self, chain):
        problem = ProblemAssembler().assemble([chain], [])
        generator = ObjectiveGenerator([PriorCostFunction(PriorParameters(1.0, 2.0, 3.0))])
        objective = generator.generate(chain, problem.configuration)

        variable = problem.configuration.get_variable
        assert objective.coefficients[variable(0)] == 0.0
        assert objective.coefficients[variable(4)] == 0.0
        assert objective.coefficients[variable(2)] == 1.0
        assert objective.coefficients[variable(1)] == 2.0

    def test_cost_functions_are_summed(self, chain):
        problem = ProblemAssembler().assemble([chain], [])
        priors = PriorCostFunction(PriorParameters(0.0, 2.0, 0.0))
        objective = ObjectiveGenerator([priors, priors]).generate(chain, problem.configuration)
        assert objective.coefficients[problem.configuration.get_variable(3)] == 4.0

    def test_wrong_number_of_costs(self, chain):
        class Broken:
            def costs(self, ends, continuations, branches):
                return [1.0]

        problem = ProblemAssembler().assemble([chain], [])
        with pytest.raises(ValueError):
            ObjectiveGenerator([Broken()]).generate(chain, problem.configuration)


class TestLinearSolver:
    def objective(self, coefficients):
        objective = LinearObjective(len(coefficients))
        for variable, value in enumerate(coefficients):
            objective.set_coefficient(variable, value)
        return objective

    def test_minimum(self):
        constraints = LinearConstraints([
            LinearConstraint({0: 1.0, 1: 1.0, 2: 1.0}, Relation.LESS_EQUAL, 1.0),
        ])
        solution = LinearSolver().solve(self.objective([1.0, -1.0, -2.0]), constraints)
        assert solution.selected() == [2]
        assert solution.objective_value == pytest.approx(-2.0)

    def test_greater_equal(self):
        constraints = LinearConstraints([
            LinearConstraint({0: 1.0, 1: 1.0, 2: 1.0}, Relation.LESS_EQUAL, 1.0),
            LinearConstraint({0: 1.0}, Relation.GREATER_EQUAL, 1.0),
        ])
        solution = LinearSolver().solve(self.objective([1.0, -1.0, -2.0]), constraints)
        assert solution.selected() == [0]

    def test_without_constraints(self):
        solution = LinearSolver().solve(self.objective([1.0, -1.0]), LinearConstraints())
        assert list(solution.values) == [0.0, 1.0]

    def test_infeasible(self):
        constraints = LinearConstraints([
            LinearConstraint({0: 1.0}, Relation.GREATER_EQUAL, 1.0),
            LinearConstraint({0: 1.0}, Relation.LESS_EQUAL, 0.0),
        ])
        with pytest.raises(InfeasibleProblemError):
            LinearSolver().solve(self.objective([1.0]), constraints)

    def test_unknown_variable(self):
        constraints = LinearConstraints([LinearConstraint({3: 1.0}, Relation.LESS_EQUAL, 1.0)])
        with pytest.raises(ValueError):
            LinearSolver().solve(self.objective([1.0]), constraints)


class TestReconstruction:
    def test_branching_neuron(self, candidate_intervals):
        problem = assemble(candidate_intervals)
        priors = PriorCostFunction(PriorParameters(prior_end=1.0, prior_branch=-5.0))
        objective = ObjectiveGenerator([priors]).generate(problem.segments, problem.configuration)
        solution = LinearSolver().solve(objective, problem.constraints)

        selected, discarded = Reconstructor().reconstruct(solution, problem.segments,
                                                          problem.configuration)
        assert solution.objective_value == pytest.approx(-10.0)
        assert len(selected.branches) == 2
        assert len(selected.continuations) == 0
        assert {(e.source.id, e.direction) for e in selected.ends} == {
            (0, Direction.LEFT), (3, Direction.RIGHT)}
        assert len(selected) + len(discarded) == len(problem.segments)

        assignment = {v: solution[v] for v in range(len(solution))}
        assert all(c.is_satisfied(assignment) for c in problem.constraints)

        neurons = NeuronExtractor().extract(selected)
        assert len(neurons) == 1
        assert len(neurons[0]) == 4
        assert neurons.num_sections == 3

    def test_solution_values(self):
        solution = Solution(np.array([0.0, 1.0, 1.0]))
        assert solution.selected() == [1, 2]
        assert solution[0] == 0.0
