"""Tests for candidate and ground-truth segment extraction."""

import logging

import numpy as np
import pytest

from segrecon.core.constraints import LinearConstraint, LinearConstraints, Relation
from segrecon.core.ids import IdAllocator
from segrecon.core.parameters import GroundTruthParameters, SegmentParameters
from segrecon.core.segments import Direction
from segrecon.core.slices import Slices
from segrecon.segments.extractor import SegmentExtractor
from segrecon.segments.ground_truth import GroundTruthExtractor, GroundTruthSegmentExtractor
from segrecon.segments.pipeline import SegmentExtractionPipeline

from conftest import make_slice


def unary(slices):
    return LinearConstraints(LinearConstraint({s.id: 1.0}, Relation.LESS_EQUAL, 1.0) for s in slices)


def slice_ids(segment):
    return {s.id for s in segment.slices}


class TestSegmentExtractor:
    def test_branch_between_first_sections(self, branching_stack, ids):
        previous, following = branching_stack["sections"][:2]
        extractor = SegmentExtractor(ids, SegmentParameters(continuation_overlap_threshold=0.6))
        segments, _ = extractor.extract(previous, following)

        assert len(segments.ends) == 2
        assert {e.direction for e in segments.ends} == {Direction.LEFT, Direction.RIGHT}
        assert len(segments.continuations) == 0
        assert len(segments.branches) == 1
        branch = segments.branches[0]
        assert branch.direction is Direction.RIGHT
        assert branch.source is branching_stack["a"]
        assert {t.id for t in branch.targets} == {branching_stack["b"].id, branching_stack["c"].id}
        assert branch.inter_section_interval == 1

    def test_merge_on_last_interval(self, branching_stack, ids):
        previous, following = branching_stack["sections"][1:]
        extractor = SegmentExtractor(ids, SegmentParameters(continuation_overlap_threshold=0.6))
        segments, _ = extractor.extract(previous, following, last_interval=True)

        assert len(segments.ends) == 6
        assert len(segments.branches) == 1
        branch = segments.branches[0]
        assert branch.direction is Direction.LEFT
        assert branch.source is branching_stack["d"]
        assert branch.inter_section_interval == 2

    def test_continuations_above_threshold(self, branching_stack, ids):
        previous, following = branching_stack["sections"][:2]
        segments, _ = SegmentExtractor(ids).extract(previous, following)
        # A-B overlap 0.5, A-C overlap 0.4
        assert [slice_ids(s) for s in segments.continuations] == [{0, 1}]
        assert segments.continuations[0].direction is Direction.RIGHT

    def test_min_continuation_partners(self, branching_stack, ids):
        previous, following = branching_stack["sections"][:2]
        parameters = SegmentParameters(continuation_overlap_threshold=0.9, min_continuation_partners=1)
        segments, _ = SegmentExtractor(ids, parameters).extract(previous, following)
        assert sorted(sorted(slice_ids(s)) for s in segments.continuations) == [[0, 1], [0, 2]]

    def test_conflicting_targets_do_not_branch(self, branching_stack, ids):
        previous, following = branching_stack["sections"][:2]
        following = Slices(following)
        following.add_conflicts([branching_stack["b"].id, branching_stack["c"].id])
        segments, _ = SegmentExtractor(ids).extract(previous, following)
        assert len(segments.branches) == 0

    def test_branch_size_ratio(self, ids):
        a = make_slice(0, 0, 0, 0, 10, 10)
        b = make_slice(1, 1, 0, 0, 5, 10)
        c = make_slice(2, 1, 5, 0, 2, 10)
        segments, _ = SegmentExtractor(ids).extract(Slices([a]), Slices([b, c]))
        assert len(segments.branches) == 0

    def test_disable_branches(self, branching_stack, ids):
        previous, following = branching_stack["sections"][:2]
        parameters = SegmentParameters(disable_branches=True)
        segments, _ = SegmentExtractor(ids, parameters).extract(previous, following)
        assert len(segments.branches) == 0

    def test_constraints_use_segments_left_of_slice(self, branching_stack, ids):
        previous, following = branching_stack["sections"][:2]
        extractor = SegmentExtractor(ids, SegmentParameters(continuation_overlap_threshold=0.6))
        segments, constraints = extractor.extract(previous, following, unary(previous))

        assert len(constraints) == 1
        end_right = next(e for e in segments.ends if e.direction is Direction.RIGHT)
        branch = segments.branches[0]
        assert set(constraints[0].coefficients) == {end_right.id, branch.id}
        assert constraints[0].relation is Relation.LESS_EQUAL

    def test_next_constraints_only_on_last_interval(self, branching_stack, ids):
        previous, following = branching_stack["sections"][1:]
        extractor = SegmentExtractor(ids, SegmentParameters(continuation_overlap_threshold=0.6))

        _, constraints = extractor.extract(previous, following, unary(previous), unary(following))
        assert len(constraints) == 2

        segments, constraints = extractor.extract(previous, following, unary(previous),
                                                  unary(following), last_interval=True)
        assert len(constraints) == 3
        d_end = next(e for e in segments.ends
                     if e.source is branching_stack["d"] and e.direction is Direction.RIGHT)
        assert set(constraints[2].coefficients) == {d_end.id}


class TestSegmentExtractionPipeline:
    @pytest.mark.parametrize("num_workers", [1, 3])
    def test_intervals_in_order(self, branching_stack, num_workers):
        sections = [(slices, unary(slices)) for slices in branching_stack["sections"]]
        pipeline = SegmentExtractionPipeline(IdAllocator(), num_workers=num_workers)
        intervals = pipeline.extract(sections)

        assert len(intervals) == 2
        first, second = intervals
        assert {s.inter_section_interval for s in first[0]} == {0, 1}
        assert {s.inter_section_interval for s in second[0]} == {1, 2, 3}
        assert len(first[1]) == 1
        assert len(second[1]) == 3

    def test_single_section(self, branching_stack):
        slices = branching_stack["sections"][0]
        intervals = SegmentExtractionPipeline(IdAllocator()).extract([(slices, unary(slices))])
        assert len(intervals) == 1
        assert len(intervals[0][0].ends) == 2

    def test_empty_stack(self):
        with pytest.raises(ValueError):
            SegmentExtractionPipeline(IdAllocator()).extract([])


class TestGroundTruthSegmentExtractor:
    def test_branch_and_merge(self, branching_stack, ids):
        sections = branching_stack["sections"]
        matcher = GroundTruthSegmentExtractor(ids)

        first = matcher.extract(sections[0], sections[1])
        assert len(first) == 1
        assert first.branches[0].direction is Direction.RIGHT

        second = matcher.extract(sections[1], sections[2])
        assert len(second) == 1
        assert second.branches[0].direction is Direction.LEFT
        assert second.branches[0].source is branching_stack["d"]

    def test_nearest_slices_are_matched(self, ids):
        p1 = make_slice(0, 0, 0, 0, 10, 10)
        p2 = make_slice(1, 0, 50, 0, 10, 10)
        n1 = make_slice(2, 1, 2, 0, 10, 10)
        n2 = make_slice(3, 1, 52, 0, 10, 10)
        segments = GroundTruthSegmentExtractor(ids).extract(Slices([p1, p2]), Slices([n1, n2]))

        assert len(segments) == 2
        pairs = sorted(sorted(slice_ids(s)) for s in segments.continuations)
        assert pairs == [[0, 2], [1, 3]]

    def test_different_labels_end(self, ids):
        a = make_slice(0, 0, 0, 0, 10, 10, value=1)
        b = make_slice(1, 1, 0, 0, 10, 10, value=2)
        segments = GroundTruthSegmentExtractor(ids).extract(Slices([a]), Slices([b]))
        assert len(segments.ends) == 2
        assert {(e.source.id, e.direction) for e in segments.ends} == {
            (0, Direction.RIGHT), (1, Direction.LEFT)}

    def test_distance_cutoff_warns(self, ids, caplog):
        a = make_slice(0, 0, 0, 0, 10, 10)
        b = make_slice(1, 1, 500, 0, 10, 10)
        matcher = GroundTruthSegmentExtractor(ids, GroundTruthParameters(max_segment_distance=100))
        with caplog.at_level(logging.WARNING):
            segments = matcher.extract(Slices([a]), Slices([b]))
        assert len(segments.ends) == 2
        assert len(segments.continuations) == 0
        assert "could not be matched" in caplog.text

    def test_every_slice_explained_once_per_side(self, ids):
        previous = Slices([make_slice(0, 0, 0, 0, 10, 10), make_slice(1, 0, 30, 0, 10, 10)])
        following = Slices([make_slice(2, 1, 0, 0, 4, 10), make_slice(3, 1, 5, 0, 5, 10),
                            make_slice(4, 1, 31, 0, 10, 10), make_slice(5, 1, 80, 0, 5, 5)])
        segments = GroundTruthSegmentExtractor(ids).extract(previous, following)

        left_usage = [s.id for segment in segments for s in segment.left_slices]
        right_usage = [s.id for segment in segments for s in segment.right_slices]
        assert sorted(left_usage) == [0, 1]
        assert sorted(right_usage) == [2, 3, 4, 5]


class TestGroundTruthExtractor:
    def test_closes_stack_with_ends(self, branching_stack):
        extractor = GroundTruthExtractor(IdAllocator(100), IdAllocator())
        segments = extractor.extract(branching_stack["sections"])

        assert len(segments) == 4
        assert len(segments.branches) == 2
        ends = {(e.source.id, e.direction) for e in segments.ends}
        assert ends == {(0, Direction.LEFT), (3, Direction.RIGHT)}

    def test_slices_from_labels(self):
        image = np.zeros((10, 20), dtype=np.uint32)
        image[:, 0:5] = 7
        image[:, 10:15] = 9
        extractor = GroundTruthExtractor(IdAllocator(), IdAllocator())
        sections = extractor.slices_from_labels([image, image])
        assert [len(slices) for slices in sections] == [2, 2]
        assert sorted(s.value for s in sections[1]) == [7.0, 9.0]
        assert {s.section for s in sections[1]} == {1}
