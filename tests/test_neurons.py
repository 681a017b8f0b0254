"""Tests for neuron extraction."""

from segrecon.core.segments import Direction, Segment, Segments
from segrecon.graph.neurons import NeuronExtractor

from conftest import make_slice


def two_neurons():
    a0 = make_slice(0, 0, 0, 0, 10, 10)
    a1 = make_slice(1, 1, 0, 0, 10, 10)
    b0 = make_slice(2, 0, 50, 0, 10, 10)
    b1 = make_slice(3, 1, 50, 0, 5, 10)
    b2 = make_slice(4, 1, 56, 0, 4, 10)
    return Segments([
        Segment.end(0, Direction.LEFT, a0),
        Segment.continuation(1, Direction.RIGHT, a0, a1),
        Segment.end(2, Direction.RIGHT, a1),
        Segment.end(3, Direction.LEFT, b0),
        Segment.branch(4, Direction.RIGHT, b0, b1, b2),
        Segment.end(5, Direction.RIGHT, b1),
        Segment.end(6, Direction.RIGHT, b2),
    ])


class TestNeuronExtractor:
    def test_partition(self):
        segments = two_neurons()
        neurons = NeuronExtractor().extract(segments)

        assert len(neurons) == 2
        segment_ids = [s.id for neuron in neurons for s in neuron]
        assert sorted(segment_ids) == [s.id for s in sorted(segments, key=lambda s: s.id)]

        slice_sets = [neuron.slice_ids() for neuron in neurons]
        assert slice_sets[0].isdisjoint(slice_sets[1])
        assert set().union(*slice_sets) == segments.slice_ids()

    def test_neuron_contents(self):
        neurons = NeuronExtractor().extract(two_neurons())
        first, second = neurons
        assert first.slice_ids() == {0, 1}
        assert second.slice_ids() == {2, 3, 4}
        assert len(second.branches) == 1
        assert second.first_section == 0
        assert second.last_section == 1
        assert neurons.num_sections == 2

    def test_isolated_end(self):
        lonely = Segment.end(0, Direction.RIGHT, make_slice(7, 3, 0, 0, 2, 2))
        neurons = NeuronExtractor().extract([lonely])
        assert len(neurons) == 1
        assert neurons[0].num_sections == 1
        assert list(neurons[0]) == [lonely]

    def test_empty(self):
        neurons = NeuronExtractor().extract(Segments())
        assert len(neurons) == 0
        assert neurons.num_sections == 0

    def test_order_follows_first_appearance(self):
        by_id = {segment.id: segment for segment in two_neurons()}
        neurons = NeuronExtractor().extract([by_id[4], by_id[0], by_id[1]])
        assert [neuron.slice_ids() for neuron in neurons] == [{2, 3, 4}, {0, 1}]
        assert [s.id for s in neurons[1]] == [0, 1]

    def test_chain_over_shared_slices(self):
        s0 = make_slice(0, 0, 0, 0, 4, 4)
        s1 = make_slice(1, 1, 0, 0, 4, 4)
        s2 = make_slice(2, 2, 0, 0, 4, 4)
        neurons = NeuronExtractor().extract([
            Segment.continuation(0, Direction.RIGHT, s0, s1),
            Segment.continuation(1, Direction.LEFT, s2, s1),
        ])
        assert len(neurons) == 1
        assert neurons[0].slice_ids() == {0, 1, 2}
        assert neurons[0].num_sections == 3
