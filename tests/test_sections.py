"""
Tests for section reconstruction, soma aggregation and assembly.
"""

import numpy as np
import pytest

from neuroswc import dx
from neuroswc.core import (
    assemble_raw_morphology,
    build_nodes,
    build_sections,
    build_soma,
    extract_points,
)
from neuroswc.dataclass import SWCType
from neuroswc.errors import EmptyMorphologyWarning

# soma → axon node 2, which forks into nodes 3 and 4
BRANCHED = """\
# id type x y z r parent
1 1 0 0 0 1.0 -1
2 2 0 0 1 0.5 1
3 2 0 0 2 0.5 2
4 2 0 0 3 0.5 2
"""

# soma → axon 2 → axon 3 → basal 4 → basal 5
TYPE_CHANGE = """\
1 1 0 0 0 2.0 -1
2 2 0 0 1 0.5 1
3 2 0 0 2 0.4 2
4 3 0 0 3 0.3 3
5 3 0 0 4 0.2 4
"""


# ---------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------
def _sections(text):
    nodes, _ = build_nodes(extract_points(text))
    return build_sections(nodes)


def _raw(text):
    nodes, soma_nodes = build_nodes(extract_points(text))
    return assemble_raw_morphology(build_soma(soma_nodes), build_sections(nodes))


# ---------------------------------------------------------------------
# traversal
# ---------------------------------------------------------------------
def test_branch_below_soma():
    secs = _sections(BRANCHED)
    assert len(secs) == 3

    trunk, last, first = secs
    assert trunk.id == 0 and trunk.parent_id is None
    assert trunk.node_ids.tolist() == [1, 2]
    assert trunk.type == SWCType.AXON
    # node 4 was pushed last, so it is expanded first
    assert trunk.children == [1, 2]
    assert last.node_ids.tolist() == [2, 4]
    assert first.node_ids.tolist() == [2, 3]
    assert last.parent_id == 0 and first.parent_id == 0


def test_branch_sections_share_the_fork_sample():
    trunk, a, b = _sections(BRANCHED)
    for child in (a, b):
        assert child.n_points == 2
        assert np.array_equal(child.positions[0], trunk.positions[-1])
        assert child.radii[0] == trunk.radii[-1] == 0.5
    # the trunk starts on the soma sample, radius included
    assert trunk.positions[0].tolist() == [0.0, 0.0, 0.0]
    assert trunk.radii[0] == 1.0


def test_type_change_gives_single_child():
    axon, basal = _sections(TYPE_CHANGE)

    assert axon.type == SWCType.AXON
    assert axon.node_ids.tolist() == [1, 2, 3]
    assert axon.children == [1]

    assert basal.type == SWCType.BASAL_DENDRITE
    assert basal.parent_id == 0
    assert basal.node_ids.tolist() == [3, 4, 5]
    assert basal.node_types.tolist() == [2, 3, 3]
    assert basal.is_leaf


def test_root_without_parent_has_no_leading_sample():
    secs = _sections("1 2 0 0 0 1 -1\n2 2 0 0 1 1 1\n3 2 0 0 2 1 2\n")
    assert len(secs) == 1
    assert secs[0].node_ids.tolist() == [1, 2, 3]
    assert secs[0].is_root and secs[0].is_leaf


def test_disconnected_roots_popped_last_first():
    text = (
        "1 2 0 0 0 1 -1\n"
        "2 2 0 0 1 1 1\n"
        "10 3 5 0 0 1 -1\n"
        "11 3 5 0 1 1 10\n"
    )
    secs = _sections(text)
    assert [s.node_ids.tolist() for s in secs] == [[10, 11], [1, 2]]
    assert [s.id for s in secs] == [0, 1]


def test_deep_lifo_order():
    # 2 forks into 3 and 6; 3 forks into 4 and 5
    text = (
        "1 1 0 0 0 1 -1\n"
        "2 3 0 0 1 1 1\n"
        "3 3 0 1 1 1 2\n"
        "4 3 0 2 1 1 3\n"
        "5 3 1 2 1 1 3\n"
        "6 3 0 -1 1 1 2\n"
    )
    secs = _sections(text)
    assert [s.node_ids.tolist() for s in secs] == [
        [1, 2],
        [2, 6],
        [2, 3],
        [3, 5],
        [3, 4],
    ]
    assert secs[0].children == [1, 2]
    assert secs[2].children == [3, 4]


def test_soma_samples_never_start_sections():
    text = (
        "1 1 0 0 0 1 -1\n"
        "2 1 0 0 1 2 1\n"
        "3 1 0 0 2 1 2\n"
        "4 3 1 0 0 0.5 1\n"
        "5 4 0 0 3 0.5 3\n"
    )
    secs = _sections(text)
    assert len(secs) == 2
    assert all(s.type != SWCType.SOMA for s in secs)
    # both neurites start on their soma sample
    starts = sorted(s.node_ids[0] for s in secs)
    assert starts == [1, 3]


def test_soma_child_of_neurite_is_not_a_fork():
    # node 2 carries a stray soma sample next to its axon continuation
    text = (
        "1 1 0 0 0 1 -1\n"
        "2 2 0 0 1 1 1\n"
        "3 1 0 0 2 1 2\n"
        "4 2 0 0 3 1 2\n"
        "5 2 0 0 4 1 4\n"
    )
    secs = _sections(text)
    assert len(secs) == 1
    assert secs[0].node_ids.tolist() == [1, 2, 4, 5]


def test_ids_are_reproducible():
    a = _sections(BRANCHED + "5 3 1 0 0 0.3 1\n6 3 1 1 0 0.3 5\n7 3 1 2 0 0.3 5\n")
    b = _sections(BRANCHED + "5 3 1 0 0 0.3 1\n6 3 1 1 0 0.3 5\n7 3 1 2 0 0.3 5\n")
    assert [s.id for s in a] == [s.id for s in b]
    assert [s.children for s in a] == [s.children for s in b]
    assert [s.node_ids.tolist() for s in a] == [s.node_ids.tolist() for s in b]


def test_invariants_on_larger_tree():
    text = (
        "1 1 0 0 0 3 -1\n"
        "2 1 0 1 0 3 1\n"
        "3 3 1 0 0 1 1\n"
        "4 3 2 0 0 1 3\n"
        "5 3 3 1 0 1 4\n"
        "6 3 3 -1 0 1 4\n"
        "7 4 3 -2 0 1 6\n"
        "8 4 3 -3 0 1 7\n"
        "9 4 4 -3 0 1 7\n"
        "10 2 0 -1 0 1 1\n"
        "11 2 0 -2 0 1 10\n"
    )
    raw = _raw(text)
    assert dx.type_homogeneity(raw)
    assert dx.overlap(raw)
    assert dx.branch_cardinality(raw)
    assert dx.acyclicity(raw)
    for sec in raw.sections:
        assert len(sec.children) != 1 or raw.section(sec.children[0]).type != sec.type


# ---------------------------------------------------------------------
# soma
# ---------------------------------------------------------------------
def test_soma_aggregate_takes_largest_radius():
    text = (
        "1 1 0 0 0 1.0 -1\n"
        "2 1 1 0 0 2.5 1\n"
        "3 1 2 0 0 0.8 2\n"
    )
    _, soma_nodes = build_nodes(extract_points(text))
    soma = build_soma(soma_nodes)

    assert soma.radius == 2.5
    assert soma.points.shape == (3, 3)
    assert soma.id == 0 and soma.type == SWCType.SOMA
    assert np.allclose(soma.center, [1.0, 0.0, 0.0])


def test_no_soma_nodes():
    assert build_soma([]) is None


# ---------------------------------------------------------------------
# assembly
# ---------------------------------------------------------------------
def test_soma_only_is_valid():
    raw = _raw("1 1 0 0 0 1 -1\n2 1 0 0 1 1 1\n")
    assert raw is not None
    assert raw.sections == []
    assert raw.soma.n_points == 2


def test_processes_without_soma_are_valid():
    raw = _raw("1 3 0 0 0 1 -1\n2 3 0 0 1 1 1\n")
    assert raw.soma is None
    assert raw.n_sections == 1


def test_empty_morphology_warns():
    with pytest.warns(EmptyMorphologyWarning):
        assert assemble_raw_morphology(None, []) is None
    with pytest.warns(EmptyMorphologyWarning):
        assert assemble_raw_morphology(None, None) is None


def test_assembly_logs_missing_parts():
    _, soma_nodes = build_nodes(extract_points("1 1 0 0 0 1 -1\n"))
    msgs = []
    assemble_raw_morphology(build_soma(soma_nodes), [], log=msgs.append)
    assert msgs == ["morphology has no section"]


def test_custom_codes_split_sections():
    # codes 6 and 7 are both custom, but still distinct structures
    text = (
        "1 1 0 0 0 1 -1\n"
        "2 6 0 0 1 1 1\n"
        "3 6 0 0 2 1 2\n"
        "4 7 0 0 3 1 3\n"
        "5 7 0 0 4 1 4\n"
    )
    raw = _raw(text)
    first, second = raw.sections

    assert first.type == second.type == SWCType.CUSTOM
    assert (first.type_code, second.type_code) == (6, 7)
    assert first.node_types.tolist() == [1, 6, 6]
    assert second.node_types.tolist() == [6, 7, 7]
    assert first.children == [1]
    assert [s["typevalue"] for s in raw.to_dict()["sections"]] == [6, 7]
    assert dx.branch_cardinality(raw)
    assert dx.type_homogeneity(raw)
