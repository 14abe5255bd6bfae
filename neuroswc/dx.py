"""neuroswc.dx – structural diagnostics for a reconstructed morphology
"""
from typing import Any, Dict, List

import igraph as ig
import numpy as np

from .dataclass import RawMorphology, SWCType
from .morphology import Morphology

__all__ = [
    "type_homogeneity",
    "overlap",
    "branch_cardinality",
    "acyclicity",
    "summary",
]

# -----------------------------------------------------------------------------
# helpers
# -----------------------------------------------------------------------------


def _graph(raw: RawMorphology) -> ig.Graph:
    """Return the directed section *igraph* view."""
    return Morphology.from_raw(raw).graph()


def _result(offenders: List[int], return_offenders: bool):
    return offenders if return_offenders else not offenders

# -----------------------------------------------------------------------------
# 1. per-section invariants
# -----------------------------------------------------------------------------


def type_homogeneity(raw: RawMorphology, *, return_offenders: bool = False):
    """Every sample after the first one carries the section's type.

    The first sample is the node the section grows from and may differ
    (a soma sample, or the last sample before a type change). Soma-typed
    sections are always reported.
    """
    offenders = []
    for sec in raw.sections:
        if sec.type == SWCType.SOMA or np.any(sec.node_types[1:] != sec.type_code):
            offenders.append(sec.id)
    return _result(offenders, return_offenders)


def overlap(raw: RawMorphology, *, return_offenders: bool = False):
    """The first sample of every child equals the last sample of its parent."""
    offenders = []
    for sec in raw.sections:
        if sec.parent_id is None:
            continue
        par = raw.section(sec.parent_id)
        same_pos = np.array_equal(sec.positions[0], par.positions[-1])
        same_r = sec.radii[0] == par.radii[-1]
        if not (same_pos and same_r):
            offenders.append(sec.id)
    return _result(offenders, return_offenders)


def branch_cardinality(raw: RawMorphology, *, return_offenders: bool = False):
    """No section has exactly one child of its own type.

    A single child is only legitimate where the type changes; a same-type
    single child would have been absorbed into its parent.
    """
    offenders = []
    for sec in raw.sections:
        if len(sec.children) == 1 and raw.section(sec.children[0]).type_code == sec.type_code:
            offenders.append(sec.id)
    return _result(offenders, return_offenders)

# -----------------------------------------------------------------------------
# 2. section tree
# -----------------------------------------------------------------------------


def acyclicity(raw: RawMorphology) -> bool:
    """Check that the section graph is a *forest* (|E| = |V| − components)."""
    g = _graph(raw)
    n_comp = len(g.components(mode="weak"))
    return g.ecount() == g.vcount() - n_comp


def summary(raw: RawMorphology) -> Dict[str, Any]:
    """Counts describing the reconstruction.

    Returned dict structure::

        {
            "n_sections": int,
            "n_root_sections": int,
            "n_leaf_sections": int,
            "n_branch_points": int,   # sections with >= 2 children
            "n_type_changes": int,    # sections with exactly 1 child
            "n_soma_points": int,
            "sections_per_type": {"AXON": int, ...},
        }
    """
    n_children = np.asarray([len(s.children) for s in raw.sections], dtype=int)
    per_type: Dict[str, int] = {}
    for sec in raw.sections:
        per_type[sec.type.name] = per_type.get(sec.type.name, 0) + 1

    return {
        "n_sections": raw.n_sections,
        "n_root_sections": sum(s.parent_id is None for s in raw.sections),
        "n_leaf_sections": int((n_children == 0).sum()),
        "n_branch_points": int((n_children >= 2).sum()),
        "n_type_changes": int((n_children == 1).sum()),
        "n_soma_points": 0 if raw.soma is None else raw.soma.n_points,
        "sections_per_type": per_type,
    }
