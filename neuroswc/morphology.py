"""neuroswc.morphology – query layer built on top of a :class:`RawMorphology`."""

from __future__ import annotations

from typing import Dict, List

import igraph as ig
import numpy as np

from .dataclass import RawMorphology, Section, Soma, SWCType

__all__ = ["Morphology"]


class Morphology:
    """
    Section tree with parent/child navigation.

    Built from the flat :class:`RawMorphology`; the sections themselves are
    shared, not copied.

    Examples
    --------
    >>> m = Morphology.from_raw(raw)
    >>> [s.id for s in m.root_sections()]
    >>> m.total_length(SWCType.AXON)
    """

    def __init__(self, soma: Soma | None, sections: Dict[int, Section]):
        self.soma = soma
        self.sections = sections

    @classmethod
    def from_raw(cls, raw: RawMorphology) -> "Morphology":
        return cls(raw.soma, {s.id: s for s in raw.sections})

    def __len__(self) -> int:
        return len(self.sections)

    def __repr__(self) -> str:
        n_soma = 0 if self.soma is None else self.soma.n_points
        return f"Morphology(n_sections={len(self)}, n_soma_points={n_soma})"

    # -------------------------------------------------------------------------
    # navigation
    # -------------------------------------------------------------------------

    def section(self, section_id: int) -> Section:
        try:
            return self.sections[section_id]
        except KeyError:
            raise KeyError(f"no section with id {section_id}") from None

    def root_sections(self) -> List[Section]:
        """Sections without a parent section (the neurites leaving the soma)."""
        return [s for s in self.sections.values() if s.parent_id is None]

    def leaf_sections(self) -> List[Section]:
        return [s for s in self.sections.values() if not s.children]

    def children(self, section_id: int) -> List[Section]:
        return [self.sections[c] for c in self.section(section_id).children]

    def parent(self, section_id: int) -> Section | None:
        pid = self.section(section_id).parent_id
        return None if pid is None else self.sections[pid]

    def sections_of_type(self, type: SWCType | int) -> List[Section]:
        t = SWCType(type)
        return [s for s in self.sections.values() if s.type == t]

    def path_to_root(self, section_id: int) -> List[int]:
        """Section IDs from ``section_id`` up to its root section, inclusive."""
        path = [section_id]
        sec = self.section(section_id)
        while sec.parent_id is not None:
            path.append(sec.parent_id)
            sec = self.sections[sec.parent_id]
        return path

    # -------------------------------------------------------------------------
    # geometry
    # -------------------------------------------------------------------------

    def section_length(self, section_id: int) -> float:
        """Polyline length of a section, including its leading shared sample."""
        pos = self.section(section_id).positions
        if len(pos) < 2:
            return 0.0
        return float(np.linalg.norm(np.diff(pos, axis=0), axis=1).sum())

    def total_length(self, type: SWCType | int | None = None) -> float:
        secs = self.sections.values() if type is None else self.sections_of_type(type)
        return float(sum(self.section_length(s.id) for s in secs))

    # -------------------------------------------------------------------------
    # graph view
    # -------------------------------------------------------------------------

    def graph(self) -> ig.Graph:
        """
        Directed *igraph* view: one vertex per section, parent → child edges.

        Vertex ``i`` holds the ``i``-th section in ID order; the section ID and
        raw type code are stored as vertex attributes ``section_id`` and ``type``.
        """
        ids = sorted(self.sections)
        index = {sid: i for i, sid in enumerate(ids)}
        edges = [
            (index[s.parent_id], index[s.id])
            for s in (self.sections[sid] for sid in ids)
            if s.parent_id is not None
        ]
        g = ig.Graph(n=len(ids), edges=edges, directed=True)
        g.vs["section_id"] = ids
        g.vs["type"] = [self.sections[sid].type_code for sid in ids]
        return g
