"""neuroswc.dataclass – plain containers shared by the reconstruction pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Iterator, List, Tuple

import numpy as np

__all__ = [
    "SWCType",
    "PointRecord",
    "Node",
    "Section",
    "Soma",
    "RawMorphology",
]


class SWCType(IntEnum):
    """Structure identifiers of the SWC format."""

    UNDEFINED = 0
    SOMA = 1
    AXON = 2
    BASAL_DENDRITE = 3
    APICAL_DENDRITE = 4
    CUSTOM = 5

    @classmethod
    def from_code(cls, code: int) -> "SWCType":
        """Map a raw SWC type code; ``>= 5`` is custom, negatives are undefined."""
        if code < 0:
            return cls.UNDEFINED
        if code >= cls.CUSTOM:
            return cls.CUSTOM
        return cls(code)


# -----------------------------------------------------------------------------
# point records & nodes
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PointRecord:
    """One decoded SWC sample line."""
    id: int
    type: SWCType
    x: float
    y: float
    z: float
    radius: float
    parent_id: int
    code: int | None = None  # raw SWC type code; ``type`` folds codes >= 5 into CUSTOM

    @property
    def type_code(self) -> int:
        return int(self.type) if self.code is None else self.code

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @property
    def is_root(self) -> bool:
        return self.parent_id == -1


class Node:
    """
    Vertex of the reconstruction graph, built from one :class:`PointRecord`.

    ``parent`` and ``children`` are plain references into the ID-keyed node
    mapping that owns every node; ``parent_id`` keeps the declared parent until
    the linking pass resolves it.
    """

    __slots__ = ("id", "type", "code", "position", "radius", "parent", "parent_id", "children")

    def __init__(self, id: int, type: SWCType | int, position, radius: float):
        self.id = int(id)
        self.code = int(type)
        self.type = SWCType.from_code(self.code)
        self.position = np.asarray(position, dtype=np.float64)
        self.radius = float(radius)
        self.parent: Node | None = None
        self.parent_id: int | None = None
        self.children: List[Node] = []

    @classmethod
    def from_record(cls, rec: PointRecord) -> "Node":
        node = cls(rec.id, rec.type_code, (rec.x, rec.y, rec.z), rec.radius)
        if not rec.is_root:
            node.parent_id = rec.parent_id
        return node

    @property
    def is_soma(self) -> bool:
        return self.type == SWCType.SOMA

    @property
    def process_children(self) -> List["Node"]:
        """Children that are not soma samples."""
        return [c for c in self.children if not c.is_soma]

    def has_child(self, node_id: int) -> bool:
        return any(c.id == node_id for c in self.children)

    def add_child(self, child: "Node") -> None:
        # a second child with the same ID is ignored
        if not self.has_child(child.id):
            self.children.append(child)

    def set_parent(self, parent: "Node") -> None:
        self.parent = parent
        parent.add_child(self)

    def __repr__(self) -> str:
        pid = None if self.parent is None else self.parent.id
        return (
            f"Node(id={self.id}, type={self.type.name}, parent={pid}, "
            f"n_children={len(self.children)})"
        )


# -----------------------------------------------------------------------------
# reconstruction output
# -----------------------------------------------------------------------------


@dataclass(slots=True, eq=False)
class Section:
    """
    Homogeneous polyline between two structural boundaries.

    positions : (N,3) float64  Sample coordinates, in traversal order.
    radii     : (N,)  float64  Sample radii.
    parent_id : int | None     ID of the parent section (``None`` for roots).
    children  : list[int]      Child section IDs, in discovery order.
    node_ids  : (N,)  int64    SWC IDs of the samples.
    node_types: (N,)  int64    Raw SWC type codes of the samples.
    code      : int | None     Raw SWC type code of the section.

    The first sample of a section that starts below another node is a copy
    of that node (the last sample of the parent section, or a soma sample).
    """
    id: int
    type: SWCType
    positions: np.ndarray
    radii: np.ndarray
    parent_id: int | None = None
    children: List[int] = field(default_factory=list)
    node_ids: np.ndarray = field(default_factory=lambda: np.zeros(0, np.int64))
    node_types: np.ndarray = field(default_factory=lambda: np.zeros(0, np.int64))
    code: int | None = None

    @classmethod
    def from_nodes(
        cls, id: int, code: int, nodes: List[Node], parent_id: int | None
    ) -> "Section":
        positions = np.asarray([n.position for n in nodes], dtype=np.float64)
        radii = np.asarray([n.radius for n in nodes], dtype=np.float64)
        return cls(
            id=id,
            type=SWCType.from_code(code),
            positions=positions.reshape(-1, 3),
            radii=radii,
            parent_id=parent_id,
            node_ids=np.asarray([n.id for n in nodes], dtype=np.int64),
            node_types=np.asarray([n.code for n in nodes], dtype=np.int64),
            code=int(code),
        )

    @property
    def type_code(self) -> int:
        return int(self.type) if self.code is None else self.code

    @property
    def n_points(self) -> int:
        return int(len(self.radii))

    @property
    def points(self) -> Iterator[Tuple[np.ndarray, float]]:
        for pos, r in zip(self.positions, self.radii):
            yield pos, float(r)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "typevalue": self.type_code,
            "points": [
                {"position": pos.tolist(), "radius": r} for pos, r in self.points
            ],
            "children": list(self.children),
            "parent": self.parent_id,
        }


@dataclass(slots=True, eq=False)
class Soma:
    """Aggregate of every soma sample: the largest radius and all positions."""
    radius: float
    points: np.ndarray
    id: int = 0
    type: SWCType = SWCType.SOMA

    @classmethod
    def from_nodes(cls, nodes: List[Node]) -> "Soma":
        if not nodes:
            raise ValueError("cannot build a soma from zero nodes")
        return cls(
            radius=max(n.radius for n in nodes),
            points=np.asarray([n.position for n in nodes], dtype=np.float64),
        )

    @property
    def center(self) -> np.ndarray:
        return self.points.mean(axis=0)

    @property
    def n_points(self) -> int:
        return int(len(self.points))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "soma",
            "radius": float(self.radius),
            "points": [{"position": p.tolist()} for p in self.points],
        }


@dataclass(slots=True)
class RawMorphology:
    """Flat soma + sections structure; parent/child links are section IDs."""
    soma: Soma | None
    sections: List[Section] = field(default_factory=list)

    @property
    def n_sections(self) -> int:
        return len(self.sections)

    def section(self, section_id: int) -> Section:
        # IDs are handed out sequentially, so the ID is also the list index
        if not 0 <= section_id < len(self.sections):
            raise KeyError(section_id)
        return self.sections[section_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "soma": None if self.soma is None else self.soma.to_dict(),
            "sections": [s.to_dict() for s in self.sections],
        }
