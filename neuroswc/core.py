"""Reconstruction helpers: SWC text → points → node graph → sections."""

from __future__ import annotations

import math
import re
import warnings
from typing import Callable, Dict, List, Sequence, Tuple

from .dataclass import Node, PointRecord, RawMorphology, Section, Soma, SWCType
from .errors import DanglingParentError, EmptyMorphologyWarning, MalformedPointError

__all__ = [
    "extract_points",
    "build_nodes",
    "root_nodes",
    "build_sections",
    "build_soma",
    "assemble_raw_morphology",
]

_TOKEN_SEP = re.compile(r"[\s,]+")
_N_FIELDS = 7  # id, type, x, y, z, radius, parent


# -----------------------------------------------------------------------------
# 1. point extraction
# -----------------------------------------------------------------------------


def _strip_comment(line: str, comment: str) -> str:
    if comment:
        line = line.split(comment, 1)[0]
    return line.strip()


def _round_int(token: str) -> int:
    """Parse a float-formatted integer, rounding half up (``2.5`` → ``3``)."""
    return math.floor(float(token) + 0.5)


def _coerce_row(tokens: Sequence[str], lineno: int, line: str) -> PointRecord:
    try:
        nid, ntype, pid = (_round_int(tokens[i]) for i in (0, 1, 6))
        x, y, z, r = (float(t) for t in tokens[2:6])
    except (ValueError, OverflowError) as exc:
        raise MalformedPointError(lineno, line, str(exc)) from None
    return PointRecord(
        id=nid,
        type=SWCType.from_code(ntype),
        code=ntype,
        x=x,
        y=y,
        z=z,
        radius=r,
        parent_id=pid,
    )


def extract_points(
    text: str,
    *,
    comment: str = "#",
    strict: bool = False,
    log: Callable | None = None,
) -> List[PointRecord]:
    """
    Decode SWC text into an ordered list of :class:`PointRecord`.

    Parameters
    ----------
    text
        Full content of an SWC file.
    comment
        Comment marker; everything from it to the end of the line is dropped.
    strict
        When *False* (default) a line whose fields cannot be read as numbers
        is skipped and reported through ``log``. When *True* the first such
        line raises :class:`MalformedPointError`.
    log
        Optional callable receiving progress messages.

    Returns
    -------
    list[PointRecord]
        One record per usable line, in file order. Lines with fewer than seven
        fields are dropped; the list has no gaps.
    """
    points: List[PointRecord] = []
    n_short = 0
    n_bad = 0

    # files saved with a UTF-8 byte-order mark
    if text.startswith("\ufeff"):
        text = text[1:]

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = _strip_comment(raw, comment)
        if not line:
            continue
        tokens = [t for t in _TOKEN_SEP.split(line) if t]
        if len(tokens) < _N_FIELDS:
            n_short += 1
            continue
        try:
            points.append(_coerce_row(tokens, lineno, raw))
        except MalformedPointError as exc:
            if strict:
                raise
            n_bad += 1
            if log:
                log(f"skipped {exc}")

    if log:
        log(f"{len(points)} points extracted")
        if n_short:
            log(f"{n_short} lines with fewer than {_N_FIELDS} fields dropped")
        if n_bad:
            log(f"{n_bad} malformed lines skipped")
    return points


# -----------------------------------------------------------------------------
# 2. node graph
# -----------------------------------------------------------------------------


def build_nodes(
    points: Sequence[PointRecord],
    *,
    log: Callable | None = None,
) -> Tuple[Dict[int, Node], List[Node]]:
    """
    Create one :class:`Node` per record and link every node to its parent.

    Linking runs in a second pass so a sample may be listed before its parent.
    A repeated ID replaces the earlier node (last write wins).

    Returns
    -------
    nodes
        ID → node mapping, in first-seen ID order.
    soma_nodes
        The soma-typed nodes of ``nodes``, in the order they were created
        (a replaced node drops out, its replacement sits at its own place).

    Raises
    ------
    DanglingParentError
        If a declared parent ID is not present in ``points``.
    """
    nodes: Dict[int, Node] = {}
    created: List[Node] = []
    for rec in points:
        node = Node.from_record(rec)
        nodes[rec.id] = node
        created.append(node)

    for node in nodes.values():
        if node.parent_id is None:
            continue
        parent = nodes.get(node.parent_id)
        if parent is None:
            raise DanglingParentError(node.id, node.parent_id)
        node.set_parent(parent)

    soma_nodes = [n for n in created if n.is_soma and nodes[n.id] is n]

    if log:
        n_dup = len(points) - len(nodes)
        log(f"{len(nodes)} nodes, {len(root_nodes(nodes))} roots, {len(soma_nodes)} soma")
        if n_dup:
            log(f"{n_dup} duplicate IDs replaced by later samples")
    return nodes, soma_nodes


def root_nodes(nodes: Dict[int, Node]) -> List[Node]:
    """Nodes that never got a parent link."""
    return [n for n in nodes.values() if n.parent is None]


# -----------------------------------------------------------------------------
# 3. sections & soma
# -----------------------------------------------------------------------------


def _dive(start: Node, chain: List[Node]) -> List[Node]:
    """
    Append ``start`` and its unbranched continuation to ``chain``.

    The walk goes on while the current node has exactly one non-soma child
    carrying the raw type code of ``start``. Returns the non-soma children of
    the node it stopped at: empty at a leaf, one node at a type change,
    several at a branch point.
    """
    node = start
    while True:
        chain.append(node)
        kids = node.process_children
        if len(kids) == 1 and kids[0].code == start.code:
            node = kids[0]
            continue
        return kids


def _section_seeds(nodes: Dict[int, Node]) -> List[Node]:
    """Non-soma nodes sitting directly below a soma sample or with no parent."""
    return [
        n
        for n in nodes.values()
        if not n.is_soma and (n.parent is None or n.parent.is_soma)
    ]


def build_sections(
    nodes: Dict[int, Node],
    *,
    log: Callable | None = None,
) -> List[Section]:
    """
    Split the node graph into sections.

    Seeds are pushed on a LIFO stack in node order and popped last-first;
    the children of every frontier node are pushed in child order, so the
    most recently discovered branch is expanded first. Section IDs count up
    from 0 in pop order, which makes each ID equal to its list index.
    """
    sections: List[Section] = []
    stack: List[Tuple[Node, int | None]] = [(n, None) for n in _section_seeds(nodes)]
    next_id = 0

    while stack:
        start, parent_sid = stack.pop()

        # a non-root section repeats the node it grows from
        chain: List[Node] = [] if start.parent is None else [start.parent]
        fork = _dive(start, chain)

        sec = Section.from_nodes(next_id, start.code, chain, parent_sid)
        if parent_sid is not None:
            sections[parent_sid].children.append(sec.id)
        stack.extend((child, sec.id) for child in fork)

        sections.append(sec)
        next_id += 1

    if log:
        n_roots = sum(s.is_root for s in sections)
        log(f"{len(sections)} sections ({n_roots} root)")
    return sections


def build_soma(soma_nodes: Sequence[Node]) -> Soma | None:
    """Aggregate the soma samples, or ``None`` when there are none."""
    if not soma_nodes:
        return None
    return Soma.from_nodes(list(soma_nodes))


# -----------------------------------------------------------------------------
# 4. assembly
# -----------------------------------------------------------------------------


def assemble_raw_morphology(
    soma: Soma | None,
    sections: Sequence[Section] | None,
    *,
    log: Callable | None = None,
) -> RawMorphology | None:
    """
    Combine soma and sections into a :class:`RawMorphology`.

    Either part may be missing. When both are, an
    :class:`EmptyMorphologyWarning` is issued and ``None`` is returned.
    """
    if not sections and log:
        log("morphology has no section")
    if soma is None and log:
        log("morphology has no soma")

    if soma is None and not sections:
        warnings.warn(
            "no valid morphology data: neither soma nor sections",
            EmptyMorphologyWarning,
            stacklevel=2,
        )
        return None

    return RawMorphology(soma=soma, sections=list(sections or []))
