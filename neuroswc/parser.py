"""neuroswc.parser – end-to-end SWC reconstruction."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Callable

from .core import (
    assemble_raw_morphology,
    build_nodes,
    build_sections,
    build_soma,
    extract_points,
)
from .dataclass import RawMorphology
from .morphology import Morphology

__all__ = ["reconstruct", "SwcParser"]


_LABEL_WIDTH = 30


@contextmanager
def _stage(label: str, *, verbose: bool):
    """
    Time one pipeline step and report it on stdout.

    The body receives a ``log`` callable. Messages are held back until the
    step is over so they print under the timing line, one per row. With
    ``verbose=False`` nothing is printed and ``log`` discards its input.
    """
    if not verbose:
        yield lambda *_: None
        return

    notes: list[str] = []
    print(f"[neuroswc] {label:<{_LABEL_WIDTH}} …", end="", flush=True)
    start = time.perf_counter()
    try:
        yield lambda msg: notes.append(str(msg))
    finally:
        print(f" {time.perf_counter() - start:.2f} s")
        for note in notes:
            print(f"      └─ {note}")


def reconstruct(
    text: str,
    *,
    comment: str = "#",
    strict: bool = False,
    verbose: bool = False,
) -> RawMorphology | None:
    """
    Rebuild soma and sections from the content of an SWC file.

    Parameters
    ----------
    text
        SWC file content.
    comment
        Comment marker, ``"#"`` in standard SWC.
    strict
        Raise on the first line whose fields are not numbers instead of
        skipping it.
    verbose
        Print per-stage timings and counts.

    Returns
    -------
    RawMorphology or None
        ``None`` (with an :class:`~neuroswc.errors.EmptyMorphologyWarning`)
        when neither a soma nor a section could be built.

    Raises
    ------
    DanglingParentError
        If a sample references a parent that is not in the file.
    MalformedPointError
        Only with ``strict=True``.
    """
    with _stage("↳  extract points", verbose=verbose) as log:
        points = extract_points(text, comment=comment, strict=strict, log=log)

    with _stage("↳  link nodes", verbose=verbose) as log:
        nodes, soma_nodes = build_nodes(points, log=log)

    with _stage("↳  build sections", verbose=verbose) as log:
        sections = build_sections(nodes, log=log)
        soma = build_soma(soma_nodes)
        if soma is not None:
            log(f"soma: {soma.n_points} points, r = {soma.radius:.3g}")

    with _stage("↳  assemble morphology", verbose=verbose) as log:
        return assemble_raw_morphology(soma, sections, log=log)


class SwcParser:
    """
    Stateful wrapper around :func:`reconstruct`.

    Every :meth:`parse` starts from scratch; the results of the last call are
    available as :attr:`raw_morphology` and :attr:`morphology`.

    Parameters
    ----------
    builder
        Callable turning a :class:`RawMorphology` into the richer domain
        object exposed as :attr:`morphology`. ``None`` skips that step.
    comment, strict, verbose
        Forwarded to :func:`reconstruct`.
    """

    def __init__(
        self,
        *,
        builder: Callable[[RawMorphology], Any] | None = Morphology.from_raw,
        comment: str = "#",
        strict: bool = False,
        verbose: bool = False,
    ):
        self.builder = builder
        self.comment = comment
        self.strict = strict
        self.verbose = verbose
        self._raw_morphology: RawMorphology | None = None
        self._morphology: Any = None

    @property
    def raw_morphology(self) -> RawMorphology | None:
        """Flat soma + sections of the last parse."""
        return self._raw_morphology

    @property
    def morphology(self) -> Any:
        """Domain object produced by ``builder`` for the last parse."""
        return self._morphology

    def parse(self, text: str) -> RawMorphology | None:
        self._raw_morphology = None
        self._morphology = None

        raw = reconstruct(
            text, comment=self.comment, strict=self.strict, verbose=self.verbose
        )
        if raw is None:
            return None

        self._raw_morphology = raw
        if self.builder is not None:
            self._morphology = self.builder(raw)
        return raw
