import json
from pathlib import Path

from .dataclass import RawMorphology
from .parser import reconstruct

__all__ = ["load_swc", "to_json"]

# -----------
# --- SWC ---
# -----------

def load_swc(
    path: str | Path,
    *,
    comment: str = "#",
    strict: bool = False,
    verbose: bool = False,
) -> RawMorphology | None:
    """
    Read an SWC file and rebuild its soma and sections.

    Parameters
    ----------
    path
        SWC file path.
    comment, strict, verbose
        Forwarded to :func:`neuroswc.parser.reconstruct`.

    Returns
    -------
    RawMorphology or None
        ``None`` when the file holds neither soma nor process samples.
    """
    path = Path(path)
    text = path.read_text(encoding="utf8")
    return reconstruct(text, comment=comment, strict=strict, verbose=verbose)

# ------------
# --- JSON ---
# ------------

def to_json(raw: RawMorphology, path: str | Path, *, indent: int | None = None) -> Path:
    """
    Write the flat soma + sections layout of ``raw`` to a JSON file.

    A ``.json`` suffix is appended when ``path`` has none. Returns the path
    actually written.
    """
    path = Path(path)

    # add .json to the path if not present
    if not path.suffix:
        path = path.with_suffix(".json")

    with path.open("w", encoding="utf8") as fh:
        json.dump(raw.to_dict(), fh, indent=indent)
    return path
