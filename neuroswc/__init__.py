from . import dx, io
from .dataclass import PointRecord, RawMorphology, Section, Soma, SWCType
from .errors import DanglingParentError, EmptyMorphologyWarning, MalformedPointError
from .morphology import Morphology
from .parser import SwcParser, reconstruct

__all__ = [
    "SwcParser",
    "reconstruct",
    "Morphology",
    "RawMorphology",
    "Section",
    "Soma",
    "PointRecord",
    "SWCType",
    "MalformedPointError",
    "DanglingParentError",
    "EmptyMorphologyWarning",
    "dx",
    "io",
]
