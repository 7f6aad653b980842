from .core import DEFAULT_ALPHA, Method, ReorthOptions, ReorthResult, reorthogonalize
from .errors import DimensionMismatch, InvalidArgument, ReorthError
from .gateway import reorth, resolve_index

__all__ = [
    "DEFAULT_ALPHA",
    "Method",
    "ReorthOptions",
    "ReorthResult",
    "reorthogonalize",
    "reorth",
    "resolve_index",
    "ReorthError",
    "DimensionMismatch",
    "InvalidArgument",
]
