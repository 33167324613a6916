"""Join-fanout result assembly: query builder, assembler and typed records."""

from .assembler import EntityShape, Facet, ResultAssembler
from .query import build_assembly_query

__all__ = [
    "EntityShape",
    "Facet",
    "ResultAssembler",
    "build_assembly_query",
]
