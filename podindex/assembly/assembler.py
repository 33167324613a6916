"""Assembly of flat LEFT JOIN rows into nested records.

A query that LEFT JOINs a parent table to several independent one-to-many
child tables returns one row per combination of children (fan-out): a
parent with m soundbites and n transcripts comes back as up to m*n rows.
`ResultAssembler` folds those rows back into one record per parent, with
every child instance present exactly once.

Rows are plain mappings keyed by column labels. Each shape owns a label
prefix (`"<shape name>_<column>"`), so the same row can carry the parent,
its 1:1 companions and any number of facets side by side.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntityShape:
    """The columns of one table as they appear, labeled, in a joined row.

    Attributes:
        name: Label prefix, unique within a query.
        model: ORM model the columns come from.
        columns: Column names selected for this shape.
        record: Record class built from the column values when `build` is None.
        build: Optional `build(shape, row)` returning the record; use it when a
            record needs values from other shapes in the same row.
        key: Column identifying one instance when the shape is a parent.
    """

    name: str
    model: Any
    columns: Tuple[str, ...]
    record: Optional[type] = None
    build: Optional[Callable[["EntityShape", Mapping[str, Any]], Any]] = None
    key: str = "id"

    def label(self, column: str) -> str:
        return f"{self.name}_{column}"

    def select_columns(self) -> list:
        return [getattr(self.model, column).label(self.label(column)) for column in self.columns]

    def values(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        return {column: row.get(self.label(column)) for column in self.columns}

    def key_of(self, row: Mapping[str, Any]) -> Any:
        return row.get(self.label(self.key))

    def make(self, row: Mapping[str, Any]) -> Any:
        if self.build is not None:
            return self.build(self, row)
        return self.record(**self.values(row))


@dataclass(frozen=True)
class Facet(EntityShape):
    """A child relation folded into a list attribute (or a single attribute) of its parent.

    Attributes:
        owner: Model whose `id` the facet's `parent_key` column references.
        parent_key: Foreign key column on the facet table.
        key_columns: Natural key deduplicating fan-out repeats. When all of them
            are NULL in a row, the facet is absent from that row.
        singleton: At most one instance per parent; stored on the attribute
            instead of appended to a list.
    """

    owner: Any = None
    parent_key: str = "item_id"
    key_columns: Tuple[str, ...] = ()
    singleton: bool = False

    def select_columns(self) -> list:
        columns = list(self.columns)
        for column in self.key_columns:
            if column not in columns:
                columns.append(column)
        return [getattr(self.model, column).label(self.label(column)) for column in columns]

    def is_present(self, row: Mapping[str, Any]) -> bool:
        return any(row.get(self.label(column)) is not None for column in self.key_columns)

    def natural_key(self, row: Mapping[str, Any]) -> Hashable:
        return tuple(row.get(self.label(column)) for column in self.key_columns)


class ResultAssembler:
    """Folds fanned-out joined rows into one record per parent.

    Parents come out in the order their first row was seen, which is the
    query's own ORDER BY; the assembler never sorts. Facet instances keep
    first-appearance order within their parent.

    Example:
        assembler = ResultAssembler(EPISODE, (SOUNDBITES, TRANSCRIPTS))
        episodes = assembler.assemble(repository.query_rows(stmt), max_results=10)
    """

    def __init__(self, parent: EntityShape, facets: Sequence[Facet] = ()):
        names = [facet.name for facet in facets]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate facet names: {names}")
        self.parent = parent
        self.facets = tuple(facets)

    def assemble(
        self,
        rows: Iterable[Mapping[str, Any]],
        max_results: Optional[int] = None,
    ) -> List[Any]:
        """
        Build the parent records described by `rows`.

        Parameters:
            rows: Joined rows in query order.
            max_results: Cap on the number of assembled parents (not rows).

        Returns:
            List of parent records, each facet deduplicated by its natural key.
        """
        parents: Dict[Any, Any] = {}
        seen_keys: Dict[Any, Dict[str, Set[Hashable]]] = {}

        for row in rows:
            parent_id = self.parent.key_of(row)
            if parent_id is None:
                continue

            if parent_id not in parents:
                parents[parent_id] = self.parent.make(row)
                seen_keys[parent_id] = {facet.name: set() for facet in self.facets}
            record = parents[parent_id]

            for facet in self.facets:
                if not facet.is_present(row):
                    continue
                key = facet.natural_key(row)
                seen = seen_keys[parent_id][facet.name]
                if key in seen:
                    continue
                seen.add(key)

                instance = facet.make(row)
                if facet.singleton:
                    self._set_singleton(record, facet, instance, parent_id)
                else:
                    getattr(record, facet.name).append(instance)

        result = list(parents.values())
        if max_results is not None:
            result = result[:max_results]
        return result

    def _set_singleton(self, record: Any, facet: Facet, instance: Any, parent_id: Any) -> None:
        # Last seen wins. A second, different instance of a one-per-parent
        # facet means the store holds conflicting rows.
        current = getattr(record, facet.name)
        if current is not None and current != instance:
            logger.warning(
                f"{self.parent.name} {parent_id} has more than one {facet.name}; "
                f"replacing {current!r} with {instance!r}"
            )
        setattr(record, facet.name, instance)
