"""Parameterized join query for the result assembler.

One builder replaces the family of "get feeds/episodes by X" queries: the
caller supplies the parent shape, the 1:1 companions, the facets to fan out
over, plus filters, ordering and a limit.
"""

from typing import Any, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.sql import Select

from .assembler import EntityShape, Facet

Companion = Tuple[EntityShape, Any, bool]  # (shape, onclause, outer join)


def _join_companions(stmt: Select, companions: Sequence[Companion]) -> Select:
    for shape, onclause, outer in companions:
        stmt = stmt.join(shape.model, onclause, isouter=outer)
    return stmt


def build_assembly_query(
    parent: EntityShape,
    facets: Sequence[Facet] = (),
    companions: Sequence[Companion] = (),
    where: Sequence[Any] = (),
    order_by: Sequence[Any] = (),
    limit: Optional[int] = None,
) -> Select:
    """
    Build the SELECT whose rows `ResultAssembler(parent, facets)` consumes.

    The limit is applied to parent ids in a subquery before the facet tables
    are LEFT JOINed, so fan-out can never cut a parent's facets short or
    crowd out parents. Companions must be 1:1 with the parent; filters and
    ordering may reference them.

    Rows come out ordered by `order_by`, then parent id, then facet ids, so
    each parent's rows are contiguous and the output is deterministic.

    Parameters:
        parent: Shape whose instances are counted against `limit`.
        facets: One-to-many (or singleton) children to LEFT JOIN.
        companions: `(shape, onclause, outer)` tuples joined next to the parent.
        where: Filter expressions on parent or companion columns.
        order_by: Ordering expressions; the parent id is always appended as tie-breaker.
        limit: Maximum number of parents.
    """
    parent_id = getattr(parent.model, parent.key)

    page = select(parent_id.label("page_id")).select_from(parent.model)
    page = _join_companions(page, companions)
    page = page.where(*where).order_by(*order_by, parent_id)
    if limit is not None:
        page = page.limit(limit)
    page = page.subquery("page")

    columns = parent.select_columns()
    for shape, _, _ in companions:
        columns.extend(shape.select_columns())
    for facet in facets:
        columns.extend(facet.select_columns())

    stmt = select(*columns).select_from(parent.model).join(page, parent_id == page.c.page_id)
    stmt = _join_companions(stmt, companions)

    facet_order = []
    for facet in facets:
        owner_id = getattr(facet.owner, "id")
        stmt = stmt.outerjoin(facet.model, getattr(facet.model, facet.parent_key) == owner_id)
        facet_order.append(getattr(facet.model, "id"))

    return stmt.order_by(*order_by, parent_id, *facet_order)
