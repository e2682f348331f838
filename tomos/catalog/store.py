"""
Read-only queries against the release calendar.

``CatalogStore`` wraps an async Supabase client and exposes one
coroutine per view of the data: the monthly release calendar, the
catalogue of series, a series detail page, licensing announcements and
the publisher/type lookups. Filtering, ordering and joins are all done
server-side by PostgREST; rows are then parsed into the models from
``schemas`` so callers never deal with the raw embedding shapes.

Errors raised by the client (``backend.BackendError``) are not caught
here. Every operation either returns its full result or raises.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from ..config import settings
from .schemas import (
    DateGroup,
    Entry,
    Identifier,
    Licensed,
    Publisher,
    SerieDetail,
    SerieRef,
    SerieSummary,
    Type,
)


logger = logging.getLogger(__name__)

DateLike = Union[str, date]
OneOrMany = Union[Identifier, Iterable[Identifier]]


def month_bounds(today: date) -> Tuple[str, str]:
    """Return the first and last calendar day of ``today``'s month.

    Parameters
    ----------
    today : date
        Any day of the month of interest.

    Returns
    -------
    Tuple[str, str]
        ISO formatted ``(first_day, last_day)``.
    """
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1).isoformat(), today.replace(day=last_day).isoformat()


def _iso(value: Optional[DateLike]) -> Optional[str]:
    if isinstance(value, date):
        return value.isoformat()
    return value or None


def _as_list(value: Optional[OneOrMany]) -> List[Identifier]:
    """Accept a single identifier or a collection of them for ``in`` filters."""
    if value is None:
        return []
    if isinstance(value, (str, int)):
        return [value]
    return list(value)


def group_by_date(entries: List[Entry]) -> List[DateGroup]:
    """Partition sorted entries into consecutive date groups.

    Groups appear in the order their date is first seen and each group
    keeps the relative order of its entries, so concatenating the groups
    gives back ``entries`` unchanged.
    """
    groups: Dict[str, List[Entry]] = {}
    for entry in entries:
        groups.setdefault(entry.date, []).append(entry)
    return [DateGroup(date=day, entries=items) for day, items in groups.items()]


class CatalogStore:
    """Query service over the calendar tables.

    Parameters
    ----------
    client :
        An async Supabase client (see ``backend.create_client``) or any
        object exposing the same ``table(...)`` query builder.
    clock : Callable[[], date]
        Returns the current date; used for the default calendar range.
    publisher_placeholder : Optional[str]
        Label for licensing records whose publisher has no name.
    """

    def __init__(
        self,
        client: Any,
        clock: Callable[[], date] = date.today,
        publisher_placeholder: Optional[str] = None,
    ) -> None:
        self._client = client
        self._clock = clock
        self.publisher_placeholder = publisher_placeholder or settings.PUBLISHER_PLACEHOLDER

    # ------------------------------------------------------------------
    # Calendar

    async def list_entries(
        self,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
        publishers: Optional[OneOrMany] = None,
        ascending: bool = True,
    ) -> List[Entry]:
        """List the releases dated within ``[start, end]``.

        Parameters
        ----------
        start, end : Optional[DateLike]
            Inclusive bounds. Each defaults to the first or last day of
            the current month.
        publishers : Optional[OneOrMany]
            Restrict to releases from these publisher ids.
        ascending : bool
            Direction of the date ordering. Ties are always broken by
            ``wide`` (descending), ``name`` (ascending) and ``edition``
            (descending), in that order.

        Returns
        -------
        List[Entry]
            Releases with their publisher joined and ``image_url``
            reduced to the display cover.
        """
        first_day, last_day = month_bounds(self._clock())
        start = _iso(start) or first_day
        end = _iso(end) or last_day

        query = (
            self._client.table("publication")
            .select("*", "publisher(id,name)")
            .gte("date", start)
            .lte("date", end)
            .order("date", desc=not ascending)
            .order("wide", desc=True)
            .order("name", desc=False)
            .order("edition", desc=True)
        )
        publisher_ids = _as_list(publishers)
        if publisher_ids:
            query = query.in_("publisher", publisher_ids)

        logger.debug(
            "Listing entries from %s to %s (publishers=%s)", start, end, publisher_ids
        )
        response = await query.execute()
        return [Entry.model_validate(row) for row in response.data]

    async def list_entries_by_date(
        self,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
        publishers: Optional[OneOrMany] = None,
        ascending: bool = True,
    ) -> List[DateGroup]:
        """Same as ``list_entries`` but grouped per release date."""
        entries = await self.list_entries(start, end, publishers, ascending)
        return group_by_date(entries)

    async def get_entries_by_serie(
        self, serie_id: Identifier, limit: Optional[int] = None
    ) -> List[Entry]:
        """Every release of one series, oldest first, newest edition first."""
        query = (
            self._client.table("publication")
            .select("*", "publisher(id,name)")
            .eq("serie", serie_id)
            .order("date", desc=False)
            .order("edition", desc=True)
        )
        if limit is not None:
            query = query.limit(limit)

        logger.debug("Listing entries of serie %s (limit=%s)", serie_id, limit)
        response = await query.execute()
        return [Entry.model_validate(row) for row in response.data]

    # ------------------------------------------------------------------
    # Licensing

    async def get_licensing_info(self, serie_id: Identifier) -> Optional[Licensed]:
        """Return the licensing record of a series, or ``None`` if it has none."""
        response = await (
            self._client.table("licensed")
            .select("*")
            .eq("serie", serie_id)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return Licensed.model_validate(rows[0]) if rows else None

    async def list_licensed(self) -> List[Licensed]:
        """List licensing announcements, most recent first.

        Each record gets a ``publisher_label``. Publisher names are
        resolved with a single follow-up query over the distinct
        publisher ids; records whose publisher is unknown or unnamed are
        labelled with ``publisher_placeholder``.
        """
        response = await (
            self._client.table("licensed")
            .select("*")
            .order("timestamp", desc=True)
            .order("publisher", desc=False)
            .execute()
        )
        records = [Licensed.model_validate(row) for row in response.data]

        publisher_ids = {r.publisher for r in records if r.publisher is not None}
        names = await self._publisher_names(publisher_ids)
        return [
            record.model_copy(
                update={
                    "publisher_label": names.get(record.publisher)
                    or self.publisher_placeholder
                }
            )
            for record in records
        ]

    async def _publisher_names(
        self, ids: Iterable[Identifier]
    ) -> Dict[Identifier, Optional[str]]:
        ids = sorted(ids, key=str)
        if not ids:
            return {}
        logger.debug("Resolving %d publisher names", len(ids))
        response = await (
            self._client.table("publisher").select("id", "name").in_("id", ids).execute()
        )
        return {row["id"]: row.get("name") for row in response.data}

    # ------------------------------------------------------------------
    # Lookups

    async def get_type(self, type_id: Identifier) -> Type:
        response = await (
            self._client.table("type")
            .select("*")
            .eq("id", type_id)
            .limit(1)
            .single()
            .execute()
        )
        return Type.model_validate(response.data)

    async def list_types(self) -> List[Type]:
        response = await self._client.table("type").select("*").execute()
        return [Type.model_validate(row) for row in response.data]

    async def get_publisher(self, publisher_id: Identifier) -> Publisher:
        response = await (
            self._client.table("publisher")
            .select("*")
            .eq("id", publisher_id)
            .limit(1)
            .single()
            .execute()
        )
        return Publisher.model_validate(response.data)

    async def list_publishers(self) -> List[Publisher]:
        response = await self._client.table("publisher").select("*").execute()
        return [Publisher.model_validate(row) for row in response.data]

    # ------------------------------------------------------------------
    # Series

    async def get_serie(self, serie_id: Identifier) -> SerieDetail:
        """Fetch one series with its type, publisher, releases and licence.

        Releases are ordered by date, then by edition (newest first).
        Raises ``BackendError`` when no series has this id.
        """
        logger.debug("Fetching serie %s", serie_id)
        response = await (
            self._client.table("series")
            .select(
                "id",
                "name",
                "anilist",
                "type(*)",
                "publisher(*)",
                "publication(id,name,edition,price,image_url,date)",
                "licensed(source,image_url,timestamp)",
                "status",
            )
            .eq("id", serie_id)
            .order("date", desc=False, foreign_table="publication")
            .order("edition", desc=True, foreign_table="publication")
            .limit(1, foreign_table="type")
            .limit(1, foreign_table="publisher")
            .limit(1, foreign_table="licensed")
            .limit(1)
            .single()
            .execute()
        )
        return SerieDetail.model_validate(response.data)

    async def list_series(
        self,
        publishers: Optional[OneOrMany] = None,
        types: Optional[OneOrMany] = None,
        status: Optional[Union[str, Iterable[str]]] = None,
    ) -> List[SerieSummary]:
        """List the catalogue of series with a display cover each.

        Parameters
        ----------
        publishers, types, status : optional
            Each restricts the listing to rows whose column is one of
            the given values.

        Returns
        -------
        List[SerieSummary]
            Series ordered by status, publisher and name. ``image_url``
            is the first release cover, else the licensing image.
        """
        query = (
            self._client.table("series")
            .select(
                "*",
                "licensed(image_url)",
                "publication(image_url)",
                "publisher(id,name)",
                "type(id,name,color)",
            )
            .order("status", desc=False)
            .order("publisher", desc=False)
            .order("name", desc=False)
            .order("name", desc=False, foreign_table="publication")
        )
        for column, values in (
            ("publisher", _as_list(publishers)),
            ("type", _as_list(types)),
            ("status", _as_list(status)),
        ):
            if values:
                query = query.in_(column, values)

        logger.debug(
            "Listing series (publishers=%s, types=%s, status=%s)",
            publishers,
            types,
            status,
        )
        response = await query.execute()
        return [SerieSummary.model_validate(row) for row in response.data]

    async def list_serie_refs(self) -> List[SerieRef]:
        response = await self._client.table("series").select("id", "name").execute()
        return [SerieRef.model_validate(row) for row in response.data]
