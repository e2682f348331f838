"""
Pydantic schema definitions for the catalog module.

Rows returned by Supabase are parsed into these models as soon as a
query completes. PostgREST embeds a joined relation either as an object
or as a list depending on how the foreign key is declared, so each
nested relation goes through one of the conversion helpers below
(``first_or_none``, ``list_or_none``, ``first_cover``) before it reaches
a field. After parsing, a singular relation is always a model or
``None`` and a one-to-many relation is always a list or ``None``.
"""

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


Identifier = Union[int, str]


def first_or_none(value: Any) -> Any:
    """Collapse a relation that may come back as a list into one object."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


def list_or_none(value: Any) -> Any:
    """Wrap a bare object into a list; ``None`` stays ``None``."""
    if value is None:
        return None
    if isinstance(value, list):
        return value
    return [value]


def first_cover(value: Any) -> Optional[str]:
    """Return the first image of a cover list, or ``None``."""
    if isinstance(value, list) and value:
        return value[0]
    return None


def derive_cover(publication: Any, licensed: Any) -> Optional[str]:
    """Pick the display cover of a series.

    The first publication's first cover wins; otherwise the image of
    the licensing record is used, whether it was embedded as an object
    or as a list.
    """
    publications = list_or_none(publication) or []
    if publications and isinstance(publications[0], dict):
        cover = first_cover(publications[0].get("image_url"))
        if cover:
            return cover
    record = first_or_none(licensed)
    if isinstance(record, dict):
        return record.get("image_url")
    return None


class Publisher(BaseModel):
    """A publishing house."""

    id: Identifier
    name: Optional[str] = None


class Type(BaseModel):
    """A series category (manga, novel, ...) and its display colour."""

    id: Identifier
    name: Optional[str] = None
    color: Optional[str] = None


class Entry(BaseModel):
    """A dated release shown on the calendar.

    ``image_url`` holds the display cover only: the backend stores a
    list of images per release and the first one is kept. Columns not
    declared here are preserved as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    id: Identifier
    serie: Optional[Identifier] = None
    publisher: Optional[Publisher] = None
    name: str
    edition: Optional[int] = None
    date: str
    price: Optional[float] = None
    image_url: Optional[str] = None
    wide: Optional[bool] = None

    collapse_publisher = field_validator("publisher", mode="before")(first_or_none)
    collapse_cover = field_validator("image_url", mode="before")(first_cover)


class SeriePublication(BaseModel):
    """A release as embedded in a series detail."""

    id: Identifier
    name: Optional[str] = None
    edition: Optional[int] = None
    price: Optional[float] = None
    image_url: Optional[List[str]] = None
    date: Optional[str] = None


class Licensed(BaseModel):
    """A licensing announcement for a series.

    ``publisher_label`` is only filled by the licensing listing, where
    the publisher name is resolved for display.
    """

    serie: Optional[Identifier] = None
    publisher: Optional[Identifier] = None
    source: Optional[str] = None
    image_url: Optional[str] = None
    timestamp: Optional[str] = None
    publisher_label: Optional[str] = None


class SerieDetail(BaseModel):
    id: Identifier
    name: str
    anilist: Optional[int] = None
    status: Optional[str] = None
    type: Optional[Type] = None
    publisher: Optional[Publisher] = None
    publication: Optional[List[SeriePublication]] = None
    licensed: Optional[Licensed] = None

    collapse_relations = field_validator(
        "type", "publisher", "licensed", mode="before"
    )(first_or_none)
    wrap_publications = field_validator("publication", mode="before")(list_or_none)


class SerieSummary(BaseModel):
    """A series row of the catalogue listing, with its derived cover."""

    model_config = ConfigDict(extra="allow")

    id: Identifier
    name: str
    anilist: Optional[int] = None
    status: Optional[str] = None
    type: Optional[Type] = None
    publisher: Optional[Publisher] = None
    image_url: Optional[str] = None

    collapse_relations = field_validator("type", "publisher", mode="before")(first_or_none)

    @model_validator(mode="before")
    @classmethod
    def derive_image_url(cls, data: Any) -> Any:
        # The embedded cover sources are only needed to derive image_url.
        if isinstance(data, dict):
            data = dict(data)
            publication = data.pop("publication", None)
            licensed = data.pop("licensed", None)
            data["image_url"] = derive_cover(publication, licensed)
        return data


class SerieRef(BaseModel):
    """Identifier and name of a series, for indexes and navigation."""

    id: Identifier
    name: Optional[str] = None


class DateGroup(BaseModel):
    date: str
    entries: List[Entry] = Field(default_factory=list)
