"""
Catalog package for the release calendar.

This package holds the read-only query layer over the Supabase tables
(``publication``, ``series``, ``publisher``, ``type`` and ``licensed``)
and the routes that expose it. ``store.CatalogStore`` does the querying
and reshaping; ``schemas`` defines the records it returns;
``backend`` builds the Supabase client the store is given.
"""

from .router import router as catalog_router  # noqa: F401
from .store import CatalogStore  # noqa: F401
