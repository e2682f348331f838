"""
Supabase access for the catalogue.

The calendar data lives in a hosted Supabase project and is read
through its PostgREST query builder. This module only builds the async
client; every query is composed in ``store.py``. Errors reported by the
backend are raised by the client as ``postgrest.exceptions.APIError``
and are re-exported here as ``BackendError`` so callers do not need to
know which package of the Supabase stack defines them.
"""

from __future__ import annotations

import logging
from typing import Optional

from postgrest.exceptions import APIError as BackendError  # noqa: F401
from supabase import AsyncClient, acreate_client

from ..config import ConfigurationError, Settings, settings as default_settings


logger = logging.getLogger(__name__)

# PostgREST code for ".single()" matching zero (or several) rows
NOT_FOUND_CODE = "PGRST116"


def is_not_found(exc: BackendError) -> bool:
    """Return ``True`` when ``exc`` reports that no row matched a single-row fetch."""
    return getattr(exc, "code", None) == NOT_FOUND_CODE


async def create_client(settings: Optional[Settings] = None) -> AsyncClient:
    """Create the async Supabase client described by ``settings``.

    The endpoint and key are checked again here because test settings
    skip the import-time validation; an empty value would otherwise
    only fail on the first request.
    """
    settings = settings or default_settings
    if not settings.SUPABASE_URL or not settings.SUPABASE_ANON_KEY:
        raise ConfigurationError("Undefined SUPABASE environment variables")
    logger.info("Creating Supabase client for %s", settings.SUPABASE_URL)
    return await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
