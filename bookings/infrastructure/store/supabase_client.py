from __future__ import annotations

import logging
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client, ClientOptions, create_client

from bookings.application.exceptions import PersistenceError
from bookings.core.config import settings

logger = logging.getLogger(__name__)


def create_supabase_client(
    url: str | None = None,
    key: str | None = None,
    timeout: float | None = None,
) -> Client:
    """Service-role client for the hosted Supabase database."""
    url = url or settings.SUPABASE_URL
    key = key or settings.SUPABASE_SERVICE_ROLE_KEY
    if not url:
        raise ValueError("SUPABASE_URL is required for the Supabase store")
    if not key:
        raise ValueError("SUPABASE_SERVICE_ROLE_KEY is required for the Supabase store")

    options = ClientOptions(postgrest_client_timeout=timeout or settings.STORE_TIMEOUT_SECONDS)
    return create_client(url, key, options=options)


def execute(query, table: str) -> list[dict[str, Any]]:
    """Run a PostgREST query builder; every failure surfaces as PersistenceError."""
    try:
        response = query.execute()
    except APIError as e:
        logger.error(
            "Supabase request rejected",
            extra={"table": table, "status": e.code, "error": e.message},
        )
        raise PersistenceError(e.message or f"Store request failed ({e.code})") from e
    except httpx.HTTPError as e:
        logger.error("Supabase request failed", extra={"table": table, "error": str(e)})
        raise PersistenceError(f"Store unavailable: {e}") from e

    data = response.data
    if not data:
        return []
    return data if isinstance(data, list) else [data]


def is_rejected_request(error: BaseException | None) -> bool:
    """
    True when PostgREST refused the request itself (a 4xx): malformed values such as
    a non-uuid id (Postgres class 22) or PostgREST request errors (PGRST1xx).
    """
    if not isinstance(error, APIError):
        return False
    code = str(error.code or "")
    return code.startswith("22") or code.startswith("PGRST1")
