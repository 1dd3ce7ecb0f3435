from uuid import UUID

from fastapi import HTTPException, Request

from credit_ledger.models.shared import DEFAULT_STORE_ID
from credit_ledger.schemas.actor import Actor


def get_current_store(request: Request) -> UUID:
    """Extract store_id from the X-Store-Id header.

    If no header is provided, falls back to the default store.
    """
    store_id_header = request.headers.get("X-Store-Id")
    if not store_id_header:
        return DEFAULT_STORE_ID
    try:
        return UUID(store_id_header)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid X-Store-Id header") from None


def get_current_actor(request: Request) -> Actor:
    """Identify the user performing a mutation from the X-User-Id / X-User-Name headers."""
    user_id = (request.headers.get("X-User-Id") or "").strip()
    user_name = (request.headers.get("X-User-Name") or "").strip()
    if not user_id or not user_name:
        raise HTTPException(status_code=401, detail="X-User-Id and X-User-Name headers are required")
    if len(user_id) > 64 or len(user_name) > 255:
        raise HTTPException(status_code=400, detail="Invalid user headers")
    return Actor(user_id=user_id, user_name=user_name)
