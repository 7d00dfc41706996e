"""Shared FastAPI dependencies.

Reusable type aliases and dependency functions that routers import.
Defined here (not in main.py) to avoid circular imports when routers
are registered in main.
"""

import secrets
from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from products_api.db.session import get_db
from products_api.exceptions import UnauthorizedFailure

DB = Annotated[AsyncSession, Depends(get_db)]


async def require_api_key(
    request: Request,
    x_api_key: Annotated[str | None, Header()] = None,
) -> None:
    """Reject write requests without the app's configured X-API-Key."""
    if x_api_key is None:
        raise UnauthorizedFailure("The X-API-Key header is required.")
    expected: str = request.app.state.settings.api_key
    # Compare bytes: headers arrive latin-1 decoded and str comparison rejects non-ASCII.
    if not secrets.compare_digest(x_api_key.encode(), expected.encode()):
        raise UnauthorizedFailure("The API key is not valid.")


ApiKey = Depends(require_api_key)
