"""
GraphQL Context

Provides request context to all GraphQL resolvers:
- Database session for the request
- Resolved caller identity (None for anonymous requests)
- run(), which executes blocking work in the threadpool

The context is created fresh for each GraphQL request and passed to all
resolvers via the `info` parameter.

Resolvers touch the database and hash passwords synchronously, so they are
moved off the event loop. Root query fields may execute concurrently, and
the request has a single Session, so run() lets one call through at a time.
"""

import asyncio
from typing import Any, Callable, TypeVar

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from strawberry.fastapi import BaseContext

from bookstore.database import get_db
from bookstore.services.auth import Identity, resolve_identity

T = TypeVar("T")


class GraphQLContext(BaseContext):
    """
    Context object available to all GraphQL resolvers.

    Attributes:
        db: SQLAlchemy session, closed by the get_db dependency after the request
        identity: The authenticated caller, or None
    """

    def __init__(self, db: Session, identity: Identity | None = None):
        super().__init__()
        self.db = db
        self.identity = identity
        self._session_lock = asyncio.Lock()

    async def run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Call func in the threadpool, serialized on this request's session."""
        async with self._session_lock:
            return await run_in_threadpool(func, *args, **kwargs)


def get_context(request: Request, db: Session = Depends(get_db)) -> GraphQLContext:
    """
    Create GraphQL context for each request.

    A plain function, so FastAPI resolves it in the threadpool along with
    the identity lookup. The session comes from the get_db dependency so
    tests can override it. An absent, malformed or expired token yields an
    anonymous context.
    """
    identity = resolve_identity(db, request.headers.get("Authorization"))
    return GraphQLContext(db=db, identity=identity)
