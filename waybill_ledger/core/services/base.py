"""Base class and transaction helper shared by the services."""

from __future__ import annotations

import functools
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

_DEPTH_KEY = "waybill_ledger.tx_depth"

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


class BaseService:
    """Holds the session shared by every repository a service uses."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session


def transactional(func: F) -> F:
    """
    Run a service method as one unit of work.

    Nested transactional calls on the same session join the outer one; only
    the outermost call commits. An exception rolls back the outermost
    transaction and propagates unchanged.
    """

    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        info = self.session.info
        depth = info.get(_DEPTH_KEY, 0)
        info[_DEPTH_KEY] = depth + 1
        try:
            result = await func(self, *args, **kwargs)
        except Exception:
            info[_DEPTH_KEY] = depth
            if depth == 0:
                await self.session.rollback()
            raise
        info[_DEPTH_KEY] = depth
        if depth == 0:
            await self.session.commit()
        return result

    return wrapper  # type: ignore[return-value]
