"""
Audit helpers shared by the marketplace services.
"""

import functools
import inspect
from typing import Optional

from hanger.logging import get_logger, LogContext
from hanger.state.errors import (
    MarketplaceError,
    NotFoundError,
    PersistenceFailure,
    UnauthorizedError,
)


def rejections_logged(stream: str, correlate: Optional[str] = None):
    """
    Decorator: log business-rule rejections on `stream`, then re-raise.

    PersistenceFailure passes through untouched; the store already
    logged it on the system stream.

    Args:
        stream: LogStream to warn on
        correlate: optional correlation id template filled from the call's
            arguments, e.g. "trade-{trade_id}"; the warning is logged under it

    Usage:
        @rejections_logged(LogStream.TRADES, correlate="trade-{trade_id}")
        def change_status(self, trade_id, actor, target):
            ...
    """
    def decorator(func):
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except PersistenceFailure:
                raise
            except MarketplaceError as e:
                logger = get_logger(stream)
                extra = {
                    "operation": func.__name__,
                    "error_kind": e.kind,
                    "error_context": e.context,
                }
                if correlate is None:
                    logger.warning(f"{func.__name__} rejected: {e.message}", extra=extra)
                else:
                    arguments = signature.bind(*args, **kwargs).arguments
                    with LogContext(correlate.format(**arguments)):
                        logger.warning(f"{func.__name__} rejected: {e.message}", extra=extra)
                raise
        return wrapper
    return decorator


def require_admin(store, handle: str):
    """
    Resolve `handle` to an admin account.

    Raises:
        NotFoundError: unknown handle
        UnauthorizedError: account is not an admin
    """
    account = store.accounts.get(handle)
    if account is None:
        raise NotFoundError("account", handle)
    if not account.is_admin:
        raise UnauthorizedError(f"{handle} is not an administrator", actor=handle)
    return account


def require_account(store, handle: str):
    """
    Raises:
        NotFoundError: unknown handle
    """
    account = store.accounts.get(handle)
    if account is None:
        raise NotFoundError("account", handle)
    return account
