"""Optimistic local updates with rollback."""
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from loguru import logger


@asynccontextmanager
async def optimistic_update(target: Any, attr: str, value: Any) -> AsyncIterator[Any]:
    """
    Apply `value` to `target.attr` immediately and restore the previous value if the body raises.

    The exception is re-raised after the rollback; on success the new value stays.

    :param target: Object holding the state
    :param attr: Attribute name to update
    :param value: Tentative value
    :return: The previous value, bound by `async with ... as previous`
    """
    previous = getattr(target, attr)
    setattr(target, attr, value)
    try:
        yield previous
    except BaseException:
        logger.debug(f"Rolling back {type(target).__name__}.{attr} from {value!r} to {previous!r}")
        setattr(target, attr, previous)
        raise
