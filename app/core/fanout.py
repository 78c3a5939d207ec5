"""
Concurrent independent reads.

supabase-py is synchronous, so each read runs in a worker thread and the
results are gathered with return_exceptions=True: a failing branch is logged
and replaced by its default instead of cancelling the others.
"""

import asyncio
import logging
from typing import Any, Callable, Dict

from app.database.repository import QueryResult

logger = logging.getLogger(__name__)


async def gather_reads(reads: Dict[str, Callable[[], QueryResult]], default: Any = 0) -> Dict[str, Any]:
    names = list(reads)
    results = await asyncio.gather(
        *(asyncio.to_thread(reads[name]) for name in names),
        return_exceptions=True
    )
    values: Dict[str, Any] = {}
    for name, result in zip(names, results):
        if isinstance(result, BaseException):
            logger.warning(f"Read '{name}' raised: {result}")
            values[name] = default
        elif result.error:
            logger.warning(f"Read '{name}' failed: {result.error.message}")
            values[name] = default
        else:
            values[name] = result.data
    return values
