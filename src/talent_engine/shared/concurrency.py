"""
Concurrency helpers.
"""

import asyncio
from collections.abc import Awaitable
from typing import Any


async def gather_settled(*aws: Awaitable[Any]) -> list[Any]:
    """Await every awaitable, then raise the first failure if any.

    Unlike a plain ``asyncio.gather``, no sibling is still running when the
    error reaches the caller, so a surrounding transaction can be rolled
    back safely.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results
