"""Data provider callables supplied by the owning application"""

import inspect
from typing import Any, Awaitable, Callable, Union

DataProvider = Callable[[], Union[Any, Awaitable[Any]]]


async def call_provider(data_provider: DataProvider) -> Any:
    """Call a sync or async data provider"""
    value = data_provider()
    if inspect.isawaitable(value):
        value = await value
    return value
