"""
Conversion helpers between Strawberry inputs and service payloads, and the
wrapper that moves blocking resolvers off the event loop.
"""

import functools
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Callable

import strawberry


def to_payload(value: Any, drop_none: bool = False) -> Any:
    """
    Turn a Strawberry input (a dataclass) into plain dicts and lists.

    Fields left UNSET are dropped so update payloads only carry what the
    client sent. With drop_none, explicit None values are dropped as well,
    letting the schema defaults apply on create.
    """
    if is_dataclass(value) and not isinstance(value, type):
        data = {}
        for field in fields(value):
            item = getattr(value, field.name)
            if item is strawberry.UNSET or (drop_none and item is None):
                continue
            data[field.name] = to_payload(item, drop_none)
        return data
    if isinstance(value, list):
        return [to_payload(item, drop_none) for item in value]
    if isinstance(value, Enum):
        return value.value
    return value


def in_threadpool(resolver: Callable[..., Any]) -> Callable[..., Any]:
    """
    Turn a blocking resolver into an async one that runs via context.run().

    Strawberry reads the signature of the wrapped function, so arguments and
    the return type are declared on the resolver as usual. The info argument
    is always passed by keyword.
    """

    @functools.wraps(resolver)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        return await kwargs["info"].context.run(resolver, *args, **kwargs)

    return wrapper
