from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any, ParamSpec

from expression import Result

from jsonmanager.customtypes import Error

P = ParamSpec("P")

def async_catch_ex[T](func: Callable[P, Coroutine[Any, Any, T]]) -> Callable[P, Coroutine[Any, Any, Result[T, Error]]]:
    """
    Turns a coroutine that raises into one that returns Result.Ok with its value
    or Result.Error with the message of the exception.
    """
    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T, Error]:
        try:
            return Result[T, Error].Ok(await func(*args, **kwargs))
        except Exception as ex:
            return Result[T, Error].Error(Error.from_exception(ex))
    return wrapper
