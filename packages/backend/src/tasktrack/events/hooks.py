"""Optional event hooks for services.

Learn: Services take an explicit list of hooks at construction instead of
inheriting pub/sub behavior. A hook is any callable
hook(event_type, data); it may be sync or async. Hooks run after the
store write they describe has been committed, in registration order.
A hook that raises propagates to the caller like any other failure.
"""

import inspect
from typing import Any, Callable, Iterable

EventHook = Callable[[str, dict], Any]


async def emit(hooks: Iterable[EventHook], event_type: str, data: dict) -> None:
    """Call every hook with the event, awaiting async ones."""
    for hook in hooks:
        result = hook(event_type, data)
        if inspect.isawaitable(result):
            await result
