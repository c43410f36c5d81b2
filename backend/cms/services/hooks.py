"""Lifecycle hooks for content item operations.

Hooks are plain callables (sync or async) registered per named point and
run in registration order:

- ``before_create(data, ctx)``        returns a replacement dict, ``None`` to keep, ``False`` to veto
- ``after_create(item, ctx)``
- ``before_update(item_id, data, ctx)`` returns a replacement dict, ``None`` to keep, ``False`` to veto
- ``after_update(item, ctx)``
- ``before_delete(item_id, ctx)``     returns a truthy value to allow; anything falsy (``None`` included) vetoes
- ``after_delete(item_id, ctx)``
- ``on_error(error, operation, ctx)``

After-hooks and ``on_error`` are notifications: their failures are logged
and never change the outcome of the operation.
"""
from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field

from cms.exceptions import DeniedError

logger = logging.getLogger(__name__)

HookPoint = Literal[
    "before_create",
    "after_create",
    "before_update",
    "after_update",
    "before_delete",
    "after_delete",
    "on_error",
]

HOOK_POINTS: tuple[str, ...] = HookPoint.__args__

Operation = Literal["create", "update", "delete", "list", "get"]


class HookContext(BaseModel):
    """Immutable request context handed to every hook."""

    model_config = ConfigDict(frozen=True)

    type_slug: str
    user_id: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)

    def for_type(self, type_slug: str) -> "HookContext":
        return self.model_copy(update={"type_slug": type_slug})


async def _call(fn: Callable[..., Any], *args: Any) -> Any:
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class CMSHooks:
    """Ordered hook lists, one per hook point."""

    def __init__(self, **hooks: Callable[..., Any] | list[Callable[..., Any]]):
        self._hooks: dict[str, list[Callable[..., Any]]] = {point: [] for point in HOOK_POINTS}
        for point, value in hooks.items():
            for fn in value if isinstance(value, list) else [value]:
                self.register(point, fn)

    def register(self, point: str, fn: Callable[..., Any]) -> Callable[..., Any]:
        """Append ``fn`` to the hooks of ``point`` and return it."""
        if point not in self._hooks:
            raise ValueError(
                f"Unknown hook point '{point}'. Available: {', '.join(HOOK_POINTS)}"
            )
        self._hooks[point].append(fn)
        logger.debug("Registered %s hook %s", point, getattr(fn, "__name__", fn))
        return fn

    def get(self, point: str) -> list[Callable[..., Any]]:
        return list(self._hooks.get(point, []))

    async def _transform(
        self,
        point: str,
        data: dict[str, Any],
        leading: tuple[Any, ...],
        ctx: HookContext,
        denied_message: str,
    ) -> dict[str, Any]:
        for fn in self._hooks[point]:
            result = await _call(fn, *leading, data, ctx)
            if result is False:
                raise DeniedError(denied_message)
            if isinstance(result, dict):
                data = result
        return data

    async def _notify(self, point: str, *args: Any) -> None:
        for fn in self._hooks[point]:
            try:
                await _call(fn, *args)
            except Exception:
                logger.exception("%s hook %s failed", point, getattr(fn, "__name__", fn))

    async def before_create(self, data: dict[str, Any], ctx: HookContext) -> dict[str, Any]:
        return await self._transform("before_create", data, (), ctx, "Create operation denied")

    async def after_create(self, item: dict[str, Any], ctx: HookContext) -> None:
        await self._notify("after_create", item, ctx)

    async def before_update(
        self, item_id: str, data: dict[str, Any], ctx: HookContext
    ) -> dict[str, Any]:
        return await self._transform(
            "before_update", data, (item_id,), ctx, "Update operation denied"
        )

    async def after_update(self, item: dict[str, Any], ctx: HookContext) -> None:
        await self._notify("after_update", item, ctx)

    async def before_delete(self, item_id: str, ctx: HookContext) -> None:
        for fn in self._hooks["before_delete"]:
            if not await _call(fn, item_id, ctx):
                raise DeniedError("Delete operation denied")

    async def after_delete(self, item_id: str, ctx: HookContext) -> None:
        await self._notify("after_delete", item_id, ctx)

    async def on_error(self, error: Exception, operation: Operation, ctx: HookContext) -> None:
        await self._notify("on_error", error, operation, ctx)
