"""Before/after hooks around tool handlers.

A middleware's `before` hooks run in registration order and its `after` hooks
in reverse, so the first middleware registered wraps all the others. Any hook
that raises ends the call with a soft failure ("middleware error: ...").
"""

import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence

from mcp.server.fastmcp import Context
from mcp.types import CallToolResult
from pydantic import BaseModel

from datahub_mcp.tools.context import ToolContext
from datahub_mcp.tools.results import error_result

logger = logging.getLogger(__name__)

Handler = Callable[[Context | None, BaseModel], Awaitable[CallToolResult]]


class ToolMiddleware:
    """Base class for middlewares. Both hooks default to pass-through."""

    async def before(self, ctx: Context | None, tc: ToolContext) -> Context | None:
        """Run before the handler. Raise to abort the call."""
        return ctx

    async def after(
        self,
        ctx: Context | None,
        tc: ToolContext,
        result: CallToolResult | None,
        error: Exception | None,
    ) -> CallToolResult | None:
        """Run after the handler with its result, or its exception as `error`. Raise to abort."""
        return result


class BeforeFunc(ToolMiddleware):
    """Middleware from a single before-hook coroutine."""

    def __init__(self, fn: Callable[[Context | None, ToolContext], Awaitable[Context | None]]):
        self.fn = fn

    async def before(self, ctx: Context | None, tc: ToolContext) -> Context | None:
        return await self.fn(ctx, tc)


class AfterFunc(ToolMiddleware):
    """Middleware from a single after-hook coroutine."""

    def __init__(
        self,
        fn: Callable[
            [Context | None, ToolContext, CallToolResult | None, Exception | None],
            Awaitable[CallToolResult | None],
        ],
    ):
        self.fn = fn

    async def after(
        self,
        ctx: Context | None,
        tc: ToolContext,
        result: CallToolResult | None,
        error: Exception | None,
    ) -> CallToolResult | None:
        return await self.fn(ctx, tc, result, error)


def build_pipeline(*layers: Iterable[ToolMiddleware]) -> tuple[ToolMiddleware, ...]:
    """Concatenate middleware layers, outermost layer first."""
    return tuple(middleware for layer in layers for middleware in layer)


def wrap_handler(
    name: str,
    handler: Handler,
    middlewares: Sequence[ToolMiddleware],
    *,
    debug: bool = False,
) -> Handler:
    """Wrap `handler` with `middlewares`.

    With no middlewares and debug logging off, `handler` itself is returned.
    """
    chain = tuple(middlewares)
    if not chain and not debug:
        return handler

    async def wrapped(ctx: Context | None, params: BaseModel) -> CallToolResult:
        tc = ToolContext(tool_name=name, input=params)
        logger.debug("Tool %s invoked (%s, %d middlewares)", name, type(params).__name__, len(chain))

        for middleware in chain:
            try:
                ctx = await middleware.before(ctx, tc)
            except Exception as e:
                logger.error("Middleware before hook failed for %s: %s", name, e)
                return error_result(f"middleware error: {e}")

        error: Exception | None = None
        result: CallToolResult | None
        try:
            result = await handler(ctx, params)
        except Exception as e:
            logger.error("Tool %s failed after %.3fs: %s", name, tc.duration, e)
            error = e
            result = None
        else:
            if result.isError:
                logger.debug("Tool %s returned an error result after %.3fs", name, tc.duration)
            else:
                logger.debug("Tool %s completed in %.3fs", name, tc.duration)

        for middleware in reversed(chain):
            try:
                result = await middleware.after(ctx, tc, result, error)
            except Exception as e:
                logger.error("Middleware after hook failed for %s: %s", name, e)
                return error_result(f"middleware error: {e}")

        if result is None:
            return error_result(str(error) if error is not None else f"{name} returned no result")
        return result

    return wrapped
