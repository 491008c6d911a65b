"""
Lazily activated, shared async result (publish-once semantics).
The first get() starts the underlying call; concurrent callers await the same task; a resolved value is
replayed to every later caller without calling again. A failure reaches every caller waiting on that
activation and is not kept, so the next get() starts a new attempt.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    """Handle for one subscriber. Unsubscribing drops the delivery, never the shared call."""

    def __init__(self, task: asyncio.Task):
        self._task = task

    @property
    def closed(self) -> bool:
        return self._task.done()

    def unsubscribe(self) -> None:
        if not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait until the value (or error) has been delivered, or the subscription was cancelled."""
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise


class SharedSource(Generic[T]):
    def __init__(self, factory: Callable[[], Awaitable[T]], name: str = "shared source"):
        self._factory = factory
        self._name = name
        self._task: asyncio.Task | None = None
        self._value: T | None = None
        self._resolved = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def activated(self) -> bool:
        return self._resolved or self._task is not None

    @property
    def resolved(self) -> bool:
        return self._resolved

    async def get(self) -> T:
        if self._resolved:
            return self._value
        if self._task is None:
            logger.debug("Activating %s", self._name)
            self._task = asyncio.get_running_loop().create_task(self._run())
        # Shield: a cancelled caller must not cancel the call other subscribers wait on
        return await asyncio.shield(self._task)

    async def _run(self) -> T:
        try:
            value = await self._factory()
        except BaseException:
            self._task = None
            raise
        self._value = value
        self._resolved = True
        return value

    def subscribe(
        self,
        on_next: Callable[[T], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription:
        """Deliver the value (or error) to callbacks from the running event loop."""

        async def deliver() -> None:
            try:
                value = await self.get()
            except Exception as e:
                if on_error is None:
                    logger.warning("%s failed and subscriber has no error handler: %s", self._name, e)
                    return
                on_error(e)
                return
            on_next(value)

        return Subscription(asyncio.get_running_loop().create_task(deliver()))
