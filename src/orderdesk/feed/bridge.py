"""Bridge feed callbacks onto an asyncio queue for WebSocket consumers."""

import asyncio


class AsyncQueueSubscriber:
    """Callable that enqueues items on the event loop that created it.

    Publishing never waits on the consumer: items are handed to the loop with
    ``call_soon_threadsafe``. Once the loop is closed the call raises, which
    makes the change feed drop the subscription.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self.loop = loop or asyncio.get_running_loop()
        self.queue: asyncio.Queue = asyncio.Queue()

    def __call__(self, item) -> None:
        self.loop.call_soon_threadsafe(self.queue.put_nowait, item)

    async def get(self):
        return await self.queue.get()
