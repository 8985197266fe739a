# storefront/rotator.py
import asyncio
import logging
import uuid
from collections import OrderedDict
from typing import Callable, Optional

logger = logging.getLogger("storefront.rotator")

OnChange = Callable[[dict], None]


class Rotator:
    """
    Cyclic index over a fixed list of slides or messages.

    The timer advances by one every `interval` seconds unless paused (pointer
    hovering). Leaving the hover starts a fresh interval, so the slide never
    jumps ahead on mouseleave. Manual navigation jumps straight to an index
    and records the direction, which only matters to the transition animation.
    """

    def __init__(self, length: int, interval: float, name: Optional[str] = None):
        if length <= 0:
            raise ValueError("Rotator needs at least one item")
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.length = length
        self.interval = interval
        self.index = 0
        self.direction = 0
        self.paused = False
        self._task: Optional[asyncio.Task] = None
        self._on_change: Optional[OnChange] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def go_to(self, index: int):
        index = index % self.length
        self.direction = 1 if index > self.index else -1
        self.index = index
        self._notify()

    def advance(self, step: int = 1):
        self.index = (self.index + step) % self.length
        self.direction = 1 if step >= 0 else -1
        self._notify()

    def next(self):
        self.advance(1)

    def previous(self):
        self.advance(-1)

    def hover(self, hovering: bool):
        was_paused = self.paused
        self.paused = hovering
        if was_paused and not hovering and self.running:
            self.start(self._on_change)

    def tick(self) -> bool:
        """Timer tick; returns whether the index moved."""
        if self.paused:
            return False
        self.advance(1)
        return True

    def snapshot(self) -> dict:
        return {"index": self.index, "direction": self.direction}

    def _notify(self):
        if self._on_change is not None:
            self._on_change(self.snapshot())

    async def run(self):
        while True:
            await asyncio.sleep(self.interval)
            self.tick()

    def start(self, on_change: OnChange) -> asyncio.Task:
        self.close()
        self._on_change = on_change
        self._task = asyncio.ensure_future(self.run())
        return self._task

    def close(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._on_change = None


class RotatorRegistry:
    """Rotators handed out to rendered pages, least recently used dropped first."""

    def __init__(self, max_size: int = 256):
        self.max_size = max_size
        self._rotators: "OrderedDict[str, Rotator]" = OrderedDict()

    def __len__(self):
        return len(self._rotators)

    def __contains__(self, rotator_id):
        return rotator_id in self._rotators

    def create(self, name: str, length: int, interval: float):
        rotator_id = uuid.uuid4().hex
        self._rotators[rotator_id] = Rotator(length, interval, name=name)
        while len(self._rotators) > self.max_size:
            _, evicted = self._rotators.popitem(last=False)
            evicted.close()
        return rotator_id, self._rotators[rotator_id]

    def get(self, rotator_id: str) -> Rotator:
        rotator = self._rotators[rotator_id]
        self._rotators.move_to_end(rotator_id)
        return rotator

    def discard(self, rotator_id: str):
        rotator = self._rotators.pop(rotator_id, None)
        if rotator is not None:
            rotator.close()

    def close_all(self):
        for rotator in self._rotators.values():
            rotator.close()
        self._rotators.clear()
