"""Shared types and the per-block API used to talk to the bar."""

from __future__ import annotations

import asyncio
import copy
import enum
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, TypeVar, Union

T = TypeVar("T")


class State(enum.Enum):
    """Visual state of a block."""

    IDLE = "Idle"
    INFO = "Info"
    GOOD = "Good"
    WARNING = "Warning"
    CRITICAL = "Critical"


class MouseButton(enum.Enum):
    """Mouse buttons reported by click events."""

    LEFT = "left"
    MIDDLE = "middle"
    RIGHT = "right"
    WHEEL_UP = "up"
    WHEEL_DOWN = "down"
    FORWARD = "forward"
    BACK = "back"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ClickEvent:
    """A click on the block."""

    button: MouseButton


@dataclass(frozen=True)
class UpdateRequest:
    """A request to refresh the block (e.g. from a signal or a click)."""


BlockEvent = Union[ClickEvent, UpdateRequest]


class RequestCmd(enum.Enum):
    """What a request asks the bar to do."""

    SET_WIDGET = "set_widget"
    UNSET_WIDGET = "unset_widget"
    SET_ERROR = "set_error"


@dataclass
class Request:
    """A message from a block to the bar."""

    block_id: int
    cmd: RequestCmd
    payload: Any = None


class BlockError(Exception):
    """An error raised by a block, optionally tagged with the block it came from."""

    def __init__(self, message: str, block: str | None = None, block_id: int | None = None):
        super().__init__(message)
        self.message = message
        self.block = block
        self.block_id = block_id

    def in_block(self, block: str, block_id: int) -> "BlockError":
        """Tag this error with the name and id of the block that raised it."""
        self.block = block
        self.block_id = block_id
        return self

    def __str__(self) -> str:
        if self.block is None:
            return self.message
        return f"in block '{self.block}' (id {self.block_id}): {self.message}"


@dataclass
class CommonApi:
    """Channel between one running block and the bar.

    A ``None`` placed in ``event_queue`` marks the end of the event stream.
    """

    id: int
    error_interval: float
    request_queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    event_queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    icons: Mapping[str, str] = field(default_factory=dict)

    async def set_widget(self, widget: Any) -> None:
        """Send the widget to be displayed."""
        await self.request_queue.put(
            Request(self.id, RequestCmd.SET_WIDGET, copy.copy(widget))
        )

    async def hide(self) -> None:
        """Hide the block until a new widget is sent."""
        await self.request_queue.put(Request(self.id, RequestCmd.UNSET_WIDGET))

    async def set_error(self, error: BlockError) -> None:
        """Send an error to be displayed."""
        await self.request_queue.put(Request(self.id, RequestCmd.SET_ERROR, error))

    async def event(self) -> BlockEvent:
        """Receive the next event; raises RuntimeError once the stream has ended."""
        event = await self.event_queue.get()
        if event is None:
            await self.event_queue.put(None)
            raise RuntimeError("events stream ended")
        return event

    async def wait_for_update_request(self) -> None:
        """Wait until an update request arrives, discarding other events."""
        while not isinstance(await self.event(), UpdateRequest):
            pass

    def get_icon(self, icon: str) -> str:
        """Look up an icon by name."""
        try:
            return self.icons[icon]
        except KeyError:
            raise BlockError(f"Icon '{icon}' not found") from None

    async def recoverable(self, f: Callable[[], Awaitable[T]]) -> T:
        """Call ``f`` until it succeeds, reporting each failure as the block's error."""
        while True:
            try:
                return await f()
            except BlockError as err:
                await self.set_error(err)
            sleeper = asyncio.ensure_future(asyncio.sleep(self.error_interval))
            waiter = asyncio.ensure_future(self.wait_for_update_request())
            done, pending = await asyncio.wait(
                {sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            for task in done:
                task.result()