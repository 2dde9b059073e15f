"""Keep the text buffer and the visual tree in step without feedback loops.

Only one surface is live at a time. The coordinator owns a single guard (the
current :class:`SyncState`); while it is not ``IDLE`` every event that would
start another transform is dropped.
"""

from __future__ import annotations

import asyncio
import logging
import re
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol

from lxml.html import HtmlElement

from .config import BridgeOptions
from .tree_builder import to_tree
from .tree_serializer import to_markup

logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    IDLE = "idle"
    SYNCING_TO_TEXT = "syncing-to-text"
    SYNCING_TO_TREE = "syncing-to-tree"


class EditorMode(str, Enum):
    CODE = "code"
    VISUAL = "visual"


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class EditorHost(Protocol):
    """The two editing surfaces as seen by the coordinator."""

    def get_text(self) -> str: ...

    def set_text(self, text: str) -> None: ...

    def get_tree(self) -> HtmlElement: ...

    def mount_tree(self, tree: HtmlElement) -> None: ...


class AsyncioScheduler:
    """Schedule callbacks on an asyncio event loop.

    Without an explicit ``loop`` the running loop is captured at construction,
    so a scheduler built outside a loop fails here with ``ValueError`` instead
    of on the first keystroke.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError as exc:
                raise ValueError(
                    "AsyncioScheduler needs a running event loop; pass loop= or another scheduler"
                ) from exc
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._loop.call_later(delay, callback)


class Debouncer:
    """A single cancellable pending call.

    Scheduling replaces whatever was pending. Each schedule bumps a generation
    counter so a callback that already left the scheduler's queue but belongs
    to a superseded generation does nothing.
    """

    def __init__(self, scheduler: Scheduler, delay: float) -> None:
        self.scheduler = scheduler
        self.delay = delay
        self.generation = 0
        self._handle: Optional[TimerHandle] = None
        self._callback: Optional[Callable[[], None]] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, callback: Callable[[], None]) -> None:
        self.cancel()
        self.generation += 1
        generation = self.generation
        self._callback = callback
        self._handle = self.scheduler.call_later(self.delay, lambda: self._fire(generation))

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._callback = None

    def flush(self) -> bool:
        """Run the pending callback now. Returns False if nothing was pending."""
        if self._handle is None:
            return False
        return self._fire(self.generation)

    def _fire(self, generation: int) -> bool:
        if generation != self.generation or self._callback is None:
            return False
        callback = self._callback
        self.cancel()
        callback()
        return True


class SyncCoordinator:
    def __init__(
        self,
        host: EditorHost,
        options: BridgeOptions | None = None,
        scheduler: Scheduler | None = None,
        mode: EditorMode = EditorMode.CODE,
    ) -> None:
        self.host = host
        self.options = options or BridgeOptions()
        self.mode = mode
        self.state = SyncState.IDLE
        self.debouncer = Debouncer(scheduler or AsyncioScheduler(), self.options.debounce_delay)
        self._listeners: List[Callable[[str], None]] = []

    @property
    def busy(self) -> bool:
        return self.state is not SyncState.IDLE

    def add_listener(self, callback: Callable[[str], None]) -> None:
        """Register a callback that receives the markup after each sync to text or replace."""
        self._listeners.append(callback)

    def switch_mode(self, mode: EditorMode) -> None:
        if mode is self.mode:
            return
        if self.busy:
            logger.debug("Ignoring switch to %s while %s", mode.value, self.state.value)
            return
        self.debouncer.cancel()
        if mode is EditorMode.VISUAL:
            self.mode = mode
            self._sync_to_tree()
        else:
            self._sync_to_text()
            self.mode = mode

    def on_visual_input(self) -> None:
        """Input event from the visual surface; debounces a tree-to-text sync."""
        if self.mode is not EditorMode.VISUAL:
            return
        if self.busy:
            logger.debug("Dropping visual input raised during %s", self.state.value)
            return
        self.debouncer.schedule(self._sync_to_text)

    def on_text_input(self) -> None:
        """Keystroke in the text surface. The tree is only rebuilt on a mode switch."""
        if self.busy:
            logger.debug("Dropping text input raised during %s", self.state.value)

    def flush(self) -> bool:
        return self.debouncer.flush()

    def current_source(self) -> str:
        """The authoritative markup for the live surface."""
        if self.mode is EditorMode.VISUAL:
            return to_markup(self.host.get_tree(), self.options)
        return self.host.get_text()

    def replace_all(self, search: str, replacement: str, case_sensitive: bool = True) -> int:
        """Replace every occurrence of ``search`` in the markup and return the count."""
        if not search or self.busy:
            return 0
        self.debouncer.cancel()
        source = self.current_source()
        flags = 0 if case_sensitive else re.IGNORECASE
        updated, count = re.subn(re.escape(search), lambda _: replacement, source, flags=flags)
        if not count:
            return 0
        self._write_text(updated)
        if self.mode is EditorMode.VISUAL:
            self._sync_to_tree()
        self._notify(updated)
        return count

    def _sync_to_text(self) -> None:
        if self.busy:
            return
        self.state = SyncState.SYNCING_TO_TEXT
        try:
            markup = to_markup(self.host.get_tree(), self.options)
            if markup != self.host.get_text():
                self.host.set_text(markup)
        finally:
            self.state = SyncState.IDLE
        logger.debug("Synced tree to text (%d chars)", len(markup))
        self._notify(markup)

    def _notify(self, markup: str) -> None:
        for listener in list(self._listeners):
            listener(markup)

    def _sync_to_tree(self) -> None:
        if self.busy:
            return
        self.state = SyncState.SYNCING_TO_TREE
        try:
            self.host.mount_tree(to_tree(self.host.get_text(), self.options))
        finally:
            self.state = SyncState.IDLE
        logger.debug("Rebuilt visual tree")

    def _write_text(self, text: str) -> None:
        self.state = SyncState.SYNCING_TO_TEXT
        try:
            self.host.set_text(text)
        finally:
            self.state = SyncState.IDLE
