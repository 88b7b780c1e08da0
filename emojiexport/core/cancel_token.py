# -----------------------------------------------------------------------------
# cooperative cancellation signal shared by every blocking operation of a run
# -----------------------------------------------------------------------------
from __future__ import annotations

import threading
from typing import Callable, List

from emojiexport.core.errors import CancellationError


class CancelToken:
    """
    Once cancelled, stays cancelled. Callbacks registered with ``on_cancel``
    are invoked exactly once, on the thread calling ``cancel()``; registering
    on an already cancelled token invokes the callback right away.
    A child token is cancelled together with its parent, but not vice versa.
    """

    def __init__(self, parent: CancelToken|None = None):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []
        self._reason: str|None = None

        self._parent = parent
        if parent is not None:
            parent.on_cancel(self._cancel_from_parent)

    def cancel(self, reason: str = 'cancelled'):
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []

        for callback in callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], None]):
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]):
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def detach(self):
        if self._parent is not None:
            self._parent.remove_callback(self._cancel_from_parent)
            self._parent = None

    def wait(self, timeout: float|None = None) -> bool:
        return self._event.wait(timeout)

    def raise_if_cancelled(self):
        if self.cancelled:
            raise CancellationError(self.reason)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str|None:
        return self._reason

    def _cancel_from_parent(self):
        self.cancel(self._parent.reason if self._parent else 'cancelled')
