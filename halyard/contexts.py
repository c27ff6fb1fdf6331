"""
Cooperative cancellation contexts and signal-driven cancellation.

What this module provides
- Context: a cancellation token with an optional parent. Cancelling a parent cancels
  every child with the parent's cause; cancelling a child leaves the parent alone.
- background(): a fresh root context (never cancelled unless someone cancels it).
- sigcancel(context, signals): derive a child context that is cancelled by the first
  SIGINT/SIGTERM; the previous handlers come back as soon as it is cancelled (by a
  signal or otherwise) and always when the block exits.

Cancellation is cooperative: nothing is interrupted, entry points poll cancelled/check()
or block on wait().

Quick example
    >>> with sigcancel(background()) as context:
    ...     while not context.wait(timeout=1.0):
    ...         work()
"""
import contextlib
import logging
import signal
import threading

from .faults import ContextCancelled
from .utils import Unset, coalesce

logger = logging.getLogger(__name__)


class Context:
    """
    Cancellation token.

    attributes
    - cancelled: True once cancel() has run (here or on an ancestor).
    - cause: the exception passed to cancel(), None while alive.

    callbacks registered with add_callback() receive the cause, run once, outside of
    the internal lock, in the thread that cancelled the context.
    """

    def __init__(self, parent=Unset, /):
        if not isinstance(parent, Context | Unset):
            raise TypeError("context 'parent' must be a context")
        self._parent = coalesce(parent)
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks = []
        self._cause = None
        if self._parent is not None:
            self._parent.add_callback(self.cancel)

    @property
    def parent(self):
        return self._parent

    @property
    def cancelled(self):
        return self._event.is_set()

    @property
    def cause(self):
        return self._cause

    def cancel(self, cause=Unset, /):
        """
        Cancel this context (and its descendants).

        Returns True when this call performed the cancellation, False when the
        context was already cancelled.
        """
        if not isinstance(cause, BaseException | Unset):
            raise TypeError("cancel() argument must be an exception")
        with self._lock:
            if self._event.is_set():
                return False
            self._cause = ContextCancelled("context cancelled") if cause is Unset else cause
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []

        logger.debug("context %#x cancelled: %s", id(self), self._cause)
        if self._parent is not None:
            self._parent.remove_callback(self.cancel)
        for callback in callbacks:
            callback(self._cause)
        return True

    def add_callback(self, callback, /):
        """
        Call callback(cause) once the context is cancelled (immediately if it already is).
        """
        if not callable(callback):
            raise TypeError("add_callback() argument must be callable")
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback(self._cause)

    def remove_callback(self, callback, /):
        with self._lock, contextlib.suppress(ValueError):
            self._callbacks.remove(callback)

    def wait(self, timeout=None, /):
        """
        Block until cancelled or until timeout seconds elapse; return cancelled.
        """
        return self._event.wait(timeout)

    def check(self):
        """
        Raise ContextCancelled when the context has been cancelled.
        """
        if not self._event.is_set():
            return
        if isinstance(self._cause, ContextCancelled):
            raise self._cause
        raise ContextCancelled(f"context cancelled: {self._cause}") from self._cause

    def __repr__(self):
        return f"context(cancelled={self.cancelled!r}, cause={self.cause!r})"


def background():
    """Return a new root context."""
    return Context()


@contextlib.contextmanager
def sigcancel(context=Unset, /, signals=(signal.SIGINT, signal.SIGTERM)):
    """
    Derive a child of context that the first of the given signals cancels.

    behavior
    - installs a handler for each signal (main thread only; signal.signal raises
      ValueError elsewhere) and remembers the previous ones.
    - first signal: cancels the child with ContextCancelled(signal=...) and restores
      the previous handlers, so a second signal gets the default behavior.
    - the child being cancelled in any other way also restores them (when that happens
      on the main thread; otherwise restoration waits for the block to exit).
    - on exit the child is cancelled and the handlers are restored unconditionally.
    """
    child = Context(context)
    previous = {}
    released = False

    def release(*unused):
        nonlocal released
        if released:
            return
        released = True
        for signum, handler in previous.items():
            signal.signal(signum, signal.SIG_DFL if handler is None else handler)
        logger.debug("signal handlers released: %s", ", ".join(signal.Signals(signum).name for signum in previous))

    def handler(signum, frame):
        if child.cancelled:
            # already cancelled off the main thread: behave like the previous handler
            release()
            match previous.get(signum):
                case signal.Handlers.SIG_IGN:
                    return
                case None | signal.Handlers.SIG_DFL:
                    signal.raise_signal(signum)
                case forward:
                    forward(signum, frame)
            return
        name = signal.Signals(signum).name
        logger.debug("received %s, cancelling context", name)
        child.cancel(ContextCancelled(f"received signal {name}", signal=signum))

    def released_on_cancel(cause):
        if threading.current_thread() is threading.main_thread():
            release()

    try:
        for signum in signals:
            saved = signal.getsignal(signum)
            signal.signal(signum, handler)
            # only handlers that were actually replaced are restored
            previous[signum] = saved
        logger.debug("signal handlers installed: %s", ", ".join(signal.Signals(signum).name for signum in previous))
        child.add_callback(released_on_cancel)
        yield child
    finally:
        child.cancel()
        release()


__all__ = (
    "Context",
    "background",
    "sigcancel",
)
