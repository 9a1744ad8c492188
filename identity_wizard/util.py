# Copyright (C) 2026 The identity-wizard developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php
import asyncio
import concurrent.futures
import functools
import hmac
import os
import re
import stat
import threading
from collections import defaultdict
from typing import Optional

from .i18n import _
from .logging import get_logger, Logger


_logger = get_logger(__name__)


class InvalidPassword(Exception):

    def __init__(self, message: Optional[str] = None):
        self.message = message

    def __str__(self):
        return _("Cannot decrypt with this password") if self.message is None else str(self.message)


class UserCancelled(Exception):
    """The user backed out of a prompt. Unwinds quietly, nothing to report."""


def to_bytes(something, encoding='utf8') -> bytes:
    if isinstance(something, str):
        return something.encode(encoding)
    if isinstance(something, (bytes, bytearray)):
        return bytes(something)
    raise TypeError(f"expected str or bytes, got {type(something).__name__}")


def to_string(something, encoding='utf8') -> str:
    if isinstance(something, str):
        return something
    if isinstance(something, (bytes, bytearray)):
        return something.decode(encoding)
    raise TypeError(f"expected str or bytes, got {type(something).__name__}")


def constant_time_compare(val1, val2) -> bool:
    return hmac.compare_digest(to_bytes(val1), to_bytes(val2))


_EMAIL_RE = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")

def is_valid_email(s: str) -> bool:
    return _EMAIL_RE.fullmatch(s) is not None


def user_dir() -> str:
    """Data directory: $IDENTITY_WIZARD_DIR, else ~/.identity-wizard"""
    return os.environ.get("IDENTITY_WIZARD_DIR") or os.path.join(os.path.expanduser("~"), ".identity-wizard")


def make_dir(path: str, *, allow_symlink: bool = True) -> None:
    """Create path, readable by the owner only, unless it exists already."""
    if os.path.exists(path):
        return
    if not allow_symlink and os.path.islink(path):
        raise Exception(f"dangling symlink at data directory: {path}")
    os.mkdir(path)
    os.chmod(path, stat.S_IRWXU)


def log_exceptions(func):
    """Coroutine decorator: exceptions other than cancellation are logged, then re-raised."""
    assert asyncio.iscoroutinefunction(func), f"{func.__name__} is not a coroutine function"
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except asyncio.CancelledError:
            raise
        except BaseException as e:
            owner = args[0] if args else None
            getattr(owner, 'logger', _logger).exception(f"{func.__name__} failed: {e!r}")
            raise
    return wrapper


# The front-end installs its loop with set_asyncio_loop. Tests set this flag
# and let get_asyncio_loop fall back to whatever loop is running.
AS_LIB_USER_I_WANT_TO_MANAGE_MY_OWN_ASYNCIO_LOOP = False

_asyncio_event_loop = None  # type: Optional[asyncio.AbstractEventLoop]


def get_asyncio_loop() -> asyncio.AbstractEventLoop:
    if _asyncio_event_loop is not None:
        return _asyncio_event_loop
    if AS_LIB_USER_I_WANT_TO_MANAGE_MY_OWN_ASYNCIO_LOOP and (loop := get_running_loop()):
        return loop
    raise Exception("event loop not set")


def set_asyncio_loop(loop: Optional[asyncio.AbstractEventLoop]) -> None:
    global _asyncio_event_loop
    if loop is not None and _asyncio_event_loop not in (None, loop):
        raise Exception("a different event loop is already installed")
    _asyncio_event_loop = loop


def get_running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class CallbackManager(Logger):
    """Routes named events to the callbacks registered for them.

    trigger_callback may be called from any thread, callbacks always run on
    the event loop. Plain functions run before trigger_callback returns when
    it is called on the loop thread; coroutine functions are scheduled.
    """

    def __init__(self):
        Logger.__init__(self)
        self._lock = threading.Lock()
        self._callbacks = defaultdict(list)  # event name -> callables
        self._pending = set()  # type: set[concurrent.futures.Future]

    def register_callback(self, func, events) -> None:
        with self._lock:
            for event in events:
                if func not in self._callbacks[event]:
                    self._callbacks[event].append(func)

    def unregister_callback(self, func) -> None:
        with self._lock:
            for funcs in self._callbacks.values():
                if func in funcs:
                    funcs.remove(func)

    def clear_all_callbacks(self) -> None:
        with self._lock:
            self._callbacks.clear()

    def trigger_callback(self, event: str, *args) -> None:
        loop = get_asyncio_loop()
        assert loop.is_running(), "event loop not running"
        with self._lock:
            funcs = list(self._callbacks.get(event, ()))
        for func in funcs:
            if asyncio.iscoroutinefunction(func):
                self._schedule(event, func(*args), loop)
            elif get_running_loop() is loop:
                func(*args)
            else:
                loop.call_soon_threadsafe(func, *args)

    def _schedule(self, event: str, coro, loop: asyncio.AbstractEventLoop) -> None:
        fut = asyncio.run_coroutine_threadsafe(coro, loop)
        self._pending.add(fut)  # strong ref until done
        def on_done(fut_: concurrent.futures.Future):
            self._pending.discard(fut_)
            if fut_.cancelled():
                self.logger.debug(f"callback for {event!r} cancelled")
            elif (exc := fut_.exception()) is not None:
                self.logger.error(f"callback for {event!r} raised {exc!r}", exc_info=exc)
        fut.add_done_callback(on_done)

    async def wait_for_pending_callbacks(self) -> None:
        while self._pending:
            await asyncio.wait([asyncio.wrap_future(fut) for fut in list(self._pending)])


callback_mgr = CallbackManager()
trigger_callback = callback_mgr.trigger_callback
register_callback = callback_mgr.register_callback
unregister_callback = callback_mgr.unregister_callback


def event_listener(func):
    """Marks an 'on_event_<name>' method of an EventListener as the handler of event <name>."""
    prefix = 'on_event_'
    assert func.__name__.startswith(prefix), f"event handler must be named {prefix}*: {func.__name__}"
    func.handles_event = func.__name__[len(prefix):]
    return func


class EventListener:
    """Mixin for objects that handle events with @event_listener methods.

    register_callbacks() subscribes every marked method, unregister_callbacks()
    drops them again. Registering twice has no further effect.
    """

    def _event_handlers(self):
        cls = type(self)
        for attr_name in dir(cls):
            event = getattr(getattr(cls, attr_name, None), 'handles_event', None)
            if event is not None:
                yield event, getattr(self, attr_name)

    def register_callbacks(self) -> None:
        for event, method in self._event_handlers():
            register_callback(method, [event])

    def unregister_callbacks(self) -> None:
        for event, method in self._event_handlers():
            unregister_callback(method)
