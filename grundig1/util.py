#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
Various helper functions that are used across the library.
"""

import asyncio
import math
import time


def clamp(value, min_, max_):
    """
    Constrain a value to the specified range

    :param value: Input value
    :param min_: Range minimum
    :param max_: Range maximum

    :return: The constrained value
    """
    return max(min_, min(value, max_))


def to_number(value, default=None):
    """
    Coerce a loosely-typed value (int, float, numeric string) to a float.

    Booleans, None, NaN and anything unparseable yield the default.
    Infinities are kept so that callers can clamp them to a bound.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number):
        return default
    return number


def ensure_future(coro, loop=None):
    """
    Wrapper for asyncio.ensure_future which dumps exceptions
    """
    if loop is None:
        loop = asyncio.get_event_loop()
    fut = asyncio.ensure_future(coro, loop=loop)

    def exception_logging_done_cb(fut):
        try:
            e = fut.exception()
        except asyncio.CancelledError:
            return
        if e is not None:
            loop.call_exception_handler(
                {
                    "message": "Unhandled exception in async future",
                    "future": fut,
                    "exception": e,
                }
            )

    fut.add_done_callback(exception_logging_done_cb)
    return fut


async def cancel_task(task):
    """
    Cancel a task and wait for it to unwind. Safe to call with None
    or with a task which has already finished.
    """
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


class Signal:
    """
    A simple signalling construct.

    Listeners may connect() to this signal, and their handlers will
    be invoked when fire() is called.
    """

    def __init__(self):
        self._handlers = []

    def connect(self, handler):
        """
        Connect a handler to this signal

        :param handler: Function to invoke when the signal fires
        """
        if handler not in self._handlers:
            self._handlers.append(handler)

    def disconnect(self, handler):
        """
        Remove a previously connected handler
        """
        if handler in self._handlers:
            self._handlers.remove(handler)

    def fire(self, *args, **kwargs):
        """
        Fire the signal, invoking all connected handlers

        :params args: Arguments to call handlers with
        """
        for handler in list(self._handlers):
            handler(*args, **kwargs)


class Ticker:
    """
    Interval synchronizer

    Provides an async context manager for code which needs to execute
    on a fixed period. The tick starts when the context is entered
    and sleeps for the remainder of the interval on exit. If the
    interval was overrun, sleep until the next interval boundary.
    """

    def __init__(self, interval: float):
        self._interval = interval
        self._tick_start = 0.0
        self._next_tick = interval

    def __enter__(self):
        self._tick_start = time.monotonic()
        return self

    def __exit__(self, *args):
        elapsed = time.monotonic() - self._tick_start

        if elapsed > self._interval:
            self._next_tick = self._interval - (elapsed % self._interval)
        else:
            self._next_tick = self._interval - elapsed

    async def tick(self):
        """
        Sleep until the next tick
        """
        await asyncio.sleep(self._next_tick)

    async def __aenter__(self):
        return self.__enter__()

    async def __aexit__(self, *args):
        self.__exit__(*args)
        await self.tick()

    @property
    def interval(self):
        """
        The interval between ticks
        """
        return self._interval

    @interval.setter
    def interval(self, value: float):
        self._interval = value
