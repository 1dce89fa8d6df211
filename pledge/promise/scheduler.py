# -*- coding: utf-8 -*-

"""Cooperative schedulers used by the promises to run their callbacks.

A scheduler defers a zero-argument action until the current synchronous
execution completes. Actions run in the order they have been deferred.

The default scheduler is a ``QueueScheduler``: nothing runs until someone
drains it, by calling ``run()`` (usually at the end of each iteration of the
application main loop), or indirectly through ``Promise.result()``.
Applications built on asyncio can set a ``LoopScheduler`` as default instead.
"""

from collections import deque
import logging

_logger = logging.getLogger(__name__)


class Scheduler(object):
    """Interface of the schedulers."""

    def defer(self, action):
        """Schedule `action` to be called after the current turn.

        Args:
            action (callable): takes no argument. Its result is ignored.
        """
        raise NotImplementedError()


class QueueScheduler(Scheduler):
    """FIFO queue of actions, executed on demand.

    It's not thread-safe: all calls must be done from the same thread.
    """

    def __init__(self):
        self._queue = deque()
        self._executed = 0

    def __len__(self):
        return len(self._queue)

    def __repr__(self):
        return '<QueueScheduler %s pending action(s)>' % len(self._queue)

    def defer(self, action):
        self._queue.append(action)

    def is_idle(self):
        return not self._queue

    @property
    def executed(self):
        """Total number of actions executed since the creation."""
        return self._executed

    def step(self):
        """Run the oldest action in the queue.

        An exception raised by the action is logged, then ignored.

        Returns:
            boolean: False if the queue was empty; True otherwise.
        """
        try:
            action = self._queue.popleft()
        except IndexError:
            return False

        self._executed += 1
        try:
            action()
        except Exception:
            _logger.exception('Scheduled action %r raised an exception!',
                              action)
        return True

    def run(self, max_turns=None):
        """Run the actions until the queue is empty.

        Actions deferred by running actions are also executed.

        Args:
            max_turns (int, optional): if set, maximum number of actions
                executed. By default, it runs until the queue is empty.
        Returns:
            int: number of actions executed.
        """
        turns = 0
        while max_turns is None or turns < max_turns:
            if not self.step():
                break
            turns += 1
        return turns

    def run_until(self, predicate, max_turns=None):
        """Run the actions until `predicate()` becomes true.

        Args:
            predicate (callable): checked before each action.
            max_turns (int, optional): maximum number of actions executed.
        Returns:
            boolean: the last value of `predicate()`. It's False if the queue
                has been emptied, or `max_turns` reached, before.
        """
        turns = 0
        while not predicate():
            if max_turns is not None and turns >= max_turns:
                return False
            if not self.step():
                return bool(predicate())
            turns += 1
        return True


class LoopScheduler(Scheduler):
    """Scheduler running the actions on an asyncio event loop.

    ``loop.call_soon()`` executes the callbacks in the order they are
    registered, after the current callback has returned.
    """

    def __init__(self, loop):
        self._loop = loop

    def __repr__(self):
        return '<LoopScheduler %r>' % self._loop

    def defer(self, action):
        self._loop.call_soon(action)


_default_scheduler = QueueScheduler()


def get_default_scheduler():
    """Returns the scheduler used by promises created without one."""
    return _default_scheduler


def set_default_scheduler(scheduler):
    """Replace the default scheduler.

    Promises already created keep the scheduler they had.

    Returns:
        Scheduler: the previous default scheduler.
    """
    global _default_scheduler
    previous = _default_scheduler
    _default_scheduler = scheduler
    return previous
