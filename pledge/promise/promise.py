# -*- coding: utf-8 -*-

import logging
from functools import partial

from ..common import config
from .errors import (AggregateError, ChainingCycleError, RejectedValueError,
                     TimeoutError)
from .scheduler import QueueScheduler, get_default_scheduler
from .util import get_then, is_thenable

_logger = logging.getLogger(__name__)


class Promise(object):
    """It represents an operation expected to be completed in the future.

    A Promise is used for asynchronous computation. It contains a value not yet
    known when the Promise is created. It allows to set callbacks who will be
    called as soon as the result is known. It's a "promise" of a future value.

    A Promise is settled at most once: it's either fulfilled with a value, or
    rejected with a reason. The callbacks are never executed synchronously:
    they are deferred on the scheduler of the Promise, and run in the order
    they have been registered.

    Promises are not thread-safe. All calls must be done from the thread
    running the scheduler.
    """

    PENDING = 'pending'
    FULFILLED = 'fulfilled'
    REJECTED = 'rejected'

    def __init__(self, executor, scheduler=None, _name=None, _previous=None):
        """Constructor of the Promise.

        Generate the two callbacks for the executor, then call the `executor`.
        It means the executor will be fully executed before the the constructor
        returns.
        If the executor raises an exception, it's caught and the Promise is
        rejected with this exception (unless it was already settled).

        Args:
            executor (callable): Takes 2 callable arguments:
                The first one, `on_fulfilled()` should be called when the
                Promise is fulfilled (ie the tasks is done) and must accept
                the result's value as its only argument.
                The second, `on_rejected()`, should be called when an error
                occurs. Its argument is the reason of the rejection, usually
                an instance of `Exception`.
                Only the first call of one of these callbacks has an effect.
                They can be called from anywhere, at any time.
            scheduler (Scheduler, optional): scheduler used to run the
                callbacks. Default to the default scheduler.
            _name (str): if set, name used when converted to text.
        """

        self._state = self.PENDING
        self._value = None
        self._reason = None
        if scheduler is None:
            scheduler = get_default_scheduler()
        self._scheduler = scheduler
        self._name = _name or getattr(executor, '__name__', '???')
        self._previous = _previous

        self._callbacks = []
        self._errbacks = []

        def on_fulfilled(value):
            if self._state != self.PENDING:
                self._log_ignored_settlement('fulfill', value)
                return
            self._value = value
            self._state = self.FULFILLED

            callbacks = self._callbacks

            # Free the references
            self._callbacks = None
            self._errbacks = None

            for callback in callbacks:
                self._exec_callback(callback)

        def on_rejected(reason):
            if self._state != self.PENDING:
                self._log_ignored_settlement('reject', reason)
                return
            if not isinstance(reason, BaseException):
                # Any value can be chained, but result() will have to wrap it
                # into a RejectedValueError to raise it.
                _logger.warning('Promise %r rejected with non-exception '
                                'value: %r', self, reason)
            self._reason = reason
            self._state = self.REJECTED

            errbacks = self._errbacks

            # Free the references
            self._callbacks = None
            self._errbacks = None

            for errback in errbacks:
                self._exec_callback(errback, is_errback=True)

        try:
            executor(on_fulfilled, on_rejected)
        except Exception as error:
            on_rejected(error)

    @property
    def state(self):
        """One of PENDING, FULFILLED or REJECTED."""
        return self._state

    @property
    def scheduler(self):
        return self._scheduler

    def result(self, max_turns=None):
        """Run the scheduler until the Promise is settled, and returns it.

        Nested promises and thenables are unwrapped: the value returned is
        the one a `then()` callback would receive.

        Args:
            max_turns (int, optional): maximum number of scheduler actions to
                run. Default to the 'result_max_turns' config entry.
        Returns:
            *: value encapsulated, defined by the operation.
        Raises:
            TimeoutError: if the promise is not settled within the delay.
            RejectedValueError: if the promise is rejected with a reason who
                is not an exception.
            *: If the promise is rejected, the rejection cause is raised.
        """
        outcome = self._wait(max_turns)
        if outcome._state == self.REJECTED:
            if isinstance(outcome._reason, BaseException):
                raise outcome._reason
            raise RejectedValueError(outcome._reason)
        return outcome._value

    def exception(self, max_turns=None):
        """Run the scheduler until the Promise is settled, and returns the
        rejection reason.

        Args:
            max_turns (int, optional): maximum number of scheduler actions to
                run. Default to the 'result_max_turns' config entry.
        Returns:
            *: the reason of the rejection of the Promise.
            None: if the promise is fulfilled.
        Raises:
            TimeoutError: if the promise is not settled within the delay.
        """
        return self._wait(max_turns)._reason

    def _wait(self, max_turns):
        # Only a QueueScheduler can be driven from here. Others run by
        # themselves (eg: an asyncio loop).
        if not isinstance(self._scheduler, QueueScheduler):
            return self._known_outcome()

        outcome = self.then()

        if max_turns is None:
            max_turns = config.get('result_max_turns')

        executed = self._scheduler.executed
        self._scheduler.run_until(
            lambda: outcome._state != self.PENDING, max_turns)

        if outcome._state == self.PENDING:
            raise TimeoutError('Promise %r still pending after %s turn(s)'
                               % (self, self._scheduler.executed - executed))
        return outcome

    def _known_outcome(self):
        """Returns the settled Promise holding the final outcome of `self`.

        Promises fulfilled with other promises are followed, as long as they
        are settled. No scheduler turn is run.

        Raises:
            TimeoutError: if the outcome is not known yet.
        """
        promise = self
        seen = set()
        while (promise._state == self.FULFILLED and
               isinstance(promise._value, Promise) and
               id(promise) not in seen):
            seen.add(id(promise))
            promise = promise._value

        if (promise._state == self.PENDING or id(promise) in seen or
                (promise._state == self.FULFILLED and
                 is_thenable(promise._value))):
            raise TimeoutError('Promise %r not settled yet; its scheduler %r '
                               'is not driven by result()'
                               % (self, self._scheduler))
        return promise

    def then(self, on_fulfilled=None, on_rejected=None):
        """Create a new promise from callbacks called when this one is settled.

        If the promise is fulfilled, the `on_fulfilled` callback will be
        called. Otherwise (the promise has been rejected), the `on_rejected`
        callback is called.
        The callback is never called before `then()` returns, even if the
        promise is already settled: it's deferred on the scheduler.

        In any case, the callback will define the state of the returned
        Promise. If the callback raises an exception, the new Promise is
        rejected. The callback can returns:
        - A value: the new promise will be fulfilled with this value.
        - Another Promise, or any object with a `then` method: when fulfilled
            or rejected, will transfer its status (state and result/error) to
            the Promise returned by this method.
        - The new promise itself: the new promise is rejected with a
            `ChainingCycleError`.

        If a callback is not defined (or is not callable), the state of the
        self promise is transferred to the new promise (the state and the
        value/error).

        Args:
            on_fulfilled (callable, optional):  This callback will receive the
                result of the original promise as argument.
            on_rejected (callable, optional): This callback will receive the
                reason of the rejection of the original promise as argument.
        Returns:
            Promise<*>: new promise depending of self.
        """
        if not callable(on_fulfilled):
            on_fulfilled = None
        if not callable(on_rejected):
            on_rejected = None

        capabilities = []

        def chained_executor(fulfilled, rejected):
            capabilities.extend((fulfilled, rejected))

        if not on_rejected:
            name = '%s' % getattr(on_fulfilled, '__name__', '???')
        elif not on_fulfilled:
            name = '<None, %s>' % getattr(on_rejected, '__name__', '???')
        else:
            name = '<%s, %s>' % (getattr(on_fulfilled, '__name__', '???'),
                                 getattr(on_rejected, '__name__', '???'))
        chained = Promise(chained_executor, scheduler=self._scheduler,
                          _name=name, _previous=self)
        fulfilled, rejected = capabilities

        def settle_with(handler, argument):
            try:
                x = handler(argument)
            except Exception as error:
                return rejected(error)
            _resolve_promise(chained, x, fulfilled, rejected)

        def callback():
            if on_fulfilled is None:
                _resolve_promise(chained, self._value, fulfilled, rejected)
            else:
                settle_with(on_fulfilled, self._value)

        def errback():
            if on_rejected is None:
                rejected(self._reason)
            else:
                settle_with(on_rejected, self._reason)

        if self._state == self.PENDING:
            # Called synchronously when self is settled; the callback itself
            # must still wait its turn.
            self._callbacks.append(partial(self._scheduler.defer, callback))
            self._errbacks.append(partial(self._scheduler.defer, errback))
        elif self._state == self.FULFILLED:
            self._exec_callback(partial(self._scheduler.defer, callback))
        else:
            self._exec_callback(partial(self._scheduler.defer, errback),
                                is_errback=True)

        return chained

    def catch(self, on_rejected):
        """Create a new promise with a callback called when an error occurs.

        Alias of `self.then(None, on_rejected)`

        Args:
            on_rejected (callable): Will be called with the rejection reason
                if `self` is rejected.
        returns:
            Promise<*>: new Promise chained to `self`. If `self` is fulfilled,
                the promised value will be the same as `self`. Otherwise, the
                value returned by the `on_rejected()` callback.
        """
        return self.then(None, on_rejected)

    def finally_(self, on_finally):
        """Create a new promise calling `on_finally` once `self` is settled.

        `on_finally` takes no argument. The new Promise is settled like
        `self`: the value returned by `on_finally` is ignored. But if
        `on_finally` raises an exception, the new Promise is rejected with it.

        Args:
            on_finally (callable): cleanup procedure.
        Returns:
            Promise<*>: new promise chained to `self`.
        """
        if not callable(on_finally):
            return self.then(on_finally, on_finally)

        def _finally_fulfilled(value):
            on_finally()
            return value

        def _finally_rejected(reason):
            on_finally()
            return type(self).reject(reason, scheduler=self._scheduler)

        return self.then(_finally_fulfilled, _finally_rejected)

    def safeguard(self):
        """Catch all errors and log them with the most details possible.

        This method is aimed to protect the program from uncaught rejected
        Promise. If no error handler has been set (via then() or catch()), the
        default behavior is to do nothing, and thus, errors are silently
        ignored.
        Calling `safeguard()` after all chains are set will catch these errors,
        and log them as ERROR with the maximum of details possible.
        """
        def guard(reason):
            if isinstance(reason, BaseException):
                _logger.error('[SAFEGUARD] %r', self, exc_info=reason)
            else:
                _logger.error('[SAFEGUARD] %r rejected with %r', self, reason)

        self.catch(guard)

    def __repr__(self):
        return 'Promise(%s)' % self._inner_print()

    def _inner_print(self):
        letters = {self.PENDING: 'P', self.FULFILLED: 'F', self.REJECTED: 'R'}

        parts = []
        promise = self
        while promise is not None:
            parts.append('%s %s' % (promise._name, letters[promise._state]))
            promise = promise._previous
        return ' -> '.join(reversed(parts))

    def _log_ignored_settlement(self, action, value):
        if config.get('warn_on_ignored_settlement'):
            level = logging.WARNING
        else:
            level = logging.DEBUG
        _logger.log(level, 'Try to %s Promise %r already settled. New value '
                    'will be ignored: %r', action, self, value)

    @classmethod
    def resolve(cls, value, scheduler=None):
        """Create a promise who resolves the selected value.

        The value goes through the same resolution as the values returned by
        `then()` callbacks: if it's a Promise or a thenable, the new Promise
        will follow its state. It's never returned as is.

        Args:
            value: result of the promise.
            scheduler (Scheduler, optional)
        Returns:
            Promise: new Promise, already fulfilled if `value` is a plain
                value.
        """
        capabilities = []

        promise = cls(lambda ok, error: capabilities.extend((ok, error)),
                      scheduler=scheduler, _name='RESOLVE')
        _resolve_promise(promise, value, *capabilities)
        return promise

    @classmethod
    def reject(cls, reason, scheduler=None):
        """Create a Promise rejected for the reason specified.

        Args:
            reason: reason set to the Promise. It's never unwrapped.
            scheduler (Scheduler, optional)
        Returns:
            Promise: new Promise already rejected.
        """
        return cls(lambda ok, error: error(reason), scheduler=scheduler,
                   _name='REJECT')

    @classmethod
    def _watch(cls, operand, on_fulfilled, on_rejected, scheduler=None):
        """Call one of the callbacks when the operand of a group is settled.

        A value who is neither a Promise nor a thenable is considered as a
        Promise already fulfilled. `on_fulfilled` always receives the value
        once unwrapped, even if the operand has been fulfilled with a
        thenable.
        """
        def unwrap(value):
            try:
                thenable = get_then(value) is not None
            except Exception as error:
                return on_rejected(error)
            if thenable:
                cls.resolve(value, scheduler).then(on_fulfilled, on_rejected)
            else:
                on_fulfilled(value)

        if not isinstance(operand, Promise):
            operand = cls.resolve(operand, scheduler=scheduler)
        operand.then(unwrap, on_rejected)

    @classmethod
    def all(cls, promises, scheduler=None):
        """Create a Promise who wait a list of promises to be all fulfilled.

        The resulting Promise resolve when all of the promises in the list are
        resolved, and returns a list of all the resulting values, keeping the
        order of the promise list.
        If a promise is rejected, then the resulting promise is rejected with
        the same reason, and all results from other promises are ignored.

        Args:
            promises (iterable): promises, thenables or plain values.
            scheduler (Scheduler, optional)
        Returns:
            Promise<list>: resulting promise, fulfilled when all promises are
                fulfilled, or rejected when one of the promises has been
                rejected. An empty list gives a Promise fulfilled with [].
        """
        def executor(resolve, reject):
            operands = list(promises)
            results = [None] * len(operands)
            remaining = [len(operands)]
            has_error = [False]

            if not operands:
                return resolve(results)

            def resolve_one_promise(index, value):
                if has_error[0]:
                    return
                results[index] = value
                remaining[0] -= 1
                if remaining[0] == 0:
                    resolve(results)

            def reject_one_promise(reason):
                if has_error[0]:
                    return
                has_error[0] = True
                reject(reason)

            for index, operand in enumerate(operands):
                cls._watch(operand, partial(resolve_one_promise, index),
                           reject_one_promise, scheduler)

        return cls(executor, scheduler=scheduler, _name='ALL')

    @classmethod
    def all_settled(cls, promises, scheduler=None):
        """Create a Promise who wait a list of promises to be all settled.

        The resulting Promise is never rejected. It's fulfilled with a list of
        dicts describing the outcome of each promise, in the order of the
        list:
        - `{'status': 'fulfilled', 'value': value}`
        - `{'status': 'rejected', 'reason': reason}`

        Args:
            promises (iterable): promises, thenables or plain values.
            scheduler (Scheduler, optional)
        Returns:
            Promise<list of dict>
        """
        def executor(resolve, reject):
            operands = list(promises)
            outcomes = [None] * len(operands)
            remaining = [len(operands)]

            if not operands:
                return resolve(outcomes)

            def settle_one_promise(index, outcome):
                outcomes[index] = outcome
                remaining[0] -= 1
                if remaining[0] == 0:
                    resolve(outcomes)

            def on_fulfilled(index, value):
                settle_one_promise(index, {'status': cls.FULFILLED,
                                           'value': value})

            def on_rejected(index, reason):
                settle_one_promise(index, {'status': cls.REJECTED,
                                           'reason': reason})

            for index, operand in enumerate(operands):
                cls._watch(operand, partial(on_fulfilled, index),
                           partial(on_rejected, index), scheduler)

        return cls(executor, scheduler=scheduler, _name='ALL_SETTLED')

    @classmethod
    def any(cls, promises, scheduler=None):
        """Create a Promise fulfilled by the first promise fulfilled.

        The resulting Promise is rejected only if all the promises are
        rejected, with an `AggregateError` listing the reasons in the order of
        the list. An empty list gives a Promise rejected immediately.

        Args:
            promises (iterable): promises, thenables or plain values.
            scheduler (Scheduler, optional)
        Returns:
            Promise<*>
        """
        def executor(resolve, reject):
            operands = list(promises)
            errors = [None] * len(operands)
            remaining = [len(operands)]
            is_resolved = [False]

            if not operands:
                return reject(AggregateError(errors))

            def resolve_once(value):
                if is_resolved[0]:
                    return
                is_resolved[0] = True
                resolve(value)

            def reject_one_promise(index, reason):
                if is_resolved[0]:
                    return
                errors[index] = reason
                remaining[0] -= 1
                if remaining[0] == 0:
                    reject(AggregateError(errors))

            for index, operand in enumerate(operands):
                cls._watch(operand, resolve_once,
                           partial(reject_one_promise, index), scheduler)

        return cls(executor, scheduler=scheduler, _name='ANY')

    @classmethod
    def race(cls, promises, scheduler=None):
        """Run all promises, then resolve or reject with the fastest Promise.

        The resulting Promise will be settled as soon as the one the running
        Promises is done. Result value or rejection reason of the finished
        promise are transmitted.
        All other Promise result's will be ignored. Nothing is cancelled.

        Args:
            promises (iterable): promises, thenables or plain values.
            scheduler (Scheduler, optional)
        Returns:
            Promise: a promise. If the list is empty, it will stay pending
                forever.
        """
        def executor(resolve, reject):
            is_resolved = [False]

            def resolve_once(value):
                if is_resolved[0]:
                    return
                is_resolved[0] = True
                resolve(value)

            def reject_once(reason):
                if is_resolved[0]:
                    return
                is_resolved[0] = True
                reject(reason)

            for operand in promises:
                cls._watch(operand, resolve_once, reject_once, scheduler)

        return cls(executor, scheduler=scheduler, _name='RACE')

    @staticmethod
    def _exec_callback(callback, is_errback=False):
        try:
            callback()
        except Exception:
            if is_errback:
                _logger.exception("Unable to schedule a Promise errback!")
            else:
                _logger.exception("Unable to schedule a Promise callback!")


def _resolve_promise(promise, x, fulfill, reject):
    """Settle `promise` with the value `x`, unwrapping it if needed.

    - If `x` is `promise` itself, it's rejected with a ChainingCycleError.
    - If `x` is a Promise, `promise` will follow its state.
    - If `x` has a callable `then` attribute (a "thenable"), it's called with
      two callbacks. Only the first call of one of them is considered. If
      `then` raises before any of them has been called, `promise` is
      rejected with the error.
    - Otherwise, `promise` is fulfilled with `x`.

    Values given synchronously by thenables are unwrapped in a loop instead
    of recursive calls, so that long chains of thenables don't exhaust the
    stack.

    Args:
        promise (Promise): the promise to settle.
        x: value to resolve the promise with.
        fulfill (callable): `on_fulfilled` capability of `promise`.
        reject (callable): `on_rejected` capability of `promise`.
    """
    while True:
        if x is promise:
            return reject(ChainingCycleError(promise))

        if isinstance(x, Promise):
            def adopt_value(value):
                _resolve_promise(promise, value, fulfill, reject)

            x.then(adopt_value, reject)
            return

        try:
            then = get_then(x)
        except Exception as error:
            return reject(error)

        if then is None:
            return fulfill(x)

        call = _ThenableCall(promise, fulfill, reject)
        try:
            then(call.resolve, call.reject)
        except Exception as error:
            if call.called:
                _logger.debug('%r.then() raised after having settled %r; '
                              'error ignored: %r', x, promise, error)
            else:
                call.reject(error)
        finally:
            call.in_then = False

        if not call.sync_values:
            return
        x = call.sync_values[0]


class _ThenableCall(object):
    """One-shot pair of callbacks given to the `then()` of a thenable.

    A value received while `then()` is still running is stored in
    `sync_values`, to be unwrapped by the caller; a value received later
    resolves the promise directly.
    """

    def __init__(self, promise, fulfill, reject):
        self._promise = promise
        self._fulfill = fulfill
        self._reject = reject
        self.called = False
        self.in_then = True
        self.sync_values = []

    def resolve(self, value):
        if self.called:
            return
        self.called = True
        if self.in_then:
            self.sync_values.append(value)
        else:
            _resolve_promise(self._promise, value, self._fulfill,
                             self._reject)

    def reject(self, reason):
        if self.called:
            return
        self.called = True
        self._reject(reason)
