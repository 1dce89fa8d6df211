# -*- coding: utf-8 -*-

import pytest

from pledge.promise import ChainingCycleError, Promise


class Err(Exception):
    pass


class SyncThenable(object):
    """Thenable fulfilling synchronously, as many times as asked."""

    def __init__(self, *values):
        self.values = values

    def then(self, on_fulfilled, on_rejected):
        for value in self.values:
            on_fulfilled(value)


class StoredThenable(object):
    """Thenable keeping the callbacks, to be called later by the test."""

    def __init__(self):
        self.callbacks = []

    def then(self, on_fulfilled, on_rejected):
        self.callbacks.append((on_fulfilled, on_rejected))


class TestSelfResolution(object):

    def test_promise_resolved_with_itself(self):
        """A callback returning its own Promise rejects it."""
        chained = []

        p = Promise.resolve(1).then(lambda value: chained[0])
        chained.append(p)

        err = p.exception()
        assert isinstance(err, ChainingCycleError)
        assert isinstance(err, TypeError)
        assert err.promise is p

    def test_error_callback_resolving_with_itself(self):
        chained = []

        p = Promise.reject(Err()).catch(lambda reason: chained[0])
        chained.append(p)

        assert isinstance(p.exception(), ChainingCycleError)

    def test_thenable_resolving_with_the_promise(self):
        """A thenable giving back the Promise being resolved rejects it."""
        chained = []

        class Loop(object):
            def then(self, on_fulfilled, on_rejected):
                on_fulfilled(chained[0])

        p = Promise.resolve(None).then(lambda value: Loop())
        chained.append(p)

        assert isinstance(p.exception(), ChainingCycleError)


class TestPromiseUnwrapping(object):

    def test_nested_resolve(self):
        """resolve(resolve(resolve(5))) behaves like resolve(5)."""
        received = []

        p = Promise.resolve(Promise.resolve(Promise.resolve(5)))
        p2 = p.then(lambda value: received.append(value) or value)

        assert p2.result() == 5
        assert received == [5]
        assert p.result() == 5

    def test_callback_returning_rejected_promise(self):
        error = Err()

        p = Promise.resolve(1).then(lambda value: Promise.reject(error))
        assert p.exception() is error

    def test_callback_returning_pending_promise(self, capabilities,
                                                scheduler):
        caps = capabilities()
        inner = Promise(caps)

        p = Promise.resolve(1).then(lambda value: inner)
        scheduler.run()
        assert p.state == Promise.PENDING

        caps.fulfill('late value')
        assert p.result() == 'late value'

    def test_nested_rejected_promise(self):
        error = Err()
        p = Promise.resolve(Promise.resolve(Promise.reject(error)))

        assert p.then(lambda value: value).exception() is error

    def test_deeply_nested_promises(self):
        p = Promise.resolve('end')
        for _ in range(200):
            p = Promise.resolve(p)

        assert p.result() == 'end'


class TestThenableAdoption(object):

    def test_sync_thenable(self):
        p = Promise.resolve(1).then(lambda value: SyncThenable('thenable'))
        assert p.result() == 'thenable'

    def test_thenable_fulfilling_twice(self):
        """Only the first call of the thenable callbacks is considered."""
        p = Promise.resolve(1).then(lambda value: SyncThenable(1, 2, 3))
        assert p.result() == 1

    def test_thenable_fulfilling_then_rejecting(self):
        class Thenable(object):
            def then(self, on_fulfilled, on_rejected):
                on_fulfilled('first')
                on_rejected(Err())

        p = Promise.resolve(1).then(lambda value: Thenable())
        assert p.result() == 'first'

    def test_thenable_rejecting_then_fulfilling(self):
        error = Err()

        class Thenable(object):
            def then(self, on_fulfilled, on_rejected):
                on_rejected(error)
                on_fulfilled('ignored')

        p = Promise.resolve(1).then(lambda value: Thenable())
        assert p.exception() is error

    def test_async_thenable(self, scheduler):
        thenable = StoredThenable()

        p = Promise.resolve(1).then(lambda value: thenable)
        scheduler.run()
        assert p.state == Promise.PENDING
        assert len(thenable.callbacks) == 1

        on_fulfilled, on_rejected = thenable.callbacks[0]
        on_fulfilled('async value')
        on_fulfilled('second value')
        on_rejected(Err())
        assert p.result() == 'async value'

    def test_async_thenable_giving_thenable(self, scheduler):
        thenable = StoredThenable()

        p = Promise.resolve(1).then(lambda value: thenable)
        scheduler.run()

        on_fulfilled, _ = thenable.callbacks[0]
        on_fulfilled(SyncThenable('unwrapped'))
        assert p.result() == 'unwrapped'

    def test_async_thenable_rejection(self, scheduler):
        thenable = StoredThenable()
        reason = SyncThenable('never unwrapped')

        p = Promise.resolve(1).then(lambda value: thenable)
        scheduler.run()

        _, on_rejected = thenable.callbacks[0]
        on_rejected(reason)
        assert p.exception() is reason

    def test_thenable_raising_in_then(self):
        class Thenable(object):
            def then(self, on_fulfilled, on_rejected):
                raise Err('then')

        p = Promise.resolve(1).then(lambda value: Thenable())
        assert isinstance(p.exception(), Err)

    def test_thenable_raising_after_fulfillment(self):
        """An error raised by then() after a callback call is ignored."""
        class Thenable(object):
            def then(self, on_fulfilled, on_rejected):
                on_fulfilled('value')
                raise Err('then')

        p = Promise.resolve(1).then(lambda value: Thenable())
        assert p.result() == 'value'

    def test_thenable_with_failing_then_attribute(self):
        """Reading the `then` attribute raises an error."""
        class Thenable(object):
            @property
            def then(self):
                raise Err('property')

        p = Promise.resolve(1).then(lambda value: Thenable())
        assert isinstance(p.exception(), Err)

    def test_object_with_non_callable_then(self):
        """An object with a non-callable `then` is a plain value."""
        class NotThenable(object):
            then = 5

        value = NotThenable()
        p = Promise.resolve(1).then(lambda _: value)
        assert p.result() is value

    def test_function_thenable(self):
        """A function can also be a thenable."""
        def thenable():
            pass

        thenable.then = lambda on_fulfilled, on_rejected: on_fulfilled(3)

        p = Promise.resolve(1).then(lambda value: thenable)
        assert p.result() == 3

    def test_then_receives_thenable_as_receiver(self):
        class Thenable(object):
            def __init__(self):
                self.receivers = []

            def then(self, on_fulfilled, on_rejected):
                self.receivers.append(self)
                on_fulfilled(None)

        thenable = Thenable()
        Promise.resolve(1).then(lambda value: thenable).result()
        assert thenable.receivers == [thenable]

    def test_long_chain_of_sync_thenables(self):
        """Thousands of nested thenables don't exhaust the stack."""
        class Link(object):
            def __init__(self, next_value):
                self.next_value = next_value

            def then(self, on_fulfilled, on_rejected):
                on_fulfilled(self.next_value)

        value = 'end'
        for _ in range(5000):
            value = Link(value)

        p = Promise.resolve(None).then(lambda _: value)
        assert p.result() == 'end'

    @pytest.mark.parametrize('value', [None, 0, 'text', 3.5, [1, 2], {}])
    def test_plain_values(self, value):
        p = Promise.resolve(None).then(lambda _: value)
        assert p.result() == value
