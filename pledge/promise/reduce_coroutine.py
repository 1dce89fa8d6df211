# -*- coding: utf-8 -*-

from functools import wraps

from .deferred import Deferred
from .errors import RejectedValueError
from .promise import Promise
from .util import is_thenable


def reduce_coroutine(safeguard=False):
    """Decorator who converts a coroutine of promises into a single promise.

    The greatest interest is the ability to write a function in an
    synchronous-like style, using many asynchronous Promises.
    Whatever is the number of Promises or async calls used, the result will
    always be an unique Promise wrapping the whole process.

    The generator yields thenables. The value of each one is sent back to the
    generator; a rejection reason is thrown into it (wrapped into a
    `RejectedValueError` if it's not an exception). If the generator lets
    such a wrapper through, the resulting Promise is rejected with the
    original reason.
    The resulting Promise is fulfilled with:
    - the value returned by the generator, if it's not None;
    - else the last value sent to the generator.
    Yielding a value who is not a thenable ends the coroutine: the generator
    is closed and the value is used as the result.

    Args:
        safeguard (boolean): if true, use `Promise.safeguard()` on the
            resulting promise.

    Example:

        >>> @reduce_coroutine()
        ... def total_size(files):
        ...     sizes = yield Promise.all([get_size(f) for f in files])
        ...     return sum(sizes)
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            """
            Args:
                *args
                **kwargs
            Returns:
                Promise<*>
            """
            df = Deferred(_name='COROUTINE %s' % func.__name__)
            if safeguard:
                df.promise.safeguard()

            try:
                # Create generator; Initialization phase
                gen = func(*args, **kwargs)
            except Exception as error:
                df.reject(error)
                return df.promise

            def _call_next_or_set_result(value):
                if is_thenable(value):
                    Promise.resolve(value).then(iter_next, iter_error)
                else:
                    gen.close()
                    df.resolve(value)

            def _finish(stop, last_value):
                if stop.value is not None:
                    df.resolve(stop.value)
                else:
                    df.resolve(last_value)

            def iter_next(sent_value):
                try:
                    next_value = gen.send(sent_value)
                except StopIteration as stop:
                    return _finish(stop, sent_value)
                except Exception as error:
                    return df.reject(error)
                _call_next_or_set_result(next_value)

            def iter_error(reason):
                error = reason
                if not isinstance(reason, BaseException):
                    error = RejectedValueError(reason)
                try:
                    next_value = gen.throw(error)
                except StopIteration as stop:
                    return _finish(stop, None)
                except Exception as raised:
                    # Wrapper not caught by the generator.
                    if raised is error:
                        return df.reject(reason)
                    return df.reject(raised)
                _call_next_or_set_result(next_value)

            # Start and resolve loop.
            try:
                first_value = next(gen)
            except StopIteration as stop:
                df.resolve(stop.value)
                return df.promise
            except Exception as error:
                df.reject(error)
                return df.promise
            _call_next_or_set_result(first_value)

            return df.promise

        return wrapper
    return decorator
