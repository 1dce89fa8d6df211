# -*- coding: utf-8 -*-

from functools import wraps

from .promise import Promise


def wrap_promise(f):
    """Decorator who converts the result in a Promise object.

    The value returned by the function decorated is set as the value of a new
    Promise. If it's a thenable, it will be unwrapped by the callbacks
    chained to the Promise.
    If the function raises an exception, a Promise rejected with the
    exception is returned instead.
    """
    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            result = f(*args, **kwargs)
        except Exception as error:
            return Promise.reject(error)
        if isinstance(result, Promise):
            return result
        return Promise.resolve(result)

    return wrapper
