# -*- coding: utf-8 -*-


def get_then(value):
    """Read the `then` member of a value, if it's a callable.

    Only a missing attribute means "no `then`". Any other error raised while
    reading the attribute is propagated to the caller.

    Returns:
        callable: the `then` member, bound to `value`; None if `value` is not
            a thenable.
    """
    if value is None:
        return None
    then = getattr(value, 'then', None)
    if callable(then):
        return then
    return None


def is_thenable(value):
    """Check if an object can be chained, like a Promise, or is a "result".

    The promise module uses this function to differentiate "chainable" objects
    and direct return values, when using a callback who can returns both.

    Returns:
        boolean: True if the value has an attribute 'then' who is callable.
            False if not (including when reading the attribute fails).
    """
    try:
        return get_then(value) is not None
    except Exception:
        return False
