# -*- coding: utf-8 -*-


class PromiseError(Exception):
    """Base class of the errors produced by the promise package."""
    pass


class ChainingCycleError(PromiseError, TypeError):
    """A Promise has been resolved with itself."""

    def __init__(self, promise):
        PromiseError.__init__(self, 'Chaining cycle detected for %r' %
                              promise)
        self.promise = promise


class AggregateError(PromiseError):
    """Every promise of a group has been rejected.

    Attributes:
        errors (list): rejection reasons, in the order of the group.
    """

    def __init__(self, errors, message='All promises were rejected'):
        PromiseError.__init__(self, message)
        self.errors = list(errors)

    def __repr__(self):
        return 'AggregateError(%r)' % (self.errors,)


class TimeoutError(PromiseError):
    """The Promise is still pending after the turns allowed."""
    pass


class RejectedValueError(PromiseError):
    """A Promise has been rejected with a value who is not an exception.

    Python can only raise exceptions: this error is raised instead, and
    carries the original rejection reason.
    """

    def __init__(self, reason):
        PromiseError.__init__(self, 'Promise rejected with non-exception '
                              'value: %r' % (reason,))
        self.reason = reason
