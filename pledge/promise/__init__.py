# -*- coding: utf-8 -*-

from .decorators import wrap_promise
from .deferred import Deferred
from .errors import (AggregateError, ChainingCycleError, PromiseError,
                     RejectedValueError, TimeoutError)
from .promise import Promise
from .reduce_coroutine import reduce_coroutine
from .scheduler import (LoopScheduler, QueueScheduler, Scheduler,
                        get_default_scheduler, set_default_scheduler)
from .util import get_then, is_thenable

__all__ = ['AggregateError', 'ChainingCycleError', 'Deferred',
           'LoopScheduler', 'Promise', 'PromiseError', 'QueueScheduler',
           'RejectedValueError', 'Scheduler', 'TimeoutError', 'get_then',
           'get_default_scheduler', 'is_thenable', 'reduce_coroutine',
           'set_default_scheduler', 'wrap_promise']
