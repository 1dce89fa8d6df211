# -*- coding: utf-8 -*-

import pytest

from pledge.common import config
from pledge.promise import QueueScheduler, set_default_scheduler


@pytest.fixture(autouse=True)
def scheduler(request):
    """Install a new QueueScheduler as default scheduler for the test.

    Returns:
        QueueScheduler: the scheduler used by the promises created without
            an explicit scheduler. The test can run it step by step.
    """
    queue_scheduler = QueueScheduler()
    previous = set_default_scheduler(queue_scheduler)

    def restore():
        set_default_scheduler(previous)
        config.reset()

    request.addfinalizer(restore)
    return queue_scheduler


class Capabilities(object):
    """Executor keeping the settlement callbacks of a Promise."""

    def __call__(self, on_fulfilled, on_rejected):
        self.fulfill = on_fulfilled
        self.reject = on_rejected


@pytest.fixture
def capabilities():
    """Factory of executors keeping the callbacks of their Promise."""
    return Capabilities
