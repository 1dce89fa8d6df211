# -*- coding: utf-8 -*-

import logging
import pytest

from pledge.common import config


@pytest.fixture
def config_file(request, tmpdir, monkeypatch):
    """Redirect the config module to a temporary config file.

    Returns:
        py.path.local: path of the (not yet created) config file.
    """
    path = tmpdir.join('pledge.ini')
    monkeypatch.setattr(config, '_get_config_file_path', lambda: str(path))
    request.addfinalizer(config.reset)
    return path


@pytest.fixture
def logger_levels(request):
    """Restore the levels of the loggers modified by the test."""
    names = ['', 'pledge', 'pledge.promise', 'other.module']
    levels = dict((name, logging.getLogger(name).level) for name in names)

    def restore():
        for name, level in levels.items():
            logging.getLogger(name).setLevel(level)

    request.addfinalizer(restore)
