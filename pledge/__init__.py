# -*- coding: utf-8 -*-

from .__version__ import __version__  # noqa

import logging

from .common import config
from .common import log


def configure():
    """Load the config file and apply its log settings.

    Applications embedding pledge call it once, usually right after having
    opened a ``log.Context``.
    """
    config.load()
    log.set_debug_mode(config.get('debug_mode'))
    log.set_logs_level(config.get('log_levels'))
    logging.getLogger(__name__).debug('pledge %s configured.', __version__)
