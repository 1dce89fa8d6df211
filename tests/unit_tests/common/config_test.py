# -*- coding: utf-8 -*-

import logging
import pytest

from pledge.common import config

"""### TEST CASES ###
    ## load
    config file exist
    config file does not exist

    ##get
    key does not exist
    get a bool value
    get a bool with invalid value
    get an int value
    get a dict
    get a dict with invalid pair
    get a default value

    ##set
    set a not existing key
    set a dict value
    set then load from the file
"""


class TestConfig(object):

    def test_load_missing_file(self, config_file, caplog):
        with caplog.at_level(logging.WARNING):
            config.load()
        assert 'Unable to load config file' in caplog.text

    def test_load_existing_file(self, config_file):
        config_file.write('[config]\n'
                          'debug_mode = true\n'
                          'result_max_turns = 42\n')
        config.load()

        assert config.get('debug_mode') is True
        assert config.get('result_max_turns') == 42

    def test_get_unknown_key(self, config_file):
        with pytest.raises(KeyError):
            config.get('unknown_key')

    def test_get_default_values(self, config_file):
        assert config.get('debug_mode') is False
        assert config.get('log_levels') == {}
        assert config.get('result_max_turns') == 100000
        assert config.get('warn_on_ignored_settlement') is True

    def test_get_invalid_bool(self, config_file):
        config_file.write('[config]\nwarn_on_ignored_settlement = maybe\n')
        config.load()
        assert config.get('warn_on_ignored_settlement') is True

    def test_get_invalid_int(self, config_file):
        config_file.write('[config]\nresult_max_turns = many\n')
        config.load()
        assert config.get('result_max_turns') == 100000

    def test_get_dict(self, config_file):
        config_file.write('[config]\n'
                          'log_levels = pledge=debug;other=40\n')
        config.load()
        assert config.get('log_levels') == {'pledge': 'debug', 'other': '40'}

    def test_get_dict_with_invalid_pair(self, config_file, caplog):
        config_file.write('[config]\n'
                          'log_levels = pledge=debug;invalid;a=b=c\n')
        config.load()

        with caplog.at_level(logging.WARNING):
            assert config.get('log_levels') == {'pledge': 'debug'}
        assert 'Unable to parse pair' in caplog.text

    def test_set_unknown_key(self, config_file):
        with pytest.raises(KeyError):
            config.set('unknown_key', 3)
        assert not config_file.check()

    def test_set_writes_file(self, config_file):
        config.set('result_max_turns', 12)

        assert config.get('result_max_turns') == 12
        assert 'result_max_turns = 12' in config_file.read()

        config.reset()
        assert config.get('result_max_turns') == 100000
        config.load()
        assert config.get('result_max_turns') == 12

    def test_set_dict(self, config_file):
        config.set('log_levels', {'pledge': 'info', 'other': 'error'})
        assert config.get('log_levels') == {'pledge': 'info',
                                             'other': 'error'}
