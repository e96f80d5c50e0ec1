#!/usr/bin/env python3
# tests/test_settings_panel.py - Unit tests for the settings_panel.py helpers

import pytest
import json
import os
import tempfile
import shutil
from unittest.mock import patch
import sys

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

gi = pytest.importorskip('gi')
try:
    gi.require_version('Gtk', '3.0')
    gi.require_version('Gdk', '3.0')
except ValueError:
    pytest.skip('GTK 3 typelibs are not installed', allow_module_level=True)

import settings_panel
import style_config


@pytest.fixture
def temp_dirs():
    temp_config = tempfile.mkdtemp()
    temp_data = tempfile.mkdtemp()
    yield {'config_dir': temp_config, 'data': temp_data}
    shutil.rmtree(temp_config, ignore_errors=True)
    shutil.rmtree(temp_data, ignore_errors=True)


def touch(path):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump({"layout": []}, f)


class TestCurrentStyles:
    """Test suite for current_styles()"""

    def test_defaults(self):
        styles = settings_panel.current_styles({})
        assert styles['digit_width'] == style_config.WIDTH_FULLWIDTH
        assert styles['period_style'] == style_config.PUNCTUATION_FULLWIDTH_JAPANESE
        assert set(styles) == {key for key, _, _ in settings_panel.STYLE_ROWS}

    def test_numeric_selector_resolved(self):
        """Test that an index stored in config.json shows as its name"""
        styles = settings_panel.current_styles({'style': {'comma_style': 2, 'space_width': 0}})
        assert styles['comma_style'] == style_config.PUNCTUATION_FULLWIDTH_LATIN
        assert styles['space_width'] == style_config.WIDTH_HALFWIDTH

    def test_every_style_choice_known(self):
        """Test that each combo entry is a selector the engine accepts"""
        for key, _, choices in settings_panel.STYLE_ROWS:
            for choice_id, _ in choices:
                styles = settings_panel.current_styles({'style': {key: choice_id}})
                assert styles[key] == choice_id


class TestCollectConfig:
    """Test suite for collect_config()"""

    def test_merges_edited_sections(self):
        config = {
            'logging_level': 'DEBUG',
            'style': {'digit_width': 'fullwidth', 'period_style': 1},
            'neural_assist': {'enabled': False, 'inference_limit': 10},
            'layout': '',
        }
        values = {
            'style': {'digit_width': 'halfwidth'},
            'neural_assist': {'enabled': True},
            'layout': 'kana.json',
            'dictionaries': ['a.json'],
            'live_conversion': True,
        }
        result = settings_panel.collect_config(config, values)
        assert result['logging_level'] == 'DEBUG'
        assert result['style'] == {'digit_width': 'halfwidth', 'period_style': 1}
        assert result['neural_assist'] == {'enabled': True, 'inference_limit': 10}
        assert result['layout'] == 'kana.json'
        assert result['dictionaries'] == ['a.json']
        assert result['live_conversion'] is True

    def test_input_not_modified(self):
        config = {'style': {'digit_width': 'fullwidth'}}
        settings_panel.collect_config(config, {'style': {'digit_width': 'halfwidth'}})
        assert config == {'style': {'digit_width': 'fullwidth'}}

    def test_empty_config(self):
        result = settings_panel.collect_config(None, {'layout': ''})
        assert result == {'style': {}, 'neural_assist': {}, 'layout': ''}


def test_parse_dictionaries():
    text = 'dictionaries/basic.json\n\n  ~/SKK-JISYO.L  \n'
    assert settings_panel.parse_dictionaries(text) == ['dictionaries/basic.json', '~/SKK-JISYO.L']
    assert settings_panel.parse_dictionaries('') == []


class TestListLayouts:
    """Test suite for list_layouts()"""

    def test_user_and_system_layouts(self, temp_dirs):
        touch(os.path.join(temp_dirs['config_dir'], 'layouts', 'mine.json'))
        touch(os.path.join(temp_dirs['config_dir'], 'layouts', 'kana.json'))
        touch(os.path.join(temp_dirs['data'], 'layouts', 'kana.json'))
        touch(os.path.join(temp_dirs['data'], 'layouts', 'azik.json'))
        touch(os.path.join(temp_dirs['data'], 'layouts', 'README.txt'))

        with patch('util.get_user_config_dir', return_value=temp_dirs['config_dir']):
            with patch('util.get_datadir', return_value=temp_dirs['data']):
                layouts = settings_panel.list_layouts()

        assert layouts == [
            ('azik.json', 'azik.json (System)'),
            ('kana.json', 'kana.json (User)'),
            ('mine.json', 'mine.json (User)'),
        ]

    def test_no_layout_dirs(self, temp_dirs):
        with patch('util.get_user_config_dir', return_value=temp_dirs['config_dir']):
            with patch('util.get_datadir', return_value=temp_dirs['data']):
                assert settings_panel.list_layouts() == []


class TestDefaultConfig:
    """Test suite for default_config()"""

    def test_returns_copy(self):
        packaged = {'style': {'digit_width': 'fullwidth'}}
        with patch('util.get_default_config_data', return_value=packaged):
            defaults = settings_panel.default_config()
        defaults['style']['digit_width'] = 'halfwidth'
        assert packaged == {'style': {'digit_width': 'fullwidth'}}

    def test_missing_default(self):
        with patch('util.get_default_config_data', return_value=None):
            assert settings_panel.default_config() is None

    def test_packaged_default_has_edited_keys(self):
        """Test that the shipped config.json carries every key the panel edits"""
        defaults = settings_panel.default_config()
        assert defaults is not None
        for key in ('style', 'neural_assist', 'layout', 'dictionaries', 'live_conversion'):
            assert key in defaults


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
