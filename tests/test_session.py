#!/usr/bin/env python3
# tests/test_session.py - Unit tests for session.py

import pytest
import os
import sys

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import session
from api import KanaKanjiCore
from converter import DictionaryConverter
from session import InputSession, PREDICTION_HINT


ENTRIES = {
    'かんじ': {'漢字': 120, '感じ': 90},
    'きょう': {'今日': 100},
    'は': {'葉': 5},
}


@pytest.fixture
def core():
    return KanaKanjiCore(DictionaryConverter(entries=ENTRIES))


@pytest.fixture
def input_session(core):
    return InputSession(core, core.create_config())


def type_keys(input_session, text):
    for c in text:
        input_session.process_key(c, c)


class TestIdle:
    """Test suite for keys pressed with nothing composing"""

    def test_space_commits_fullwidth_space(self, input_session):
        assert input_session.process_key('space', ' ') is True
        assert input_session.take_committed() == '　'
        assert not input_session.composing

    def test_space_halfwidth(self, core):
        input_session = InputSession(core, core.create_config(space_width='halfwidth'))
        input_session.process_key('space', ' ')
        assert input_session.take_committed() == ' '

    def test_non_inputable_key_not_consumed(self, input_session):
        assert input_session.process_key('Return') is False
        assert input_session.process_key('BackSpace') is False

    def test_inputable_starts_composing(self, input_session):
        assert input_session.process_key('k', 'k') is True
        assert input_session.composing
        assert input_session.preedit == 'k'

    def test_take_committed_clears(self, input_session):
        input_session.process_key('space', ' ')
        input_session.take_committed()
        assert input_session.take_committed() == ''


class TestComposing:
    """Test suite for keys pressed while composing"""

    def test_preedit_follows_input(self, input_session):
        type_keys(input_session, 'kan')
        assert input_session.preedit == 'かn'
        type_keys(input_session, 'ji')
        assert input_session.preedit == 'かんじ'
        assert input_session.preedit_cursor == 3

    def test_prediction_candidates_shown(self, input_session):
        type_keys(input_session, 'kanji')
        assert input_session.candidates
        assert input_session.candidates[0]['surface'] == '漢字'
        assert len(input_session.candidates) <= session.PREDICTION_PAGE_SIZE
        assert input_session.focused is False
        assert input_session.auxiliary == PREDICTION_HINT

    def test_return_commits_hiragana(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('Return')
        assert input_session.take_committed() == 'かんじ'
        assert not input_session.composing
        assert input_session.preedit == ''

    def test_escape_discards(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('Escape')
        assert input_session.take_committed() == ''
        assert not input_session.composing

    def test_backspace_to_empty_resets(self, input_session):
        type_keys(input_session, 'ka')
        input_session.process_key('BackSpace')
        assert input_session.preedit == 'k'
        input_session.process_key('BackSpace')
        assert not input_session.composing
        assert input_session.candidates == []

    def test_cursor_keys_move_preedit_cursor(self, input_session):
        type_keys(input_session, 'kanji')
        for _ in range(3):
            input_session.process_key('Left')
        assert input_session.preedit_cursor == 1
        assert input_session.preedit == 'かんじ'
        for _ in range(3):
            input_session.process_key('Right')
        assert input_session.preedit_cursor == 3

    def test_period_commits_with_punctuation(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('period', '.')
        assert input_session.take_committed() == 'かんじ。'
        assert not input_session.composing

    def test_comma_style(self, core):
        input_session = InputSession(core, core.create_config(comma_style='fullwidth_latin'))
        type_keys(input_session, 'ka')
        input_session.process_key('comma', ',')
        assert input_session.take_committed() == 'か，'

    def test_tab_focuses_prediction(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('Tab')
        assert input_session.focused is True
        assert input_session.preedit == '漢字'
        assert input_session.page_size == session.PREDICTION_PAGE_SIZE


class TestDirectConversion:
    """Test suite for F6..F10"""

    @pytest.mark.parametrize('key,expected', [
        ('F6', 'かんじ'),
        ('F7', 'カンジ'),
        ('F8', 'ｶﾝｼﾞ'),
        ('F9', 'ｋａｎｊｉ'),
        ('F10', 'kanji'),
    ])
    def test_direct_conversion(self, input_session, key, expected):
        type_keys(input_session, 'kanji')
        input_session.process_key(key)
        assert input_session.preedit == expected
        assert input_session.candidates == []
        input_session.process_key('Return')
        assert input_session.take_committed() == expected

    def test_alphabet_case_cycles(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('F10')
        input_session.process_key('F10')
        assert input_session.preedit == 'Kanji'
        input_session.process_key('F10')
        assert input_session.preedit == 'KANJI'

    def test_from_candidate_focus(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('space', ' ')
        input_session.process_key('F7')
        assert input_session.focused is False
        assert input_session.preedit == 'カンジ'


class TestConversion:
    """Test suite for candidate selection"""

    def test_space_converts(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('space', ' ')
        assert input_session.focused is True
        assert input_session.preedit == '漢字'
        assert input_session.page_size == session.CONVERSION_PAGE_SIZE
        assert input_session.auxiliary == f'[1/{len(input_session.candidates)}]'

    def test_space_cycles(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('space', ' ')
        input_session.process_key('space', ' ')
        assert input_session.preedit == '感じ'
        assert input_session.auxiliary.startswith('[2/')
        input_session.process_key('space', ' ', shift=True)
        assert input_session.preedit == '漢字'

    def test_up_wraps(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('space', ' ')
        input_session.process_key('Up')
        assert input_session.cursor_index == len(input_session.candidates) - 1

    def test_return_commits_selection(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('space', ' ')
        input_session.process_key('Down')
        input_session.process_key('Return')
        assert input_session.take_committed() == '感じ'
        assert not input_session.composing

    def test_selection_key(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('space', ' ')
        input_session.process_key('2', '2')
        assert input_session.take_committed() == '感じ'

    def test_selection_key_out_of_range(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('space', ' ')
        assert input_session.process_key('9', '9') is True
        assert input_session.take_committed() == ''
        assert input_session.focused is True

    def test_prefix_candidate_continues(self, input_session):
        """Test that committing a prefix candidate converts the rest"""
        type_keys(input_session, 'kyouha')
        input_session.process_key('space', ' ')
        surfaces = [c['surface'] for c in input_session.candidates]
        index = surfaces.index('今日')
        assert input_session.candidates[index]['corresponding_count'] == 4
        input_session.select_candidate(index)
        assert input_session.take_committed() == '今日'
        assert input_session.composing
        assert input_session.focused is True
        assert input_session.preedit == '葉'
        input_session.process_key('Return')
        assert input_session.take_committed() == '葉'
        assert not input_session.composing

    def test_typing_commits_selection(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('space', ' ')
        input_session.process_key('k', 'k')
        assert input_session.take_committed() == '漢字'
        assert input_session.composing
        assert input_session.preedit == 'k'

    def test_backspace_returns_to_prediction(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('space', ' ')
        input_session.process_key('BackSpace')
        assert input_session.focused is False
        assert input_session.preedit == 'かんじ'

    def test_escape_discards(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('space', ' ')
        input_session.process_key('Escape')
        assert input_session.take_committed() == ''
        assert not input_session.composing

    def test_period_commits_selection(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('space', ' ')
        input_session.process_key('period', '.')
        assert input_session.take_committed() == '漢字。'

    def test_paging(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('space', ' ')
        input_session.page_size = 2
        input_session.process_key('Right')
        assert input_session.cursor_index == 2
        assert input_session.page_start == 2
        input_session.process_key('Left')
        assert input_session.cursor_index == 0

    def test_paging_past_end_ignored(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('space', ' ')
        input_session.process_key('Right')
        assert input_session.cursor_index == 0

    def test_unknown_key_not_consumed(self, input_session):
        type_keys(input_session, 'kanji')
        input_session.process_key('space', ' ')
        assert input_session.process_key('Home') is False

    def test_no_candidates_stays_composing(self):
        core = KanaKanjiCore()
        input_session = InputSession(core, core.create_config())
        type_keys(input_session, 'ka')
        input_session.process_key('space', ' ')
        assert input_session.focused is False
        assert input_session.preedit == 'か'

    def test_segments_of_selection(self, input_session):
        """Test that a segmented conversion exposes its segments"""
        type_keys(input_session, 'kyouha')
        input_session.process_key('space', ' ')
        assert input_session.preedit == '今日葉'
        assert input_session.preedit_segments == ['今日', '葉']
        assert input_session.preedit_cursor == 3


class TestLiveConversion:
    """Test suite for showing the top conversion while composing"""

    @pytest.fixture
    def live_session(self, core):
        return InputSession(core, core.create_config(), live_conversion=True)

    def test_plain_session_shows_hiragana(self, input_session):
        type_keys(input_session, 'kanji')
        assert input_session.preedit_segments == ['かんじ']

    def test_composing_shows_top_conversion(self, live_session):
        type_keys(live_session, 'kanji')
        assert live_session.preedit == '漢字'
        assert live_session.preedit_segments == ['漢字']
        assert live_session.preedit_cursor == 2
        assert live_session.focused is False
        assert live_session.auxiliary == PREDICTION_HINT

    def test_segments_shown(self, live_session):
        type_keys(live_session, 'kyouha')
        assert live_session.preedit == '今日葉'
        assert live_session.preedit_segments == ['今日', '葉']

    def test_hiragana_without_conversion(self, live_session):
        """Test that input with no whole conversion is shown as hiragana"""
        type_keys(live_session, 'kan')
        assert live_session.preedit == 'かn'
        assert live_session.preedit_segments == ['かn']

    def test_return_commits_live_conversion(self, live_session):
        type_keys(live_session, 'kanji')
        live_session.process_key('Return')
        assert live_session.take_committed() == '漢字'
        assert live_session.preedit_segments == []

    def test_cursor_keys_show_hiragana(self, live_session):
        type_keys(live_session, 'kanji')
        live_session.process_key('Left')
        assert live_session.preedit == 'かんじ'
        assert live_session.preedit_cursor == 2

    def test_backspace_updates_conversion(self, live_session):
        type_keys(live_session, 'kyouhaa')
        assert live_session.preedit_segments[0] == '今日'
        live_session.process_key('BackSpace')
        assert live_session.preedit == '今日葉'


def test_candidate_counts_configurable(core):
    """Test that the number of requested candidates follows the session settings"""
    input_session = InputSession(core, core.create_config(), num_suggestions=1, num_candidates=2)
    type_keys(input_session, 'kanji')
    assert len(input_session.candidates) == 1
    input_session.process_key('space', ' ')
    assert [c['surface'] for c in input_session.candidates] == ['漢字', '感じ']
    assert input_session.page_size == 2
