#!/usr/bin/env python3
"""
session.py - Key-driven composing / candidate state machine
キー入力による入力中・候補選択の状態機械

================================================================================
STATES / 状態
================================================================================

    IDLE ──(inputable key)──► COMPOSING ──(space / Tab / Up / Down)──► SELECTING
     ▲                            │                                       │
     └──(Return / Escape / . , )──┴───────(Return / selection key)────────┘

    IDLE       no composing text; space commits the configured space
               入力なし。スペースは設定された幅の空白を確定
    COMPOSING  keys edit the composing text, prediction candidates follow
               入力中。予測候補を表示
    SELECTING  the candidate list has focus; the preedit shows the selection
               候補選択中。プリエディットは選択中の候補

With live conversion on, COMPOSING shows the first whole-input conversion
inline instead of the hiragana, split into its segments.
ライブ変換が有効な場合、入力中も最初の変換候補を文節ごとに表示する。

A candidate may cover only the beginning of the input (corresponding_count).
Committing it removes that many units and conversion continues on the rest.
候補が入力の先頭部分のみに対応する場合、その部分を確定して残りの変換を続ける。

The session only knows key names (as given by IBus.keyval_name) and the
character a key produces. engine.py translates IBus events and renders the
state exposed here (preedit, candidates, auxiliary, committed text).
================================================================================
"""

import logging

import candidates
import normalizer
import style_config

logger = logging.getLogger(__name__)

PREDICTION_PAGE_SIZE = candidates.PREDICTION_N_BEST
CONVERSION_PAGE_SIZE = candidates.CONVERSION_N_BEST
DEFAULT_SELECTION_KEYS = '123456789'
PREDICTION_HINT = '[Tabキーで選択]'

# never typed in practice; marks the caret inside the rendered preedit
CURSOR_SENTINEL = '\x00'

CONVERT_HIRAGANA = 'hiragana'
CONVERT_KATAKANA_FULLWIDTH = 'katakana_fullwidth'
CONVERT_KATAKANA_HALFWIDTH = 'katakana_halfwidth'
CONVERT_ALPHABET_FULLWIDTH = 'alphabet_fullwidth'
CONVERT_ALPHABET_HALFWIDTH = 'alphabet_halfwidth'

DIRECT_CONVERSION_KEYS = {
    'F6': CONVERT_HIRAGANA,
    'F7': CONVERT_KATAKANA_FULLWIDTH,
    'F8': CONVERT_KATAKANA_HALFWIDTH,
    'F9': CONVERT_ALPHABET_FULLWIDTH,
    'F10': CONVERT_ALPHABET_HALFWIDTH,
}

PERIOD_KEYS = ('period', 'kana_fullstop')
COMMA_KEYS = ('comma', 'kana_conjunctive')


def is_inputable(char):
    return bool(char) and len(char) == 1 and char.isprintable() and char != ' '


class InputSession:
    """
    One input context worth of composing state.

    Public state, refreshed after every process_key() call:
        preedit / preedit_cursor : text shown inline and the caret in it
        preedit_segments         : preedit split into conversion segments
        candidates               : current candidate dicts
        focused / cursor_index   : whether the candidate list is being navigated
        page_size                : candidates per page
        auxiliary                : hint or "[i/n]" position label
    Committed text accumulates until take_committed() is called.
    """

    def __init__(self, core, config, selection_keys=DEFAULT_SELECTION_KEYS,
                 num_suggestions=PREDICTION_PAGE_SIZE, num_candidates=CONVERSION_PAGE_SIZE,
                 live_conversion=False):
        """
        Args:
            core: api.KanaKanjiCore
            config: configuration handle issued by ``core``
            selection_keys: keys picking the n-th candidate of the page
            num_suggestions: prediction candidates shown while composing
            num_candidates: conversion candidates requested per conversion
            live_conversion: show the top conversion while composing
        """
        self.live_conversion = live_conversion
        self.num_suggestions = num_suggestions
        self.num_candidates = num_candidates
        self.core = core
        self.config = config
        self.selection_keys = selection_keys
        self._buffer = None
        self._committed = []
        self._reset_panel()

    def _reset_panel(self):
        self.candidates = []
        self.focused = False
        self.cursor_index = 0
        self.page_size = self.num_suggestions
        self.preedit = ''
        self.preedit_cursor = 0
        self.preedit_segments = []
        self.auxiliary = ''

    @property
    def composing(self):
        return self._buffer is not None

    @property
    def style(self):
        return self.core.get_config(self.config) or style_config.StyleConfiguration()

    @property
    def page_start(self):
        if not self.focused:
            return 0
        return self.cursor_index // self.page_size * self.page_size

    def take_committed(self):
        """Return and clear the text committed since the last call."""
        text = ''.join(self._committed)
        self._committed = []
        return text

    def _commit(self, text):
        if text:
            logger.debug(f'commit: "{text}"')
            self._committed.append(text)

    def reset(self):
        if self._buffer is not None:
            self.core.free_composing_text(self._buffer)
        self._buffer = None
        self._reset_panel()

    def commit_preedit(self):
        self._commit(self.preedit)
        self.reset()

    # ─── Key dispatch ─────────────────────────────────────────────────────

    def process_key(self, keyname, char=None, shift=False):
        """
        Handle one key press.

        Args:
            keyname: key name such as 'Return', 'space', 'F7' or 'a'
            char: the character the key produces, or None
            shift: whether Shift is held

        Returns:
            bool: True if the key was consumed
        """
        if self.focused:
            return self._candidate_key(keyname, char, shift)
        if self.composing:
            return self._composing_key(keyname, char)
        return self._idle_key(keyname, char)

    def _idle_key(self, keyname, char):
        if keyname == 'space':
            self._commit(normalizer.space_character(self.style))
            return True
        if is_inputable(char):
            self._start(char)
            return True
        return False

    def _composing_key(self, keyname, char):
        if keyname == 'Return':
            self.commit_preedit()
        elif keyname == 'BackSpace':
            self.core.delete_backward(self._buffer)
            self.show_prediction()
        elif keyname in ('Left', 'Right'):
            self.core.move_cursor(self._buffer, -1 if keyname == 'Left' else 1)
            self._show_hiragana()
        elif keyname in ('Up', 'Down', 'Tab'):
            if self.candidates:
                self.focused = True
                self.page_size = self.num_suggestions
                self.cursor_index = 0
                self._update_selection()
        elif keyname == 'space':
            self.show_conversion()
        elif keyname in DIRECT_CONVERSION_KEYS:
            self.direct_conversion(DIRECT_CONVERSION_KEYS[keyname])
        elif keyname == 'Escape':
            self.reset()
        elif keyname in PERIOD_KEYS or keyname in COMMA_KEYS:
            self._commit_with_punctuation(keyname)
        elif is_inputable(char):
            self.core.input_text(self._buffer, self.config, char, False)
            self.show_prediction()
        return True

    def _candidate_key(self, keyname, char, shift):
        if keyname == 'Right':
            self.next_page()
        elif keyname == 'Left':
            self.previous_page()
        elif keyname == 'Return':
            self.select_candidate(self.cursor_index)
        elif keyname == 'BackSpace':
            self.show_prediction()
        elif keyname in ('space', 'Tab'):
            if shift:
                self.previous_candidate()
            else:
                self.next_candidate()
        elif keyname == 'Down':
            self.next_candidate()
        elif keyname == 'Up':
            self.previous_candidate()
        elif keyname in DIRECT_CONVERSION_KEYS:
            self.direct_conversion(DIRECT_CONVERSION_KEYS[keyname])
        elif keyname in PERIOD_KEYS or keyname in COMMA_KEYS:
            self._commit_with_punctuation(keyname)
        elif keyname == 'Escape':
            self.reset()
        elif char and char in self.selection_keys:
            index = self.page_start + self.selection_keys.index(char)
            if index < len(self.candidates):
                self.select_candidate(index)
        elif is_inputable(char):
            self.commit_preedit()
            self._start(char)
        else:
            return False
        return True

    # ─── Operations ───────────────────────────────────────────────────────

    def _start(self, char):
        self._buffer = self.core.create_composing_text()
        self.core.input_text(self._buffer, self.config, char, False)
        self.show_prediction()

    def _commit_with_punctuation(self, keyname):
        mark = '.' if keyname in PERIOD_KEYS else ','
        self._commit(self.preedit)
        self._commit(normalizer.normalize(mark, normalizer.MODE_TRANSLITERATED, self.style))
        self.reset()

    def _show_hiragana(self):
        rendered = self.core.get_composing_hiragana_with_cursor(self._buffer, CURSOR_SENTINEL)
        if rendered is None:
            return
        self.preedit_cursor = rendered.index(CURSOR_SENTINEL)
        self.preedit = rendered.replace(CURSOR_SENTINEL, '')
        self.preedit_segments = [self.preedit] if self.preedit else []

    def _show_segments(self, segments):
        self.preedit_segments = list(segments)
        self.preedit = ''.join(segments)
        self.preedit_cursor = len(self.preedit)

    def show_prediction(self):
        """Leave candidate focus and show prediction candidates for the input."""
        if not self.core.get_composing_hiragana(self._buffer):
            self.reset()
            return
        self.candidates = self.core.get_candidates(
            self._buffer, self.config, predictive_mode=True, n_best=self.num_suggestions) or []
        self.focused = False
        self.cursor_index = 0
        self.page_size = self.num_suggestions
        segments = None
        if self.live_conversion:
            segments = candidates.live_segments(self.candidates, self.core.get_composing_length(self._buffer))
        if segments:
            self._show_segments(segments)
        else:
            self._show_hiragana()
        self.auxiliary = PREDICTION_HINT if self.candidates else ''

    def show_conversion(self):
        """Convert the input and give the candidate list focus."""
        if not self.composing:
            return
        self.candidates = self.core.get_candidates(
            self._buffer, self.config, predictive_mode=False, n_best=self.num_candidates) or []
        self.page_size = self.num_candidates
        self.cursor_index = 0
        if not self.candidates:
            self.focused = False
            self._show_hiragana()
            self.auxiliary = ''
            return
        self.focused = True
        self._update_selection()

    def _update_selection(self):
        self._show_segments(candidates.segment_surfaces(self.candidates[self.cursor_index]))
        self.auxiliary = f'[{self.cursor_index + 1}/{len(self.candidates)}]'

    def next_candidate(self):
        if self.candidates:
            self.cursor_index = (self.cursor_index + 1) % len(self.candidates)
            self._update_selection()

    def previous_candidate(self):
        if self.candidates:
            self.cursor_index = (self.cursor_index - 1) % len(self.candidates)
            self._update_selection()

    def next_page(self):
        start = self.page_start + self.page_size
        if start < len(self.candidates):
            self.cursor_index = start
            self._update_selection()

    def previous_page(self):
        if self.page_start > 0:
            self.cursor_index = self.page_start - self.page_size
            self._update_selection()

    def select_candidate(self, index):
        """
        Commit candidate ``index``. When it covers only a prefix of the input
        the rest stays composing and is converted again.
        """
        if not 0 <= index < len(self.candidates):
            return False
        candidate = self.candidates[index]
        self._commit(candidate['surface'])
        self.core.complete_prefix(self._buffer, candidate['corresponding_count'])
        if self.core.get_composing_hiragana(self._buffer):
            self.show_conversion()
        else:
            self.reset()
        return True

    def direct_conversion(self, mode):
        """Show the input as plain kana or alphabet (F6..F10)."""
        if mode == CONVERT_HIRAGANA:
            converted = self.core.get_composing_hiragana(self._buffer)
        elif mode == CONVERT_KATAKANA_FULLWIDTH:
            converted = self.core.get_composing_katakana_fullwidth(self._buffer)
        elif mode == CONVERT_KATAKANA_HALFWIDTH:
            converted = self.core.get_composing_katakana_halfwidth(self._buffer)
        elif mode == CONVERT_ALPHABET_FULLWIDTH:
            converted = self.core.get_composing_alphabet_fullwidth(self._buffer, self.preedit)
        elif mode == CONVERT_ALPHABET_HALFWIDTH:
            converted = self.core.get_composing_alphabet_halfwidth(self._buffer, self.preedit)
        else:
            logger.warning(f'Unknown direct conversion mode: {mode}')
            return
        if converted is None:
            return
        self.candidates = []
        self.focused = False
        self.cursor_index = 0
        self.preedit = converted
        self.preedit_cursor = len(converted)
        self.preedit_segments = [converted] if converted else []
        self.auxiliary = ''
