#!/usr/bin/env python3
# composing.py - The composing (preedit) buffer and its kana/alphabet renderings

from collections import namedtuple
import functools
import logging

import jaconv

import diacritic
import normalizer
import romaji

logger = logging.getLogger(__name__)

InputUnit = namedtuple('InputUnit', ['character', 'mode'])

CURSOR_MARKER = '|'

# standalone voicing marks are not in jaconv's kana table
_MARKS_TO_HALFWIDTH = str.maketrans({'゛': 'ﾞ', '゜': 'ﾟ'})

HIRAGANA_FIRST = 0x3041
HIRAGANA_LAST = 0x3096
# ゝ ゞ have katakana counterparts at the same offset
HIRAGANA_ITERATION_MARKS = (0x309D, 0x309E)

SURROGATE_FIRST = 0xD800
SURROGATE_LAST = 0xDFFF


@functools.lru_cache(maxsize=1)
def default_romaji_processor():
    return romaji.RomajiProcessor()


def hiragana_to_katakana(text):
    result = []
    for c in text:
        cp = ord(c)
        if HIRAGANA_FIRST <= cp <= HIRAGANA_LAST or cp in HIRAGANA_ITERATION_MARKS:
            result.append(chr(cp + normalizer.KATAKANA_HIRAGANA_OFFSET))
        else:
            result.append(c)
    return ''.join(result)


def katakana_to_halfwidth(text):
    return jaconv.z2h(text.translate(_MARKS_TO_HALFWIDTH), kana=True, ascii=False, digit=False)


def ascii_to_fullwidth(text):
    return jaconv.h2z(text, kana=False, ascii=True, digit=True)


def cycle_case(alphabet, current_display):
    """
    Pick the next letter case of ``alphabet`` given what is shown now.

    lowercase → Capitalized → UPPERCASE → lowercase; anything else
    (e.g. the hiragana preedit) starts the cycle at lowercase.
    """
    lower = alphabet.lower()
    upper = alphabet.upper()
    capitalized = alphabet.capitalize()
    if current_display == lower:
        return capitalized
    if current_display == upper:
        return lower
    if current_display == capitalized:
        return upper
    return lower


class ComposingBuffer:
    """
    Ordered, cursor-addressed sequence of InputUnit.

    Transliterated units hold the keystroke as typed (romaji or kana) and are
    converted through the romaji layout on every render; direct units render
    literally. All edits take effect immediately. The cursor is a unit index,
    always within [0, len].
    """

    def __init__(self, romaji_processor=None):
        self._units = []
        self._cursor = 0
        self._romaji = romaji_processor if romaji_processor is not None else default_romaji_processor()

    def __len__(self):
        return len(self._units)

    def __repr__(self):
        return f'ComposingBuffer({self.to_alphabet()!r}, cursor={self._cursor})'

    @property
    def units(self):
        return tuple(self._units)

    @property
    def cursor(self):
        return self._cursor

    def is_empty(self):
        return not self._units

    def tail(self):
        """The unit just before the cursor, or None."""
        if self._cursor == 0:
            return None
        return self._units[self._cursor - 1]

    # ─── Editing ──────────────────────────────────────────────────────────

    def insert(self, unit):
        self._units.insert(self._cursor, unit)
        self._cursor += 1

    def replace_tail(self, character):
        """Swap the character of the unit before the cursor, keeping its mode."""
        tail = self.tail()
        if tail is None:
            return False
        self._units[self._cursor - 1] = InputUnit(character, tail.mode)
        return True

    def input_text(self, text, is_direct, config):
        """
        Normalize one typed character and commit it at the cursor.

        Only the first character of ``text`` is used; empty or None input and
        lone surrogates (no decodable character) are ignored.

        Returns:
            bool: True if the buffer changed
        """
        if not text:
            return False
        c = text[0]
        if SURROGATE_FIRST <= ord(c) <= SURROGATE_LAST:
            logger.debug(f'ignoring undecodable input {c!r}')
            return False
        mode = normalizer.MODE_DIRECT if is_direct else normalizer.MODE_TRANSLITERATED
        committed, edit = normalizer.normalize_input(c, mode, config, self)
        if edit == diacritic.EDIT_REPLACE:
            return self.replace_tail(committed)
        self.insert(InputUnit(committed, mode))
        return True

    def delete_backward(self, count=1):
        n = max(0, min(count, self._cursor))
        del self._units[self._cursor - n:self._cursor]
        self._cursor -= n
        return n

    def delete_forward(self, count=1):
        n = max(0, min(count, len(self._units) - self._cursor))
        del self._units[self._cursor:self._cursor + n]
        return n

    def move_cursor(self, offset):
        """Move the cursor by ``offset`` units; returns the movement applied."""
        new_cursor = max(0, min(len(self._units), self._cursor + offset))
        delta = new_cursor - self._cursor
        self._cursor = new_cursor
        return delta

    def prefix_complete(self, count):
        """Drop the first ``count`` units, which the caller has committed."""
        n = max(0, min(count, len(self._units)))
        del self._units[:n]
        self._cursor = max(0, self._cursor - n)
        return n

    def clear(self):
        self._units = []
        self._cursor = 0

    # ─── Rendering ────────────────────────────────────────────────────────

    def _render(self, units, boundaries=None):
        """
        Replay ``units`` through the romaji layout.

        Returns:
            tuple: (converted, pending) where pending is the romaji still
                   waiting for input. When ``boundaries`` is a list, every
                   unit count after which nothing is pending is appended to it
                   together with the text converted so far.
        """
        output = []
        pending = ''
        for i, unit in enumerate(units, 1):
            if unit.mode == normalizer.MODE_DIRECT:
                output.append(pending + unit.character)
                pending = ''
            else:
                out, pending = self._romaji.get_layout_output(pending, unit.character)
                output.append(out)
            if boundaries is not None and not pending:
                boundaries.append((i, ''.join(output)))
        return ''.join(output), pending

    def to_hiragana(self):
        converted, pending = self._render(self._units)
        return converted + pending

    def to_hiragana_with_cursor(self, marker=CURSOR_MARKER):
        hiragana = self.to_hiragana()
        before, pending = self._render(self._units[:self._cursor])
        offset = min(len(before + pending), len(hiragana))
        return hiragana[:offset] + marker + hiragana[offset:]

    def to_katakana(self, fullwidth=True):
        katakana = hiragana_to_katakana(self.to_hiragana())
        if fullwidth:
            return katakana
        return katakana_to_halfwidth(katakana)

    def to_alphabet(self, fullwidth=False):
        alphabet = ''.join(unit.character for unit in self._units)
        if fullwidth:
            return ascii_to_fullwidth(alphabet)
        return alphabet

    def cycle_alphabet(self, current_display, fullwidth=False):
        return cycle_case(self.to_alphabet(fullwidth), current_display)

    def conversion_target(self):
        """Hiragana handed to conversion; a dangling "n" counts as ん."""
        converted, pending = self._render(self._units)
        if pending == 'n':
            return converted + 'ん'
        return converted + pending

    def prefix_boundaries(self):
        """
        List of (unit_count, hiragana) for every prefix of the buffer that
        converts without pending romaji, shortest first.
        """
        boundaries = []
        self._render(self._units, boundaries)
        return boundaries
