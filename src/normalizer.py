#!/usr/bin/env python3
# normalizer.py - Map a raw keystroke character to the character to commit

import logging

import diacritic
import style_config

logger = logging.getLogger(__name__)

MODE_DIRECT = 'direct'
MODE_TRANSLITERATED = 'transliterated'

CATEGORY_DIGIT = 'digit'
CATEGORY_SYMBOL = 'symbol'
CATEGORY_PERIOD = 'period'
CATEGORY_COMMA = 'comma'
CATEGORY_HYPHEN = 'hyphen'
CATEGORY_DAKUTEN = 'dakuten'
CATEGORY_HANDAKUTEN = 'handakuten'
CATEGORY_OTHER = 'other'

# katakana letters ァ..ン land on hiragana ぁ..ん; ヴ ヵ ヶ stay katakana
KATAKANA_FOLD_FIRST = 0x30A1
KATAKANA_FOLD_LAST = 0x30F3
KATAKANA_HIRAGANA_OFFSET = 0x60

FULLWIDTH_OFFSET = 0xFEE0
LONG_VOWEL_MARK = 'ー'

HALFWIDTH_SYMBOLS = '!"#$%&\'()*+/:;<=>?@[\\]^_`{|}~'
# symbols whose fullwidth form is not at the fixed offset
SYMBOL_WIDTH_EXCEPTIONS = {'¥': '￥'}

_HALF_TO_FULL = {c: chr(ord(c) + FULLWIDTH_OFFSET) for c in HALFWIDTH_SYMBOLS}
_HALF_TO_FULL.update(SYMBOL_WIDTH_EXCEPTIONS)
_FULL_TO_HALF = {full: half for half, full in _HALF_TO_FULL.items()}

PERIOD_GLYPHS = {
    style_config.PUNCTUATION_FULLWIDTH_JAPANESE: '。',
    style_config.PUNCTUATION_HALFWIDTH_JAPANESE: '｡',
    style_config.PUNCTUATION_FULLWIDTH_LATIN: '．',
    # halfwidth Latin period is the halfwidth ideographic comma
    style_config.PUNCTUATION_HALFWIDTH_LATIN: '､',
}

# halfwidth Latin shares the halfwidth ideographic comma with halfwidth Japanese
COMMA_GLYPHS = {
    style_config.PUNCTUATION_FULLWIDTH_JAPANESE: '、',
    style_config.PUNCTUATION_HALFWIDTH_JAPANESE: '､',
    style_config.PUNCTUATION_FULLWIDTH_LATIN: '，',
    style_config.PUNCTUATION_HALFWIDTH_LATIN: '､',
}

SPACE_GLYPHS = {
    style_config.WIDTH_FULLWIDTH: '　',
    style_config.WIDTH_HALFWIDTH: ' ',
}


def fold_katakana(c):
    """Fold a katakana letter to its hiragana counterpart; other chars pass."""
    cp = ord(c)
    if KATAKANA_FOLD_FIRST <= cp <= KATAKANA_FOLD_LAST:
        return chr(cp - KATAKANA_HIRAGANA_OFFSET)
    return c


def classify(c):
    """Classify a single character into one of the CATEGORY_* values."""
    if '0' <= c <= '9':
        return CATEGORY_DIGIT
    if c in _HALF_TO_FULL or c in _FULL_TO_HALF:
        return CATEGORY_SYMBOL
    if c == '.':
        return CATEGORY_PERIOD
    if c == ',':
        return CATEGORY_COMMA
    if c == '-':
        return CATEGORY_HYPHEN
    kind = diacritic.mark_kind(c)
    if kind == diacritic.DAKUTEN:
        return CATEGORY_DAKUTEN
    if kind == diacritic.HANDAKUTEN:
        return CATEGORY_HANDAKUTEN
    return CATEGORY_OTHER


def convert_symbol_width(c, to_fullwidth):
    if to_fullwidth:
        return _HALF_TO_FULL.get(c, c)
    return _FULL_TO_HALF.get(c, c)


def space_character(config):
    """The space committed outside composition for ``config``."""
    return SPACE_GLYPHS[config.space_width]


def _transform(c, category, config):
    if category == CATEGORY_DIGIT:
        if config.digit_width == style_config.WIDTH_FULLWIDTH:
            return chr(ord(c) + FULLWIDTH_OFFSET)
        return c
    elif category == CATEGORY_SYMBOL:
        return convert_symbol_width(c, config.symbol_width == style_config.WIDTH_FULLWIDTH)
    elif category == CATEGORY_PERIOD:
        return PERIOD_GLYPHS[config.period_style]
    elif category == CATEGORY_COMMA:
        return COMMA_GLYPHS[config.comma_style]
    elif category == CATEGORY_HYPHEN:
        return LONG_VOWEL_MARK
    elif category in (CATEGORY_DAKUTEN, CATEGORY_HANDAKUTEN, CATEGORY_OTHER):
        # marks are resolved by the diacritic combiner, the rest passes through
        return c
    raise ValueError(f'unhandled character category: {category}')


def normalize_input(c, mode, config, buffer=None):
    """
    Normalize a keystroke for insertion into ``buffer``.

    Args:
        c: the typed character (one code point)
        mode: MODE_DIRECT or MODE_TRANSLITERATED
        config: StyleConfiguration
        buffer: composing buffer whose tail a diacritic mark may fuse with

    Returns:
        tuple: (text, edit) where edit is diacritic.EDIT_APPEND or
               diacritic.EDIT_REPLACE (replace the tail unit with ``text``)
    """
    if mode == MODE_DIRECT:
        return c, diacritic.EDIT_APPEND

    c = fold_katakana(c)
    category = classify(c)
    if category in (CATEGORY_DAKUTEN, CATEGORY_HANDAKUTEN):
        return diacritic.combine(c, buffer, config)
    return _transform(c, category, config), diacritic.EDIT_APPEND


def normalize(c, mode, config):
    """
    Return the canonical string to commit for a keystroke.

    Pure: the result depends only on the arguments. A diacritic mark with no
    buffer to fuse into becomes the standalone glyph of the configured style.
    """
    text, _ = normalize_input(c, mode, config)
    return text
