#!/usr/bin/env python3
"""
diacritic.py - Dakuten / handakuten combination
濁点・半濁点の結合

When the user types a voicing mark after a kana (e.g. か followed by ゛),
the mark is fused into the preceding character (が) instead of being
appended. When there is nothing to fuse with, the mark is inserted as a
standalone glyph whose shape depends on the configured diacritic style:

    style        dakuten   handakuten
    fullwidth    ゛ U+309B  ゜ U+309C   (spacing modifier letters)
    halfwidth    ﾞ U+FF9E  ﾟ U+FF9F   (halfwidth forms)
    combining    U+3099    U+309A     (zero-width combining marks)

Typing the mark twice never double-fuses: the fused kana has no further
voiced form, and a standalone mark is never treated as a base.
"""

import logging

import style_config

logger = logging.getLogger(__name__)

DAKUTEN = 'dakuten'
HANDAKUTEN = 'handakuten'

# what the combiner asks the buffer to do with its result
EDIT_APPEND = 'append'
EDIT_REPLACE = 'replace'

DAKUTEN_MARKS = frozenset('\u309b\u3099\uff9e')
HANDAKUTEN_MARKS = frozenset('\u309c\u309a\uff9f')
# a tail that is itself one of these never receives another mark
MARKED_CHARACTERS = DAKUTEN_MARKS | HANDAKUTEN_MARKS

_DAKUTEN_BASES = 'かきくけこさしすせそたちつてとはひふへほうゝカキクケコサシスセソタチツテトハヒフヘホウワヰヱヲヽ'
_DAKUTEN_FORMS = 'がぎぐげござじずぜぞだぢづでどばびぶべぼゔゞガギグゲゴザジズゼゾダヂヅデドバビブベボヴヷヸヹヺヾ'
_HANDAKUTEN_BASES = 'はひふへほハヒフヘホ'
_HANDAKUTEN_FORMS = 'ぱぴぷぺぽパピプペポ'

DAKUTEN_TABLE = dict(zip(_DAKUTEN_BASES, _DAKUTEN_FORMS))
HANDAKUTEN_TABLE = dict(zip(_HANDAKUTEN_BASES, _HANDAKUTEN_FORMS))

STANDALONE_GLYPHS = {
    DAKUTEN: {
        style_config.DIACRITIC_FULLWIDTH: '゛',
        style_config.DIACRITIC_HALFWIDTH: 'ﾞ',
        style_config.DIACRITIC_COMBINING: '\u3099',
    },
    HANDAKUTEN: {
        style_config.DIACRITIC_FULLWIDTH: '゜',
        style_config.DIACRITIC_HALFWIDTH: 'ﾟ',
        style_config.DIACRITIC_COMBINING: '\u309a',
    },
}


def mark_kind(c):
    """Return DAKUTEN, HANDAKUTEN or None for a single character."""
    if c in DAKUTEN_MARKS:
        return DAKUTEN
    if c in HANDAKUTEN_MARKS:
        return HANDAKUTEN
    return None


def is_marked(c):
    return c in MARKED_CHARACTERS


def dakuten(c):
    """Voiced form of ``c``, or ``c`` itself when there is none."""
    return DAKUTEN_TABLE.get(c, c)


def handakuten(c):
    """Semi-voiced form of ``c``, or ``c`` itself when there is none."""
    return HANDAKUTEN_TABLE.get(c, c)


def standalone_glyph(kind, config):
    return STANDALONE_GLYPHS[kind][config.diacritic_style]


def combine(mark, buffer, config):
    """
    Decide what typing ``mark`` does to ``buffer``.

    The tail is the unit just before the cursor, not the last unit of the
    buffer, so a mark typed after moving the cursor left voices the kana
    the caret sits after.

    Args:
        mark: a dakuten or handakuten mark in any of its three forms
        buffer: the composing buffer (may be None); only its tail is read
        config: StyleConfiguration, consulted for the standalone glyph style

    Returns:
        tuple: (text, edit)
            edit == EDIT_REPLACE: ``text`` is the fused character that replaces
                                  the tail unit in place (mark consumed)
            edit == EDIT_APPEND:  ``text`` is the standalone glyph to insert
    """
    kind = mark_kind(mark)
    if kind is None:
        return mark, EDIT_APPEND

    tail = buffer.tail() if buffer is not None else None
    if tail is None or is_marked(tail.character):
        return standalone_glyph(kind, config), EDIT_APPEND

    transform = dakuten if kind == DAKUTEN else handakuten
    combined = transform(tail.character)
    if combined != tail.character:
        logger.debug(f'combine: {tail.character} + {kind} -> {combined}')
        return combined, EDIT_REPLACE
    return standalone_glyph(kind, config), EDIT_APPEND
