#!/usr/bin/env python3
# tests/test_normalizer.py - Unit tests for normalizer.py

import pytest
import os
import sys

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import normalizer
from normalizer import MODE_DIRECT, MODE_TRANSLITERATED, normalize
from style_config import StyleConfiguration


@pytest.fixture
def fullwidth():
    return StyleConfiguration()


@pytest.fixture
def halfwidth():
    return StyleConfiguration(digit_width='halfwidth', symbol_width='halfwidth',
                              space_width='halfwidth', period_style='halfwidth_japanese',
                              comma_style='halfwidth_japanese', diacritic_style='halfwidth')


class TestClassify:
    """Test suite for classify()"""

    @pytest.mark.parametrize('c,category', [
        ('0', normalizer.CATEGORY_DIGIT),
        ('9', normalizer.CATEGORY_DIGIT),
        ('!', normalizer.CATEGORY_SYMBOL),
        ('？', normalizer.CATEGORY_SYMBOL),
        ('¥', normalizer.CATEGORY_SYMBOL),
        ('.', normalizer.CATEGORY_PERIOD),
        (',', normalizer.CATEGORY_COMMA),
        ('-', normalizer.CATEGORY_HYPHEN),
        ('゛', normalizer.CATEGORY_DAKUTEN),
        ('\u3099', normalizer.CATEGORY_DAKUTEN),
        ('ﾞ', normalizer.CATEGORY_DAKUTEN),
        ('゜', normalizer.CATEGORY_HANDAKUTEN),
        ('ﾟ', normalizer.CATEGORY_HANDAKUTEN),
        ('a', normalizer.CATEGORY_OTHER),
        ('あ', normalizer.CATEGORY_OTHER),
    ])
    def test_categories(self, c, category):
        assert normalizer.classify(c) == category

    def test_fullwidth_digit_is_not_a_digit(self):
        """Test that only ASCII digits are in the digit category"""
        assert normalizer.classify('１') == normalizer.CATEGORY_OTHER


class TestKatakanaFold:
    """Test suite for katakana to hiragana folding"""

    def test_fold_letters(self):
        """Test that katakana letters fold to hiragana by 0x60"""
        assert normalizer.fold_katakana('ア') == 'あ'
        assert normalizer.fold_katakana('ァ') == 'ぁ'
        assert normalizer.fold_katakana('ン') == 'ん'

    def test_extended_letters_not_folded(self):
        """Test that ヴ, ヵ and ヶ stay katakana"""
        for c in 'ヴヵヶ':
            assert normalizer.fold_katakana(c) == c

    def test_fold_offset(self):
        """Test the fold for every letter of the folded range"""
        for cp in range(normalizer.KATAKANA_FOLD_FIRST, normalizer.KATAKANA_FOLD_LAST + 1):
            assert ord(normalizer.fold_katakana(chr(cp))) == cp - 0x60

    def test_middle_dot_and_long_vowel_untouched(self):
        """Test that ・ and ー are not folded"""
        assert normalizer.fold_katakana('・') == '・'
        assert normalizer.fold_katakana('ー') == 'ー'

    def test_transliterated_folds(self, fullwidth):
        assert normalize('カ', MODE_TRANSLITERATED, fullwidth) == 'か'

    def test_direct_does_not_fold(self, fullwidth):
        assert normalize('カ', MODE_DIRECT, fullwidth) == 'カ'


class TestNormalize:
    """Test suite for normalize()"""

    def test_digit_fullwidth(self, fullwidth):
        """Test that fullwidth digits are the digit plus 0xFEE0"""
        for c in '0123456789':
            assert normalize(c, MODE_TRANSLITERATED, fullwidth) == chr(ord(c) + 0xFEE0)

    def test_digit_halfwidth(self, halfwidth):
        for c in '0123456789':
            assert normalize(c, MODE_TRANSLITERATED, halfwidth) == c

    def test_symbol_to_fullwidth(self, fullwidth):
        assert normalize('!', MODE_TRANSLITERATED, fullwidth) == '！'
        assert normalize('~', MODE_TRANSLITERATED, fullwidth) == '\uff5e'
        assert normalize('¥', MODE_TRANSLITERATED, fullwidth) == '￥'

    def test_symbol_to_halfwidth(self, halfwidth):
        assert normalize('！', MODE_TRANSLITERATED, halfwidth) == '!'
        assert normalize('!', MODE_TRANSLITERATED, halfwidth) == '!'
        assert normalize('￥', MODE_TRANSLITERATED, halfwidth) == '¥'

    @pytest.mark.parametrize('style,period,comma', [
        ('fullwidth_japanese', '。', '、'),
        ('halfwidth_japanese', '｡', '､'),
        ('fullwidth_latin', '．', '，'),
        ('halfwidth_latin', '､', '､'),
    ])
    def test_punctuation_styles(self, style, period, comma):
        config = StyleConfiguration(period_style=style, comma_style=style)
        assert normalize('.', MODE_TRANSLITERATED, config) == period
        assert normalize(',', MODE_TRANSLITERATED, config) == comma

    def test_halfwidth_comma_shared(self):
        """Test that halfwidth Latin and halfwidth Japanese commas are identical"""
        latin = StyleConfiguration(comma_style='halfwidth_latin')
        japanese = StyleConfiguration(comma_style='halfwidth_japanese')
        assert normalize(',', MODE_TRANSLITERATED, latin) == normalize(',', MODE_TRANSLITERATED, japanese)

    def test_unknown_punctuation_index_falls_back(self):
        config = StyleConfiguration(period_style=42)
        assert normalize('.', MODE_TRANSLITERATED, config) == '。'

    def test_hyphen_always_long_vowel(self, fullwidth, halfwidth):
        """Test that - gives ー regardless of style"""
        for config in (fullwidth, halfwidth, StyleConfiguration(period_style='halfwidth_latin')):
            assert normalize('-', MODE_TRANSLITERATED, config) == 'ー'

    def test_other_passthrough(self, fullwidth):
        assert normalize('a', MODE_TRANSLITERATED, fullwidth) == 'a'
        assert normalize('漢', MODE_TRANSLITERATED, fullwidth) == '漢'

    def test_direct_mode_unchanged(self, fullwidth):
        """Test that direct mode commits the character as typed"""
        for c in '1!.,-゛':
            assert normalize(c, MODE_DIRECT, fullwidth) == c

    @pytest.mark.parametrize('style,dakuten,handakuten', [
        ('fullwidth', '゛', '゜'),
        ('halfwidth', 'ﾞ', 'ﾟ'),
        ('combining', '\u3099', '\u309a'),
    ])
    def test_standalone_mark_style(self, style, dakuten, handakuten):
        """Test that a mark without a buffer becomes the styled glyph"""
        config = StyleConfiguration(diacritic_style=style)
        assert normalize('゛', MODE_TRANSLITERATED, config) == dakuten
        assert normalize('ﾟ', MODE_TRANSLITERATED, config) == handakuten

    def test_deterministic(self, fullwidth):
        """Test that repeated calls give identical results"""
        for c in 'a1!.,-゛カ':
            first = normalize(c, MODE_TRANSLITERATED, fullwidth)
            assert all(normalize(c, MODE_TRANSLITERATED, fullwidth) == first for _ in range(3))


class TestSpaceCharacter:
    """Test suite for space_character()"""

    def test_fullwidth(self, fullwidth):
        assert normalizer.space_character(fullwidth) == '　'

    def test_halfwidth(self, halfwidth):
        assert normalizer.space_character(halfwidth) == ' '


def test_transform_rejects_unknown_category(fullwidth):
    with pytest.raises(ValueError):
        normalizer._transform('a', 'bogus', fullwidth)
