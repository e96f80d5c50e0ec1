#!/usr/bin/env python3
"""
api.py - Handle-based boundary of the input core
入力コアのハンドルベース境界

Callers never hold StyleConfiguration or ComposingBuffer objects directly.
They receive opaque handles from the create_* operations and pass them back
to every other operation. An absent, released or foreign handle never raises:
the operation does nothing and returns its neutral value (None, 0 or False).

    core = KanaKanjiCore(converter.DictionaryConverter(files))
    config = core.create_config(period_style='fullwidth_latin')
    buffer = core.create_composing_text()
    for c in 'kanji':
        core.input_text(buffer, config, c, is_direct=False)
    core.get_composing_hiragana(buffer)      # 'かんじ'
    core.get_candidates(buffer, config)      # [{'surface': '漢字', ...}, ...]

Returned strings and candidate lists are plain Python objects that the core
does not keep; dropping them is all the release they need.
"""

import logging

import candidates
import composing
import handles
import style_config

logger = logging.getLogger(__name__)


class KanaKanjiCore:
    """Ownership registry for configurations and composing buffers."""

    def __init__(self, engine=None, romaji_processor=None):
        """
        Args:
            engine: conversion engine (request_candidates(buffer, options)).
                    Without one, get_candidates returns an empty list for
                    non-empty buffers.
            romaji_processor: layout used by new composing texts (default:
                              the built-in romaji table)
        """
        self.engine = engine
        self.romaji_processor = romaji_processor
        self._configs = handles.HandleRegistry('config')
        self._buffers = handles.HandleRegistry('composing text')
        self._default_config = style_config.StyleConfiguration()

    # ─── Configuration ────────────────────────────────────────────────────

    def create_config(self, digit_width=style_config.WIDTH_FULLWIDTH,
                      symbol_width=style_config.WIDTH_FULLWIDTH,
                      space_width=style_config.WIDTH_FULLWIDTH,
                      period_style=style_config.PUNCTUATION_FULLWIDTH_JAPANESE,
                      comma_style=style_config.PUNCTUATION_FULLWIDTH_JAPANESE,
                      diacritic_style=style_config.DIACRITIC_FULLWIDTH,
                      neural_assist_enabled=False,
                      inference_limit=style_config.DEFAULT_INFERENCE_LIMIT,
                      weight=style_config.DEFAULT_NEURAL_WEIGHT,
                      accelerator_layers=0,
                      profile_text=None):
        """
        Create a style configuration and return its handle.

        Style selectors take the names from style_config or their numeric
        index. With neural assist enabled the engine is warmed up once.
        """
        neural_assist = style_config.NeuralAssist(
            enabled=neural_assist_enabled,
            inference_limit=inference_limit,
            weight=weight,
            accelerator_layers=accelerator_layers,
            profile_text=profile_text)
        config = style_config.StyleConfiguration(
            digit_width=digit_width,
            symbol_width=symbol_width,
            space_width=space_width,
            period_style=period_style,
            comma_style=comma_style,
            diacritic_style=diacritic_style,
            neural_assist=neural_assist)
        return self._register_config(config)

    def create_config_from_dict(self, config_data):
        """Create a configuration from config.json content."""
        return self._register_config(style_config.StyleConfiguration.from_config(config_data))

    def _register_config(self, config):
        if self.engine is not None:
            candidates.warm_up(config, self.engine)
        logger.debug(f'config created: {config!r}')
        return self._configs.add(config)

    def free_config(self, config):
        return self._configs.remove(config)

    def get_config(self, config):
        """The StyleConfiguration behind a handle, or None."""
        return self._configs.get(config)

    def set_left_context(self, config, surrounding_text, anchor_index):
        """
        Feed host surrounding text into neural-assist context.

        Returns:
            bool: True if the context was updated
        """
        style = self._configs.get(config)
        if style is None:
            return False
        return style.set_left_context(surrounding_text, anchor_index)

    # ─── Composing text ───────────────────────────────────────────────────

    def create_composing_text(self):
        return self._buffers.add(composing.ComposingBuffer(self.romaji_processor))

    def free_composing_text(self, buffer):
        return self._buffers.remove(buffer)

    def input_text(self, buffer, config, text, is_direct=False):
        """
        Insert one character. An absent configuration uses the default
        (all fullwidth) configuration; absent or empty text does nothing.

        Returns:
            bool: True if the buffer changed
        """
        composing_text = self._buffers.get(buffer)
        if composing_text is None or not isinstance(text, str):
            return False
        style = self._configs.get(config) or self._default_config
        return composing_text.input_text(text, bool(is_direct), style)

    def delete_backward(self, buffer, count=1):
        composing_text = self._buffers.get(buffer)
        if composing_text is None:
            return 0
        return composing_text.delete_backward(count)

    def delete_forward(self, buffer, count=1):
        composing_text = self._buffers.get(buffer)
        if composing_text is None:
            return 0
        return composing_text.delete_forward(count)

    def move_cursor(self, buffer, offset):
        """Returns the movement actually applied (0 for an invalid handle)."""
        composing_text = self._buffers.get(buffer)
        if composing_text is None:
            return 0
        return composing_text.move_cursor(offset)

    def complete_prefix(self, buffer, count):
        composing_text = self._buffers.get(buffer)
        if composing_text is None:
            return 0
        return composing_text.prefix_complete(count)

    def get_composing_length(self, buffer):
        """Number of input units in the buffer (0 for an invalid handle)."""
        composing_text = self._buffers.get(buffer)
        if composing_text is None:
            return 0
        return len(composing_text)

    # ─── Renders ──────────────────────────────────────────────────────────

    def get_composing_hiragana(self, buffer):
        composing_text = self._buffers.get(buffer)
        if composing_text is None:
            return None
        return composing_text.to_hiragana()

    def get_composing_hiragana_with_cursor(self, buffer, marker=composing.CURSOR_MARKER):
        composing_text = self._buffers.get(buffer)
        if composing_text is None:
            return None
        return composing_text.to_hiragana_with_cursor(marker)

    def get_composing_katakana_fullwidth(self, buffer):
        composing_text = self._buffers.get(buffer)
        if composing_text is None:
            return None
        return composing_text.to_katakana(fullwidth=True)

    def get_composing_katakana_halfwidth(self, buffer):
        composing_text = self._buffers.get(buffer)
        if composing_text is None:
            return None
        return composing_text.to_katakana(fullwidth=False)

    def get_composing_alphabet_fullwidth(self, buffer, current_preedit):
        return self._alphabet(buffer, current_preedit, True)

    def get_composing_alphabet_halfwidth(self, buffer, current_preedit):
        return self._alphabet(buffer, current_preedit, False)

    def _alphabet(self, buffer, current_preedit, fullwidth):
        composing_text = self._buffers.get(buffer)
        if composing_text is None or current_preedit is None:
            return None
        return composing_text.cycle_alphabet(current_preedit, fullwidth)

    # ─── Candidates ───────────────────────────────────────────────────────

    def get_candidates(self, buffer, config, predictive_mode=None, n_best=None):
        """
        Returns:
            list or None: ordered candidates (possibly empty), None when the
                          buffer is empty or its handle is invalid
        """
        composing_text = self._buffers.get(buffer)
        if composing_text is None or composing_text.is_empty():
            return None
        if self.engine is None:
            logger.warning('get_candidates called without a conversion engine')
            return []
        style = self._configs.get(config) or self._default_config
        return candidates.request_candidates(composing_text, style, self.engine,
                                             max_count=n_best, predictive_mode=predictive_mode)
