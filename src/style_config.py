#!/usr/bin/env python3
# style_config.py - Display conventions and conversion options for a session

import logging

logger = logging.getLogger(__name__)

# index order of every *_STYLES tuple matches the numeric selectors stored
# by the settings file (widths are a 0/1 "fullwidth" flag)
WIDTH_FULLWIDTH = 'fullwidth'
WIDTH_HALFWIDTH = 'halfwidth'
WIDTH_STYLES = (WIDTH_HALFWIDTH, WIDTH_FULLWIDTH)

PUNCTUATION_FULLWIDTH_JAPANESE = 'fullwidth_japanese'
PUNCTUATION_HALFWIDTH_JAPANESE = 'halfwidth_japanese'
PUNCTUATION_FULLWIDTH_LATIN = 'fullwidth_latin'
PUNCTUATION_HALFWIDTH_LATIN = 'halfwidth_latin'
PUNCTUATION_STYLES = (
    PUNCTUATION_FULLWIDTH_JAPANESE,
    PUNCTUATION_HALFWIDTH_JAPANESE,
    PUNCTUATION_FULLWIDTH_LATIN,
    PUNCTUATION_HALFWIDTH_LATIN,
)

DIACRITIC_FULLWIDTH = 'fullwidth'
DIACRITIC_HALFWIDTH = 'halfwidth'
DIACRITIC_COMBINING = 'combining'
DIACRITIC_STYLES = (DIACRITIC_FULLWIDTH, DIACRITIC_HALFWIDTH, DIACRITIC_COMBINING)

DEFAULT_N_BEST = 10
DEFAULT_INFERENCE_LIMIT = 10
DEFAULT_NEURAL_WEIGHT = 1.0


def _select(value, choices, default, name):
    """Resolve a style selector given by name or by numeric index.

    Anything unrecognized falls back to ``default``.
    """
    if isinstance(value, int):
        if 0 <= value < len(choices):
            return choices[value]
    elif isinstance(value, str):
        if value in choices:
            return value
    if value is not None:
        logger.warning(f'Unknown {name} selector {value!r}; using {default}')
    return default


def _number(value, kind, default, name):
    """Coerce a numeric setting with ``kind``; bools and junk give ``default``."""
    if not isinstance(value, bool):
        try:
            return kind(value)
        except (TypeError, ValueError, OverflowError):
            pass
    logger.warning(f'Invalid {name} {value!r}; using {default}')
    return default


class NeuralAssist:
    """Optional language-model assisted conversion settings.

    Everything but ``left_context`` is fixed at creation time.
    """

    def __init__(self, enabled=False, inference_limit=DEFAULT_INFERENCE_LIMIT,
                 weight=DEFAULT_NEURAL_WEIGHT, accelerator_layers=0, profile_text=None):
        self._enabled = bool(enabled)
        self._inference_limit = _number(inference_limit, int, DEFAULT_INFERENCE_LIMIT, 'inference_limit')
        self._weight = _number(weight, float, DEFAULT_NEURAL_WEIGHT, 'weight')
        self._accelerator_layers = _number(accelerator_layers, int, 0, 'accelerator_layers')
        self._profile_text = profile_text or None
        self.left_context = None

    @property
    def enabled(self):
        return self._enabled

    @property
    def inference_limit(self):
        return self._inference_limit

    @property
    def weight(self):
        return self._weight

    @property
    def accelerator_layers(self):
        return self._accelerator_layers

    @property
    def profile_text(self):
        return self._profile_text

    def __repr__(self):
        return (f'NeuralAssist(enabled={self._enabled}, inference_limit={self._inference_limit}, '
                f'weight={self._weight}, accelerator_layers={self._accelerator_layers})')


class ConvertOptions:
    """Per-request options handed to the conversion engine."""

    def __init__(self, n_best=DEFAULT_N_BEST, require_japanese_prediction=False,
                 require_english_prediction=False, neural=None):
        self.n_best = n_best
        self.require_japanese_prediction = require_japanese_prediction
        self.require_english_prediction = require_english_prediction
        # None when neural assist is off, else a dict snapshot of its settings
        self.neural = neural

    def __repr__(self):
        return (f'ConvertOptions(n_best={self.n_best}, '
                f'japanese_prediction={self.require_japanese_prediction}, '
                f'english_prediction={self.require_english_prediction}, '
                f'neural={self.neural is not None})')


class StyleConfiguration:
    """
    Display conventions used when normalizing keystrokes.

    Created once per session. The style selectors are read-only; the only
    field that changes afterwards is the neural-assist left context, which
    the host refreshes from the surrounding text of the focused widget.

    Selectors accept the names defined in this module or the numeric index
    stored by the settings file (e.g. ``period_style=2`` is fullwidth Latin).
    Unknown values fall back to the fullwidth defaults.
    """

    def __init__(self, digit_width=WIDTH_FULLWIDTH, symbol_width=WIDTH_FULLWIDTH,
                 space_width=WIDTH_FULLWIDTH, period_style=PUNCTUATION_FULLWIDTH_JAPANESE,
                 comma_style=PUNCTUATION_FULLWIDTH_JAPANESE, diacritic_style=DIACRITIC_FULLWIDTH,
                 neural_assist=None):
        self._digit_width = _select(digit_width, WIDTH_STYLES, WIDTH_FULLWIDTH, 'digit width')
        self._symbol_width = _select(symbol_width, WIDTH_STYLES, WIDTH_FULLWIDTH, 'symbol width')
        self._space_width = _select(space_width, WIDTH_STYLES, WIDTH_FULLWIDTH, 'space width')
        self._period_style = _select(period_style, PUNCTUATION_STYLES,
                                     PUNCTUATION_FULLWIDTH_JAPANESE, 'period style')
        self._comma_style = _select(comma_style, PUNCTUATION_STYLES,
                                    PUNCTUATION_FULLWIDTH_JAPANESE, 'comma style')
        self._diacritic_style = _select(diacritic_style, DIACRITIC_STYLES,
                                        DIACRITIC_FULLWIDTH, 'diacritic style')
        self.neural_assist = neural_assist if neural_assist is not None else NeuralAssist()

    @classmethod
    def from_config(cls, config):
        """
        Build a configuration from the ``style`` and ``neural_assist``
        sections of config.json. Missing sections give the defaults.
        """
        config = config or {}
        style = config.get('style') or {}
        neural = config.get('neural_assist') or {}
        neural_assist = NeuralAssist(
            enabled=neural.get('enabled', False),
            inference_limit=neural.get('inference_limit', DEFAULT_INFERENCE_LIMIT),
            weight=neural.get('weight', DEFAULT_NEURAL_WEIGHT),
            accelerator_layers=neural.get('accelerator_layers', 0),
            profile_text=neural.get('profile_text'))
        return cls(
            digit_width=style.get('digit_width', WIDTH_FULLWIDTH),
            symbol_width=style.get('symbol_width', WIDTH_FULLWIDTH),
            space_width=style.get('space_width', WIDTH_FULLWIDTH),
            period_style=style.get('period_style', PUNCTUATION_FULLWIDTH_JAPANESE),
            comma_style=style.get('comma_style', PUNCTUATION_FULLWIDTH_JAPANESE),
            diacritic_style=style.get('diacritic_style', DIACRITIC_FULLWIDTH),
            neural_assist=neural_assist)

    @property
    def digit_width(self):
        return self._digit_width

    @property
    def symbol_width(self):
        return self._symbol_width

    @property
    def space_width(self):
        return self._space_width

    @property
    def period_style(self):
        return self._period_style

    @property
    def comma_style(self):
        return self._comma_style

    @property
    def diacritic_style(self):
        return self._diacritic_style

    def set_left_context(self, surrounding_text, anchor):
        """
        Record the text left of the caret as neural-assist context.

        The context is the reported surrounding text cut at ``anchor``; an
        anchor that is not an integer keeps the whole text.
        Does nothing when neural assist is disabled.

        Returns:
            bool: True if the context was updated
        """
        if not self.neural_assist.enabled:
            return False
        if not isinstance(surrounding_text, str):
            self.neural_assist.left_context = None
        elif isinstance(anchor, int) and not isinstance(anchor, bool):
            self.neural_assist.left_context = surrounding_text[:max(0, anchor)]
        else:
            self.neural_assist.left_context = surrounding_text
        logger.debug(f'left context updated: {self.neural_assist.left_context!r}')
        return True

    def convert_options(self, n_best=DEFAULT_N_BEST):
        """Derive fresh engine options; callers may override fields freely."""
        neural = None
        if self.neural_assist.enabled:
            neural = {
                'weight': self.neural_assist.weight,
                'inference_limit': self.neural_assist.inference_limit,
                'accelerator_layers': self.neural_assist.accelerator_layers,
                'profile_text': self.neural_assist.profile_text,
                'left_context': self.neural_assist.left_context,
            }
        return ConvertOptions(n_best=n_best, neural=neural)

    def __repr__(self):
        return (f'StyleConfiguration(digit={self._digit_width}, symbol={self._symbol_width}, '
                f'space={self._space_width}, period={self._period_style}, '
                f'comma={self._comma_style}, diacritic={self._diacritic_style}, '
                f'{self.neural_assist!r})')
