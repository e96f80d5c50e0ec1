#!/usr/bin/env python3
# candidates.py - Build conversion requests and collect ranked candidates

import logging

import composing

logger = logging.getLogger(__name__)

# the host asks for more candidates while converting than while predicting
CONVERSION_N_BEST = 9
PREDICTION_N_BEST = 4

WARM_UP_INPUT = 'a'


def build_options(config, max_count=None, predictive_mode=None):
    """
    Derive per-request engine options from ``config``.

    ``max_count`` overrides the default n-best; a truthy ``predictive_mode``
    asks for both Japanese and English prediction. The configuration itself
    is left untouched.
    """
    options = config.convert_options()
    if max_count is not None:
        options.n_best = max_count
    if predictive_mode:
        options.require_japanese_prediction = True
        options.require_english_prediction = True
    return options


def request_candidates(buffer, config, engine, max_count=None, predictive_mode=None):
    """
    Ask ``engine`` for candidates converting the content of ``buffer``.

    Args:
        buffer: ComposingBuffer (None or empty means nothing to convert)
        config: StyleConfiguration
        engine: object with request_candidates(buffer, options) -> list
        max_count: maximum number of candidates (default: configuration n-best)
        predictive_mode: request prediction candidates

    Returns:
        list or None: candidates in engine order, None for an empty buffer.
                      An engine failure is logged and yields an empty list.
    """
    if buffer is None or buffer.is_empty():
        return None

    options = build_options(config, max_count, predictive_mode)
    try:
        result = engine.request_candidates(buffer, options)
    except Exception as e:
        logger.error(f'Conversion engine failed for "{buffer.to_hiragana()}": {e}')
        return []

    if result is None:
        return []
    candidates = list(result)
    if options.n_best is not None and options.n_best >= 0:
        candidates = candidates[:options.n_best]
    logger.debug(f'request_candidates: {len(candidates)} candidates ({options!r})')
    return candidates


def warm_up(config, engine):
    """
    Run one throwaway conversion so the first real request does not pay the
    engine's start-up cost. Only done when neural assist is enabled.

    Returns:
        bool: True if a warm-up request was issued
    """
    if not config.neural_assist.enabled:
        return False
    buffer = composing.ComposingBuffer()
    buffer.input_text(WARM_UP_INPUT, True, config)
    request_candidates(buffer, config, engine)
    logger.info('Conversion engine warmed up')
    return True


def segment_surfaces(candidate):
    """Surfaces of the segments making up ``candidate``, in input order."""
    segments = candidate.get('segments') or [(candidate['surface'], candidate.get('reading'))]
    return [surface for surface, _ in segments]


def live_segments(candidates, unit_count):
    """
    Segments of the first candidate converting all ``unit_count`` input
    units, for showing a conversion inline while the user is still typing.

    Predictions and the plain kana fallbacks never qualify.

    Returns:
        list or None: segment surfaces, None when no candidate qualifies
    """
    for candidate in candidates or []:
        if candidate.get('predicted') or candidate.get('passthrough'):
            continue
        if candidate.get('corresponding_count') != unit_count:
            continue
        return segment_surfaces(candidate)
    return None
