#!/usr/bin/env python3
# tests/test_candidates.py - Unit tests for candidates.py

import pytest
import os
import sys

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import candidates
from composing import ComposingBuffer
from converter import make_candidate
from style_config import StyleConfiguration, NeuralAssist


class RecordingEngine:
    """Engine double that records requests and returns a fixed list"""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.requests = []

    def request_candidates(self, buffer, options):
        self.requests.append((buffer.to_hiragana(), options))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def config():
    return StyleConfiguration()


@pytest.fixture
def buffer(config):
    buffer = ComposingBuffer()
    for c in 'kanji':
        buffer.input_text(c, False, config)
    return buffer


def surfaces(n):
    return [{'surface': f'候補{i}', 'corresponding_count': 5} for i in range(n)]


class TestBuildOptions:
    """Test suite for build_options()"""

    def test_defaults(self, config):
        options = candidates.build_options(config)
        assert options.n_best == config.convert_options().n_best
        assert options.require_japanese_prediction is False
        assert options.require_english_prediction is False

    def test_max_count(self, config):
        assert candidates.build_options(config, max_count=3).n_best == 3

    def test_predictive_mode(self, config):
        options = candidates.build_options(config, predictive_mode=True)
        assert options.require_japanese_prediction is True
        assert options.require_english_prediction is True


class TestRequestCandidates:
    """Test suite for request_candidates()"""

    def test_none_buffer(self, config):
        engine = RecordingEngine(surfaces(1))
        assert candidates.request_candidates(None, config, engine) is None
        assert engine.requests == []

    def test_empty_buffer(self, config):
        engine = RecordingEngine(surfaces(1))
        assert candidates.request_candidates(ComposingBuffer(), config, engine) is None
        assert engine.requests == []

    def test_engine_order_kept(self, config, buffer):
        result = surfaces(3)
        engine = RecordingEngine(result)
        assert candidates.request_candidates(buffer, config, engine) == result
        assert engine.requests[0][0] == 'かんじ'

    def test_truncated_to_n_best(self, config, buffer):
        engine = RecordingEngine(surfaces(20))
        result = candidates.request_candidates(buffer, config, engine,
                                               max_count=candidates.CONVERSION_N_BEST)
        assert len(result) == candidates.CONVERSION_N_BEST

    def test_prediction_request(self, config, buffer):
        engine = RecordingEngine(surfaces(2))
        candidates.request_candidates(buffer, config, engine,
                                      max_count=candidates.PREDICTION_N_BEST, predictive_mode=True)
        options = engine.requests[0][1]
        assert options.n_best == candidates.PREDICTION_N_BEST
        assert options.require_japanese_prediction is True

    def test_engine_none_result(self, config, buffer):
        assert candidates.request_candidates(buffer, config, RecordingEngine(None)) == []

    def test_engine_failure_logged(self, config, buffer, caplog):
        """Test that an engine exception gives an empty list and an error log"""
        engine = RecordingEngine(error=RuntimeError('boom'))
        assert candidates.request_candidates(buffer, config, engine) == []
        assert 'boom' in caplog.text

    def test_config_not_modified(self, config, buffer):
        """Test that a predictive request does not leak into later requests"""
        engine = RecordingEngine(surfaces(1))
        candidates.request_candidates(buffer, config, engine, predictive_mode=True)
        candidates.request_candidates(buffer, config, engine)
        assert engine.requests[1][1].require_japanese_prediction is False


class TestWarmUp:
    """Test suite for warm_up()"""

    def test_skipped_without_neural_assist(self, config):
        engine = RecordingEngine([])
        assert candidates.warm_up(config, engine) is False
        assert engine.requests == []

    def test_issues_one_request(self):
        config = StyleConfiguration(neural_assist=NeuralAssist(enabled=True))
        engine = RecordingEngine([])
        assert candidates.warm_up(config, engine) is True
        assert [hiragana for hiragana, _ in engine.requests] == [candidates.WARM_UP_INPUT]


class TestLiveSegments:
    """Test suite for segment_surfaces() and live_segments()"""

    def test_segment_surfaces(self):
        candidate = make_candidate('今日は', 'きょうは', 6,
                                   segments=[('今日', 'きょう'), ('は', 'は')])
        assert candidates.segment_surfaces(candidate) == ['今日', 'は']

    def test_segment_surfaces_without_segments(self):
        """Test that a candidate without segments is one segment"""
        assert candidates.segment_surfaces(surfaces(1)[0]) == ['候補0']

    def test_first_whole_conversion_wins(self):
        result = [
            make_candidate('漢字を', 'かんじを', 5, predicted=True),
            make_candidate('漢', 'かん', 3),
            make_candidate('感じ', 'かんじ', 5),
            make_candidate('漢字', 'かんじ', 5),
        ]
        assert candidates.live_segments(result, 5) == ['感じ']

    def test_fallbacks_do_not_qualify(self):
        """Test that only kana fallbacks gives no live conversion"""
        result = [
            make_candidate('かんじ', 'かんじ', 5, passthrough=True),
            make_candidate('カンジ', 'かんじ', 5, passthrough=True),
        ]
        assert candidates.live_segments(result, 5) is None

    def test_no_candidates(self):
        assert candidates.live_segments([], 5) is None
        assert candidates.live_segments(None, 5) is None
