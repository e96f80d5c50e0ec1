#!/usr/bin/env python3
# converter.py - Dictionary-backed kana to kanji conversion (変換) engine

import logging
import os

import orjson

import composing

logger = logging.getLogger(__name__)

# how many surfaces a single prefix reading contributes
PREFIX_CANDIDATES_PER_READING = 3


def parse_skk_dictionary_line(line):
    """
    Parse a single line from an SKK dictionary file.

    SKK format: reading /candidate1/candidate2/.../
    Example: あやこ /亜矢子/彩子/

    Args:
        line: A single line from the SKK dictionary

    Returns:
        tuple: (reading, candidates_list) or (None, None) if line is invalid/comment
    """
    line = line.strip()
    if not line or line.startswith(';'):
        return None, None

    parts = line.split(' ', 1)
    if len(parts) != 2:
        return None, None

    reading, candidates_part = parts
    candidates_part = candidates_part.strip().strip('/')
    if not candidates_part:
        return None, None

    candidates = []
    for candidate in candidates_part.split('/'):
        # "候補;注釈" -> "候補"
        surface = candidate.split(';')[0]
        if surface:
            candidates.append(surface)

    if not candidates:
        return None, None
    return reading, candidates


def make_candidate(surface, reading, corresponding_count, segments=None, count=0, **flags):
    candidate = {
        'surface': surface,
        'segments': segments if segments is not None else [(surface, reading)],
        'reading': reading,
        'corresponding_count': corresponding_count,
        'count': count,
    }
    candidate.update(flags)
    return candidate


class DictionaryConverter:
    """
    Conversion engine answering candidate requests from reading dictionaries.

    Dictionary formats:
        JSON: {"reading": {"surface1": count1, "surface2": count2}, ...}
        SKK:  reading /surface1/surface2/   (earlier surfaces rank higher)

    When several dictionaries contain the same (reading, surface) pair the
    higher count is kept.

    Candidates are dicts with 'surface', 'segments', 'reading',
    'corresponding_count' (input units consumed) and 'count', plus
    'passthrough' for the kana fallbacks and 'predicted' for predictions.
    """

    def __init__(self, dictionary_files=None, entries=None):
        """
        Args:
            dictionary_files: paths loaded in order (.json via orjson, anything
                              else parsed as SKK text)
            entries: optional {reading: {surface: count}} merged after the files
        """
        # {reading: {surface: count}}
        self._dictionary = {}
        self._dictionary_count = 0
        self._load_dictionaries(dictionary_files or [])
        if entries:
            self.add_entries(entries)

    # ─── Loading ──────────────────────────────────────────────────────────

    def add_entry(self, reading, surface, count=1):
        surfaces = self._dictionary.setdefault(reading, {})
        if count > surfaces.get(surface, float('-inf')):
            surfaces[surface] = count

    def add_entries(self, data):
        """Merge a {reading: {surface: count}} mapping; returns entries seen."""
        added = 0
        for reading, surfaces in data.items():
            if not isinstance(surfaces, dict):
                continue
            for surface, entry in surfaces.items():
                if isinstance(entry, dict):
                    # {"POS": ..., "cost": ...}: lower cost is better
                    count = -entry.get('cost', 0)
                else:
                    count = entry if isinstance(entry, (int, float)) else 1
                self.add_entry(reading, surface, count)
                added += 1
        return added

    def _load_json(self, file_path):
        with open(file_path, 'rb') as f:
            data = orjson.loads(f.read())
        if not isinstance(data, dict):
            logger.warning(f'Invalid dictionary format (expected dict): {file_path}')
            return None
        return self.add_entries(data)

    def _load_skk(self, file_path):
        added = 0
        with open(file_path, encoding='utf-8', errors='replace') as f:
            for line in f:
                reading, surfaces = parse_skk_dictionary_line(line)
                if reading is None:
                    continue
                for rank, surface in enumerate(surfaces):
                    self.add_entry(reading, surface, len(surfaces) - rank)
                    added += 1
        return added

    def _load_dictionaries(self, dictionary_files):
        if not dictionary_files:
            logger.info('No dictionary files provided - conversion will use passthrough mode')
            return

        for file_path in dictionary_files:
            if not os.path.exists(file_path):
                logger.warning(f'Dictionary file not found: {file_path}')
                continue
            try:
                if file_path.endswith('.json'):
                    entries_added = self._load_json(file_path)
                else:
                    entries_added = self._load_skk(file_path)
            except orjson.JSONDecodeError as e:
                logger.error(f'Failed to parse dictionary JSON: {file_path} - {e}')
                continue
            except OSError as e:
                logger.error(f'Failed to load dictionary: {file_path} - {e}')
                continue
            if entries_added is None:
                continue
            self._dictionary_count += 1
            logger.info(f'Loaded dictionary: {file_path} ({entries_added} candidate entries)')

        if self._dictionary_count == 0:
            logger.warning('No dictionaries loaded - conversion will use passthrough mode')
        else:
            logger.info(f'DictionaryConverter initialized with {self._dictionary_count} dictionaries, '
                        f'{len(self._dictionary)} readings')

    def get_dictionary_stats(self):
        return {
            'dictionary_count': self._dictionary_count,
            'reading_count': len(self._dictionary),
            'candidate_count': sum(len(surfaces) for surfaces in self._dictionary.values()),
        }

    # ─── Lookup ───────────────────────────────────────────────────────────

    def lookup(self, reading):
        """(surface, count) pairs for ``reading``, highest count first."""
        surfaces = self._dictionary.get(reading)
        if not surfaces:
            return []
        return sorted(surfaces.items(), key=lambda x: x[1], reverse=True)

    def segment(self, reading):
        """
        Greedy longest-match segmentation of ``reading``.

        Returns:
            list or None: [(surface, reading), ...] using the best surface of
                          each matched stretch; unknown stretches pass through.
                          None when nothing in ``reading`` is in the dictionary.
        """
        segments = []
        unknown = ''
        matched = False
        i = 0
        while i < len(reading):
            for j in range(len(reading), i, -1):
                best = self.lookup(reading[i:j])
                if best:
                    if unknown:
                        segments.append((unknown, unknown))
                        unknown = ''
                    segments.append((best[0][0], reading[i:j]))
                    matched = True
                    i = j
                    break
            else:
                unknown += reading[i]
                i += 1
        if unknown:
            segments.append((unknown, unknown))
        return segments if matched else None

    def predict(self, prefix, ascii_only=False):
        """
        Readings that extend ``prefix``, as (surface, reading, count) sorted by
        count. Only the best surface of each reading is returned.
        """
        if not prefix:
            return []
        predictions = []
        for reading, surfaces in self._dictionary.items():
            if len(reading) <= len(prefix) or not reading.startswith(prefix):
                continue
            if ascii_only and not reading.isascii():
                continue
            surface, count = max(surfaces.items(), key=lambda x: x[1])
            predictions.append((surface, reading, count))
        predictions.sort(key=lambda x: x[2], reverse=True)
        return predictions

    # ─── Engine contract ──────────────────────────────────────────────────

    def request_candidates(self, buffer, options):
        """
        Convert the content of ``buffer``.

        Args:
            buffer: ComposingBuffer
            options: style_config.ConvertOptions

        Returns:
            list: candidate dicts, best first, at most options.n_best
        """
        target = buffer.conversion_target()
        unit_count = len(buffer)
        if options.neural is not None:
            logger.debug(f'neural assist options ignored by dictionary engine: {options.neural}')

        candidates = []
        whole = self.lookup(target)
        for surface, count in whole:
            candidates.append(make_candidate(surface, target, unit_count, count=count))
        if not whole:
            segments = self.segment(target)
            if segments and len(segments) > 1:
                surface = ''.join(s for s, _ in segments)
                candidates.append(make_candidate(surface, target, unit_count, segments=segments))

        if options.require_japanese_prediction:
            for surface, reading, count in self.predict(target):
                candidates.append(make_candidate(surface, reading, unit_count, count=count,
                                                 predicted=True))

        if options.require_english_prediction:
            alphabet = buffer.to_alphabet()
            if alphabet.isascii():
                for surface, reading, count in self.predict(alphabet.lower(), ascii_only=True):
                    candidates.append(make_candidate(surface, reading, unit_count, count=count,
                                                     predicted=True))

        # shorter conversions covering only a prefix of the input, longest first
        for boundary_count, reading in reversed(buffer.prefix_boundaries()):
            if boundary_count >= unit_count:
                continue
            for surface, count in self.lookup(reading)[:PREFIX_CANDIDATES_PER_READING]:
                candidates.append(make_candidate(surface, reading, boundary_count, count=count))

        candidates.append(make_candidate(target, target, unit_count, passthrough=True))
        candidates.append(make_candidate(composing.hiragana_to_katakana(target), target,
                                         unit_count, passthrough=True))

        result = []
        seen = set()
        for candidate in candidates:
            key = (candidate['surface'], candidate['corresponding_count'])
            if not candidate['surface'] or key in seen:
                continue
            seen.add(key)
            result.append(candidate)

        if options.n_best is not None and options.n_best >= 0:
            result = result[:options.n_best]
        logger.debug(f'DictionaryConverter("{target}") → {len(result)} candidates')
        return result
