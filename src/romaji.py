#!/usr/bin/env python3
"""
romaji.py - Romaji to kana layout processor
ローマ字かな変換プロセッサ

================================================================================
OVERVIEW / 概要
================================================================================

Transliterated keystrokes are stored in the composing buffer exactly as typed
("k", "a", ...). Whenever the buffer is rendered as kana, the keystrokes are
replayed through this processor:

変換モードの打鍵は入力されたまま（"k", "a", ...）バッファに保存される。
バッファをかなとして表示するたびに、打鍵をこのプロセッサで再生する:

    "k"  → (pending "k")
    "ka" → "か"
    "kk" → "っ" + (pending "k")
    "nk" → "ん" + (pending "k")

================================================================================
LAYOUT DATA FORMAT / レイアウトデータ形式
================================================================================

The layout is a list of entries, each being a list:
レイアウトはエントリのリスト、各エントリもリスト:

    [input_str, output_str, pending_str]

Examples / 例:
    ["k", "", "k"]       # "k" alone → pending "k"
    ["ka", "か", ""]      # "ka" → output "か", clear pending
    ["kk", "っ", "k"]     # "kk" → output "っ", keep "k" pending

A layout JSON file ({"layout": [...]}) can replace the built-in table.
レイアウトJSONファイル（{"layout": [...]}）で組み込みの表を置き換えられる。

================================================================================
DATA STRUCTURE / データ構造
================================================================================

The layout_map is organized by input length:
layout_map は入力長で整理されている:

    layout_map[0] = {"a": {...}, "k": {...}}   # length-1 entries
    layout_map[1] = {"ka": {...}, "ky": {...}} # length-2 entries
    layout_map[2] = {"kya": {...}}             # length-3 entries

================================================================================
"""

import logging
import os

import orjson

logger = logging.getLogger(__name__)

_VOWELS = 'aiueo'

# consonant prefix → kana for a, i, u, e, o (None = no such syllable)
_ROWS = {
    '': 'あいうえお',
    'k': 'かきくけこ',
    's': 'さしすせそ',
    't': 'たちつてと',
    'n': 'なにぬねの',
    'h': 'はひふへほ',
    'm': 'まみむめも',
    'r': 'らりるれろ',
    'g': 'がぎぐげご',
    'z': 'ざじずぜぞ',
    'd': 'だぢづでど',
    'b': 'ばびぶべぼ',
    'p': 'ぱぴぷぺぽ',
    'x': 'ぁぃぅぇぉ',
    'l': 'ぁぃぅぇぉ',
    'y': ['や', 'い', 'ゆ', 'いぇ', 'よ'],
    'w': ['わ', 'うぃ', 'う', 'うぇ', 'を'],
    'c': ['か', 'し', 'く', 'せ', 'こ'],
    'q': ['くぁ', 'くぃ', 'く', 'くぇ', 'くぉ'],
    'f': ['ふぁ', 'ふぃ', 'ふ', 'ふぇ', 'ふぉ'],
    'v': ['ゔぁ', 'ゔぃ', 'ゔ', 'ゔぇ', 'ゔぉ'],
    'j': ['じゃ', 'じ', 'じゅ', 'じぇ', 'じょ'],
    'sh': ['しゃ', 'し', 'しゅ', 'しぇ', 'しょ'],
    'ch': ['ちゃ', 'ち', 'ちゅ', 'ちぇ', 'ちょ'],
    'ts': ['つぁ', 'つぃ', 'つ', 'つぇ', 'つぉ'],
    'th': ['てゃ', 'てぃ', 'てゅ', 'てぇ', 'てょ'],
    'dh': ['でゃ', 'でぃ', 'でゅ', 'でぇ', 'でょ'],
    'wh': ['うぁ', 'うぃ', 'う', 'うぇ', 'うぉ'],
    'xy': ['ゃ', 'ぃ', 'ゅ', 'ぇ', 'ょ'],
    'ly': ['ゃ', 'ぃ', 'ゅ', 'ぇ', 'ょ'],
}

# consonants whose "y" row is the i-kana followed by a small ya/yu/yo
_YOON_ROWS = {
    'ky': 'き', 'sy': 'し', 'ty': 'ち', 'cy': 'ち', 'ny': 'に', 'hy': 'ひ',
    'my': 'み', 'ry': 'り', 'gy': 'ぎ', 'zy': 'じ', 'jy': 'じ', 'dy': 'ぢ',
    'by': 'び', 'py': 'ぴ', 'fy': 'ふ', 'vy': 'ゔ',
}

_EXTRA_ENTRIES = [
    ['nn', 'ん', ''],
    ["n'", 'ん', ''],
    ['xn', 'ん', ''],
    ['xtu', 'っ', ''],
    ['ltu', 'っ', ''],
    ['xtsu', 'っ', ''],
    ['ltsu', 'っ', ''],
    ['xwa', 'ゎ', ''],
    ['lwa', 'ゎ', ''],
    ['xka', 'ゕ', ''],
    ['xke', 'ゖ', ''],
    ['tsa', 'つぁ', ''],
]

_DOUBLING_CONSONANTS = 'bcdfghjkmpqrstvwxyz'
# "n" followed by these becomes ん and the key stays pending
_N_FOLLOWERS = 'bcdfghjklmpqrstvwxz'


def build_default_layout():
    """Build the built-in romaji layout as a list of [input, output, pending]."""
    table = {}
    for consonant, kana in _ROWS.items():
        for vowel, output in zip(_VOWELS, kana):
            table.setdefault(consonant + vowel, [output, ''])
    for consonant, base in _YOON_ROWS.items():
        for vowel, small in zip(_VOWELS, ['ゃ', 'ぃ', 'ゅ', 'ぇ', 'ょ']):
            table.setdefault(consonant + vowel, [base + small, ''])
    for input_str, output, pending in _EXTRA_ENTRIES:
        table[input_str] = [output, pending]
    for c in _DOUBLING_CONSONANTS:
        table[c + c] = ['っ', c]
    table['tc'] = ['っ', 'c']
    for c in _N_FOLLOWERS:
        table['n' + c] = ['ん', c]

    # every proper prefix of an input waits as pending
    for input_str in list(table):
        for i in range(1, len(input_str)):
            prefix = input_str[:i]
            if prefix not in table:
                table[prefix] = ['', prefix]

    return [[input_str, output, pending] for input_str, (output, pending) in table.items()]


def load_layout_file(path):
    """
    Load a layout JSON file ({"layout": [[input, output, pending], ...]}).

    Returns:
        list or None: layout entries, or None if the file cannot be used
    """
    if not path or not os.path.exists(path):
        logger.warning(f'Layout file not found: {path}')
        return None
    try:
        with open(path, 'rb') as f:
            data = orjson.loads(f.read())
    except orjson.JSONDecodeError as e:
        logger.error(f'Failed to parse layout JSON: {path} - {e}')
        return None
    except OSError as e:
        logger.error(f'Failed to read layout file: {path} - {e}')
        return None
    if not isinstance(data, dict) or not isinstance(data.get('layout'), list):
        logger.error(f'Invalid layout format (expected {{"layout": [...]}}): {path}')
        return None
    logger.info(f'layout JSON file loaded: {path}')
    return data['layout']


class RomajiProcessor:
    """
    Converts a sequence of romaji keystrokes into kana.
    ローマ字の打鍵列をかなに変換する

    USAGE / 使用方法
    ────────────────
    processor = RomajiProcessor(layout_data)

    # one keystroke at a time:
    output, pending = processor.get_layout_output(past_pending, char)

    # or a whole sequence:
    kana, pending = processor.convert('kyouha')
    """

    def __init__(self, layout_data=None):
        """
        Args:
            layout_data: list of [input, output, pending] entries.
                         None means the built-in romaji table.
        """
        self.layout_data = layout_data if layout_data is not None else build_default_layout()
        self.layout_map = []
        self._build_layout_map()

    def _build_layout_map(self):
        """
        Bucket the entries by input length so each lookup is a single dict
        access once the key length is known.
        入力長ごとにエントリを分け、キー長が決まれば1回の辞書参照で済むようにする。
        """
        if not self.layout_data:
            logger.warning('No layout data provided')
            return

        max_input_len = 0
        for l in self.layout_data:
            max_input_len = max(max_input_len, len(l[0]))

        self.layout_map = [{} for _ in range(max_input_len)]

        for l in self.layout_data:
            input_str = l[0]
            if len(input_str) == 0:
                logger.warning('input str len == 0 detected; skipping..')
                continue
            if len(l) < 3:
                logger.warning(f'layout entry without output/pending; skipping.. : {l}')
                continue
            self.layout_map[len(input_str) - 1][input_str] = {
                'output': str(l[1]),
                'pending': str(l[2]),
            }

    def get_layout_output(self, past_pending, input_char):
        """
        Process one keystroke and return output + new pending buffer.
        1打鍵を処理し、出力と新しい保留バッファを返す

        Keys are tried from the longest tail of ``past_pending`` + input_char
        down to input_char alone. When a shorter key matches, the unused
        prefix of past_pending is emitted as-is in front of the output.

            past_pending = "ab", input_char = "c"
            1. "abc"  2. "bc" (dropped "a")  3. "c" (dropped "ab")

        Returns:
            Tuple[str, str]: (output, pending)
        """
        if not self.layout_map:
            return past_pending + input_char, ''

        max_tail_len = min(len(past_pending), len(self.layout_map) - 1)

        for tail_len in range(max_tail_len, -1, -1):
            pending_tail = past_pending[-tail_len:] if tail_len > 0 else ''
            lookup_key = pending_tail + input_char
            dropped_prefix = past_pending[:-tail_len] if tail_len > 0 else past_pending

            entry = self.layout_map[len(lookup_key) - 1].get(lookup_key)
            if entry:
                return dropped_prefix + entry['output'], entry['pending']

        # no match at any length: everything is output as typed
        return past_pending + input_char, ''

    def convert(self, keys, pending=''):
        """
        Replay a keystroke sequence.

        Returns:
            Tuple[str, str]: (kana, pending) where ``pending`` is the romaji
            still waiting for more input (e.g. "ky" in "kyo" minus the "o")
        """
        output = []
        for c in keys:
            out, pending = self.get_layout_output(pending, c)
            output.append(out)
        return ''.join(output), pending
