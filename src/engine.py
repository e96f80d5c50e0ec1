import api
import converter
import romaji
import session
import settings_panel
import util

import logging

import gi
gi.require_version('IBus', '1.0')
gi.require_version('Gtk', '3.0')
from gi.repository import Gtk, IBus
# http://lazka.github.io/pgi-docs/IBus-1.0/index.html

logger = logging.getLogger(__name__)

NAME_TO_LOGGING_LEVEL = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
}

# Only the direct input- and Hiragana-mode are supported (and that's intentional).
INPUT_MODE_NAMES = ('A', 'あ')

CANDIDATE_FOREGROUND_COLOR = 0x000000
CANDIDATE_BACKGROUND_COLOR = 0xd1eaff

# keys reaching the application untouched whenever these modifiers are held
PASSTHROUGH_MODIFIERS = (IBus.ModifierType.CONTROL_MASK | IBus.ModifierType.MOD1_MASK
                         | IBus.ModifierType.SUPER_MASK)


def load_logging_level(config):
    '''
    Set the root logging level from config["logging_level"].
    When the value is not present (or incorrect), WARNING is used.
    '''
    level = config.get('logging_level', 'WARNING')
    if level not in NAME_TO_LOGGING_LEVEL:
        logger.warning(f'Specified logging level {level} is not recognized. Using the default WARNING level.')
        level = 'WARNING'
    logger.info(f'logging_level: {level}')
    logging.getLogger().setLevel(NAME_TO_LOGGING_LEVEL[level])
    return level


def segment_underlines(segments):
    '''
    (start, end, underline) for each preedit segment. Neighbouring segments
    alternate between single and double underline.
    '''
    underlines = []
    start = 0
    for i, segment in enumerate(segments):
        end = start + len(segment)
        underline = IBus.AttrUnderline.SINGLE if i % 2 == 0 else IBus.AttrUnderline.DOUBLE
        underlines.append((start, end, underline))
        start = end
    return underlines


class EngineKanagaki(IBus.Engine):
    '''
    http://lazka.github.io/pgi-docs/IBus-1.0/classes/Engine.html
    '''
    __gtype_name__ = 'EngineKanagaki'

    def __init__(self):
        super().__init__()
        self._mode = 'A'  # _mode must be one of INPUT_MODE_NAMES

        self._lookup_table = IBus.LookupTable.new(session.CONVERSION_PAGE_SIZE, 0, True, False)
        self._lookup_table.set_orientation(IBus.Orientation.VERTICAL)

        self._load_configs()

        self._init_props()
        self.set_mode(self._load_input_mode(self._config))

        self._about_dialog = None
        self._settings_panel = None

    def _load_configs(self):
        '''
        Load config.json, then (re-)build the conversion core and the session
        from it.
        '''
        self._config, warnings = util.get_config_data()
        if warnings:
            logger.info('config.json loaded with warnings')
        self._logging_level = load_logging_level(self._config)

        layout = util.get_layout_data(self._config)
        romaji_processor = romaji.RomajiProcessor(layout) if layout else None
        dictionary = converter.DictionaryConverter(util.get_dictionary_files(self._config))
        logger.info(f'dictionaries loaded: {dictionary.get_dictionary_stats()}')
        self._core = api.KanaKanjiCore(dictionary, romaji_processor)
        self._config_handle = self._core.create_config_from_dict(self._config)
        self._session = session.InputSession(
            self._core, self._config_handle,
            self._config.get('selection_keys') or session.DEFAULT_SELECTION_KEYS,
            num_suggestions=self._config.get('num_suggestions', session.PREDICTION_PAGE_SIZE),
            num_candidates=self._config.get('num_candidates', session.CONVERSION_PAGE_SIZE),
            live_conversion=bool(self._config.get('live_conversion', False)))
        logger.debug('config.json loaded')

    def _load_input_mode(self, config):
        mode = config.get('input_mode', 'A')
        if mode not in INPUT_MODE_NAMES:
            logger.warning(f'Unknown input mode {mode}; using A')
            mode = 'A'
        logger.debug(f'_load_input_mode(); mode = {mode}')
        return mode

    def _init_props(self):
        '''
        Create the menu shown by the panel (typically top-right corner).

        http://lazka.github.io/pgi-docs/IBus-1.0/classes/PropList.html
        http://lazka.github.io/pgi-docs/IBus-1.0/classes/Property.html
        '''
        self._prop_list = IBus.PropList()
        self._input_mode_prop = IBus.Property(
            key='InputMode',
            prop_type=IBus.PropType.MENU,
            symbol=IBus.Text.new_from_string(self._mode),
            label=IBus.Text.new_from_string(f"Input mode ({self._mode})"),
            icon=None,
            tooltip=None,
            sensitive=True,
            visible=True,
            state=IBus.PropState.UNCHECKED,
            sub_props=None)
        self._input_mode_prop.set_sub_props(self._init_input_mode_props())
        self._prop_list.append(self._input_mode_prop)
        prop = IBus.Property(
            key='Settings',
            prop_type=IBus.PropType.NORMAL,
            label=IBus.Text.new_from_string("Settings..."),
            icon=None,
            tooltip=None,
            sensitive=True,
            visible=True,
            state=IBus.PropState.UNCHECKED,
            sub_props=None)
        self._prop_list.append(prop)
        prop = IBus.Property(
            key='About',
            prop_type=IBus.PropType.NORMAL,
            label=IBus.Text.new_from_string("About Kanagaki..."),
            icon=None,
            tooltip=None,
            sensitive=True,
            visible=True,
            state=IBus.PropState.UNCHECKED,
            sub_props=None)
        self._prop_list.append(prop)

    def _init_input_mode_props(self):
        props = IBus.PropList()
        for key, label, mode in (('InputMode.Alphanumeric', "Alphanumeric (A)", 'A'),
                                 ('InputMode.Hiragana', "Hiragana (あ)", 'あ')):
            props.append(IBus.Property(key=key,
                                       prop_type=IBus.PropType.RADIO,
                                       label=IBus.Text.new_from_string(label),
                                       icon=None,
                                       tooltip=None,
                                       sensitive=True,
                                       visible=True,
                                       state=IBus.PropState.CHECKED if mode == self._mode else IBus.PropState.UNCHECKED,
                                       sub_props=None))
        return props

    def set_mode(self, mode):
        '''
        Switch between direct input (A) and Hiragana (あ). Any composition
        in progress is committed first.
        '''
        if self._mode == mode:
            return False
        logger.debug(f'set_mode({mode})')
        self._session.commit_preedit()
        self._sync()
        self._mode = mode
        self._update_input_mode()
        return True

    def _update_input_mode(self):
        self._input_mode_prop.set_symbol(IBus.Text.new_from_string(self._mode))
        self._input_mode_prop.set_label(IBus.Text.new_from_string(f"Input mode ({self._mode})"))
        self.update_property(self._input_mode_prop)

    def do_property_activate(self, prop_name, state):
        logger.info(f'property_activate({prop_name}, {state})')
        if prop_name == 'About':
            if self._about_dialog:
                self._about_dialog.present()
                return
            dialog = Gtk.AboutDialog()
            dialog.set_program_name("Kanagaki")
            dialog.set_logo_icon_name(util.get_package_name())
            dialog.set_default_icon_name(util.get_package_name())
            dialog.set_version(util.get_version())
            dialog.set_comments(f"config files location : {util.get_user_config_dir_relative_to_home()}")
            dialog.connect("response", self.about_response_callback)
            self._about_dialog = dialog
            dialog.show()
        elif prop_name == 'Settings':
            if self._settings_panel:
                self._settings_panel.present()
                return
            panel = settings_panel.SettingsPanel(on_saved=self.settings_saved_callback)
            panel.connect("destroy", self.settings_destroy_callback)
            self._settings_panel = panel
            panel.show_all()
        elif prop_name.startswith('InputMode.'):
            if state == IBus.PropState.CHECKED:
                mode = {
                    'InputMode.Alphanumeric': 'A',
                    'InputMode.Hiragana': 'あ',
                }.get(prop_name, 'A')
                self.set_mode(mode)

    def about_response_callback(self, dialog, response):
        dialog.destroy()
        self._about_dialog = None

    def settings_saved_callback(self, config):
        '''
        Rebuild the core and the session from the saved config.json. Any
        composition in progress is committed first.
        '''
        self._session.commit_preedit()
        self._sync()
        self._load_configs()
        self._sync()

    def settings_destroy_callback(self, panel):
        self._settings_panel = None

    # ─── Focus / surrounding text ─────────────────────────────────────────

    def do_enable(self):
        # ask the client to start reporting surrounding text
        self.get_surrounding_text()

    def do_focus_in(self):
        self.register_properties(self._prop_list)
        self._sync()
        self.get_surrounding_text()

    def do_focus_out(self):
        self._session.commit_preedit()
        self._sync()

    def do_reset(self):
        self._session.reset()
        self._sync()

    def do_set_surrounding_text(self, text, cursor_pos, anchor_pos):
        surrounding = text.get_text() if text is not None else None
        self._core.set_left_context(self._config_handle, surrounding, anchor_pos)
        IBus.Engine.do_set_surrounding_text(self, text, cursor_pos, anchor_pos)

    # ─── Keys ─────────────────────────────────────────────────────────────

    def do_process_key_event(self, keyval, keycode, state):
        if state & IBus.ModifierType.RELEASE_MASK:
            return False
        if self._mode == 'A':
            return False
        if state & PASSTHROUGH_MODIFIERS:
            return False

        keyname = IBus.keyval_name(keyval)
        char = IBus.keyval_to_unicode(keyval) or None
        shift = bool(state & IBus.ModifierType.SHIFT_MASK)
        consumed = self._session.process_key(keyname, char, shift)
        logger.debug(f'process_key_event({keyname}, {char!r}) -> {consumed}')
        self._sync()
        return consumed

    def do_candidate_clicked(self, index, button, state):
        self._session.select_candidate(self._session.page_start + index)
        self._sync()

    def do_page_up(self):
        self._session.previous_page()
        self._sync()
        return True

    def do_page_down(self):
        self._session.next_page()
        self._sync()
        return True

    def do_cursor_up(self):
        self._session.previous_candidate()
        self._sync()
        return True

    def do_cursor_down(self):
        self._session.next_candidate()
        self._sync()
        return True

    # ─── Rendering ────────────────────────────────────────────────────────

    def _sync(self):
        '''
        Push the session state to IBus: committed text first, then preedit,
        lookup table and auxiliary text.
        '''
        committed = self._session.take_committed()
        if committed:
            self.commit_text(IBus.Text.new_from_string(committed))
        self._update_preedit()
        self._update_lookup_table()
        self._update_auxiliary()

    def _update_preedit(self):
        preedit = self._session.preedit
        text = IBus.Text.new_from_string(preedit)
        if preedit:
            for start, end, underline in segment_underlines(self._session.preedit_segments):
                text.append_attribute(IBus.AttrType.UNDERLINE, underline, start, end)
            if self._session.focused:
                text.append_attribute(IBus.AttrType.FOREGROUND, CANDIDATE_FOREGROUND_COLOR, 0, len(preedit))
                text.append_attribute(IBus.AttrType.BACKGROUND, CANDIDATE_BACKGROUND_COLOR, 0, len(preedit))
        self.update_preedit_text_with_mode(text, self._session.preedit_cursor, bool(preedit),
                                           IBus.PreeditFocusMode.COMMIT)

    def _update_lookup_table(self):
        candidates = self._session.candidates
        self._lookup_table.clear()
        self._lookup_table.set_page_size(self._session.page_size)
        for candidate in candidates:
            self._lookup_table.append_candidate(IBus.Text.new_from_string(candidate['surface']))
        for i, key in enumerate(self._session.selection_keys[:self._session.page_size]):
            self._lookup_table.set_label(i, IBus.Text.new_from_string(key))
        self._lookup_table.set_cursor_visible(self._session.focused)
        if candidates:
            self._lookup_table.set_cursor_pos(self._session.cursor_index)
        self.update_lookup_table(self._lookup_table, bool(candidates))

    def _update_auxiliary(self):
        auxiliary = self._session.auxiliary
        self.update_auxiliary_text(IBus.Text.new_from_string(auxiliary), bool(auxiliary))
