#!/usr/bin/env python3
# settings_panel.py - GUI Settings Panel for ibus-kanagaki

import gi
gi.require_version('Gtk', '3.0')
gi.require_version('Gdk', '3.0')
from gi.repository import Gtk, Gdk, GLib
import copy
import os
import logging
logger = logging.getLogger(__name__)

import style_config
import util


# (style key, label, [(id, display label), ...])
STYLE_ROWS = (
    ('digit_width', "Numbers:", (
        (style_config.WIDTH_FULLWIDTH, "Fullwidth (１２３)"),
        (style_config.WIDTH_HALFWIDTH, "Halfwidth (123)"))),
    ('symbol_width', "Symbols:", (
        (style_config.WIDTH_FULLWIDTH, "Fullwidth (！＃＠)"),
        (style_config.WIDTH_HALFWIDTH, "Halfwidth (!#@)"))),
    ('space_width', "Space:", (
        (style_config.WIDTH_FULLWIDTH, "Fullwidth (\"　\")"),
        (style_config.WIDTH_HALFWIDTH, "Halfwidth (\" \")"))),
    ('period_style', "Period:", (
        (style_config.PUNCTUATION_FULLWIDTH_JAPANESE, "。"),
        (style_config.PUNCTUATION_HALFWIDTH_JAPANESE, "｡"),
        (style_config.PUNCTUATION_FULLWIDTH_LATIN, "．"),
        (style_config.PUNCTUATION_HALFWIDTH_LATIN, "､"))),
    ('comma_style', "Comma:", (
        (style_config.PUNCTUATION_FULLWIDTH_JAPANESE, "、"),
        (style_config.PUNCTUATION_HALFWIDTH_JAPANESE, "､"),
        (style_config.PUNCTUATION_FULLWIDTH_LATIN, "，"),
        (style_config.PUNCTUATION_HALFWIDTH_LATIN, "､"))),
    ('diacritic_style', "Standalone ゛゜:", (
        (style_config.DIACRITIC_FULLWIDTH, "Fullwidth (゛゜)"),
        (style_config.DIACRITIC_HALFWIDTH, "Halfwidth (ﾞﾟ)"),
        (style_config.DIACRITIC_COMBINING, "Combining"))),
)

BUILTIN_LAYOUT_LABEL = "Built-in romaji"


def current_styles(config):
    """
    The style selector names in effect for ``config``.

    Numeric selectors and unknown values are resolved the same way the
    engine resolves them.
    """
    styles = style_config.StyleConfiguration.from_config(config)
    return {key: getattr(styles, key) for key, _, _ in STYLE_ROWS}


def parse_dictionaries(text):
    """One dictionary path per line; blank lines are dropped."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def list_layouts():
    """
    Layout file names found under the user config dir and the data dir.

    Returns:
        list: (file name, display label) sorted by file name
    """
    user_layouts_dir = os.path.join(util.get_user_config_dir(), 'layouts')
    system_layouts_dir = os.path.join(util.get_datadir(), 'layouts')

    user_files = set()
    system_files = set()
    if os.path.isdir(user_layouts_dir):
        user_files = {f for f in os.listdir(user_layouts_dir) if f.endswith('.json')}
    if os.path.isdir(system_layouts_dir):
        system_files = {f for f in os.listdir(system_layouts_dir) if f.endswith('.json')}

    layouts = []
    for filename in sorted(user_files | system_files):
        if filename in user_files:
            # the user copy is the one loaded
            layouts.append((filename, f"{filename} (User)"))
        else:
            layouts.append((filename, f"{filename} (System)"))
    return layouts


def collect_config(config, values):
    """
    Merge the values read from the panel into a copy of ``config``.

    Keys the panel does not edit are kept as they are.

    Args:
        config: the loaded config.json content
        values: dict with 'style', 'neural_assist', 'layout', 'dictionaries'
                and 'live_conversion' as read from the widgets

    Returns:
        dict: the config to save
    """
    result = copy.deepcopy(config) if config else {}
    style = dict(result.get('style') or {})
    style.update(values.get('style', {}))
    result['style'] = style
    neural = dict(result.get('neural_assist') or {})
    neural.update(values.get('neural_assist', {}))
    result['neural_assist'] = neural
    for key in ('layout', 'dictionaries', 'live_conversion'):
        if key in values:
            result[key] = values[key]
    return result


def default_config():
    """A fresh copy of the packaged config.json, or None if it is missing."""
    data = util.get_default_config_data()
    if data is None:
        return None
    return copy.deepcopy(data)


class SettingsPanel(Gtk.Window):
    """
    GUI Settings Panel for ibus-kanagaki configuration.

    Features:
    - Character width and punctuation styles
    - Live conversion and neural assist
    - Romaji layout and dictionary files
    - Reset to the packaged defaults

    ``on_saved`` is called with the saved config after a successful save.
    """
    def __init__(self, on_saved=None):
        super().__init__(title="Kanagaki Settings")

        self.set_default_size(560, 480)
        self.set_border_width(10)
        self.on_saved = on_saved

        self.config, warnings = util.get_config_data()

        self.create_ui()
        self.load_settings_to_ui(self.config)

        if warnings:
            GLib.idle_add(self.show_config_warnings, warnings)

        # Connect Esc key to close window
        self.connect("key-press-event", self.on_key_press)

    def on_key_press(self, widget, event):
        if event.keyval == Gdk.KEY_Escape:
            self.destroy()
            return True
        return False

    def show_config_warnings(self, warnings):
        """Display configuration warnings in a dialog"""
        self.show_message(Gtk.MessageType.WARNING, "Configuration Warnings", warnings)
        return False  # Don't call again

    def show_message(self, message_type, title, text):
        dialog = Gtk.MessageDialog(
            transient_for=self,
            flags=0,
            message_type=message_type,
            buttons=Gtk.ButtonsType.OK,
            text=title
        )
        dialog.format_secondary_text(text)
        dialog.run()
        dialog.destroy()

    def create_ui(self):
        """Create the user interface"""
        main_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=10)
        self.add(main_box)

        notebook = Gtk.Notebook()
        main_box.pack_start(notebook, True, True, 0)

        notebook.append_page(self.create_style_tab(), Gtk.Label(label="Style"))
        notebook.append_page(self.create_conversion_tab(), Gtk.Label(label="Conversion"))
        notebook.append_page(self.create_dictionaries_tab(), Gtk.Label(label="Dictionaries"))

        button_box = Gtk.Box(spacing=6)
        main_box.pack_start(button_box, False, False, 0)

        reset_button = Gtk.Button(label="Reset to Defaults")
        reset_button.connect("clicked", self.on_reset_clicked)
        button_box.pack_start(reset_button, False, False, 0)

        save_button = Gtk.Button(label="Save Settings")
        save_button.connect("clicked", self.on_save_clicked)
        button_box.pack_end(save_button, False, False, 0)

        close_button = Gtk.Button(label="Close")
        close_button.connect("clicked", lambda x: self.destroy())
        button_box.pack_end(close_button, False, False, 0)

    def create_style_tab(self):
        box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=10)
        box.set_border_width(10)

        frame = Gtk.Frame(label="Character Styles")
        grid = Gtk.Grid(column_spacing=12, row_spacing=6)
        grid.set_border_width(10)
        frame.add(grid)

        self.style_combos = {}
        for row, (key, label, choices) in enumerate(STYLE_ROWS):
            grid.attach(Gtk.Label(label=label, xalign=0), 0, row, 1, 1)
            combo = Gtk.ComboBoxText()
            for choice_id, choice_label in choices:
                combo.append(choice_id, choice_label)
            grid.attach(combo, 1, row, 1, 1)
            self.style_combos[key] = combo

        box.pack_start(frame, False, False, 0)
        return box

    def create_conversion_tab(self):
        box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=10)
        box.set_border_width(10)

        preedit_frame = Gtk.Frame(label="Preedit")
        preedit_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=6)
        preedit_box.set_border_width(10)
        preedit_frame.add(preedit_box)
        self.live_conversion_check = Gtk.CheckButton(
            label="Live conversion (show the top conversion while typing)")
        preedit_box.pack_start(self.live_conversion_check, False, False, 0)
        box.pack_start(preedit_frame, False, False, 0)

        neural_frame = Gtk.Frame(label="Neural Assist")
        neural_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=6)
        neural_box.set_border_width(10)
        neural_frame.add(neural_box)

        self.neural_enabled_check = Gtk.CheckButton(label="Enable neural assisted conversion")
        self.neural_enabled_check.connect("toggled", self.on_neural_enabled_toggled)
        neural_box.pack_start(self.neural_enabled_check, False, False, 0)

        grid = Gtk.Grid(column_spacing=12, row_spacing=6)
        neural_box.pack_start(grid, False, False, 0)

        grid.attach(Gtk.Label(label="Inference limit:", xalign=0), 0, 0, 1, 1)
        self.inference_limit_spin = Gtk.SpinButton()
        self.inference_limit_spin.set_range(1, 100)
        self.inference_limit_spin.set_increments(1, 10)
        grid.attach(self.inference_limit_spin, 1, 0, 1, 1)

        grid.attach(Gtk.Label(label="Weight:", xalign=0), 0, 1, 1, 1)
        self.weight_spin = Gtk.SpinButton(digits=2)
        self.weight_spin.set_range(0.0, 10.0)
        self.weight_spin.set_increments(0.1, 1.0)
        grid.attach(self.weight_spin, 1, 1, 1, 1)

        grid.attach(Gtk.Label(label="Accelerator layers:", xalign=0), 0, 2, 1, 1)
        self.accelerator_layers_spin = Gtk.SpinButton()
        self.accelerator_layers_spin.set_range(0, 255)
        self.accelerator_layers_spin.set_increments(1, 10)
        grid.attach(self.accelerator_layers_spin, 1, 2, 1, 1)

        grid.attach(Gtk.Label(label="Profile:", xalign=0), 0, 3, 1, 1)
        self.profile_entry = Gtk.Entry()
        self.profile_entry.set_placeholder_text("e.g., 私の名前は…")
        grid.attach(self.profile_entry, 1, 3, 1, 1)

        self.neural_grid = grid
        box.pack_start(neural_frame, False, False, 0)
        return box

    def create_dictionaries_tab(self):
        box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=10)
        box.set_border_width(10)

        layout_frame = Gtk.Frame(label="Layout")
        layout_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=6)
        layout_box.set_border_width(10)
        layout_frame.add(layout_box)
        self.layout_combo = Gtk.ComboBoxText()
        # populated in load_settings_to_ui()
        layout_box.pack_start(Gtk.Label(label="Romaji Layout:", xalign=0), False, False, 0)
        layout_box.pack_start(self.layout_combo, False, False, 0)
        box.pack_start(layout_frame, False, False, 0)

        dict_frame = Gtk.Frame(label="Dictionaries")
        dict_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=6)
        dict_box.set_border_width(10)
        dict_frame.add(dict_box)

        info_label = Gtk.Label()
        info_label.set_markup(
            "<small>One file per line (JSON or SKK). Relative paths are looked up in\n"
            f"<b>{util.get_user_config_dir_relative_to_home()}</b>, then in the package data.</small>"
        )
        info_label.set_xalign(0)
        dict_box.pack_start(info_label, False, False, 0)

        scroll = Gtk.ScrolledWindow()
        scroll.set_min_content_height(150)
        self.dictionaries_view = Gtk.TextView()
        scroll.add(self.dictionaries_view)
        dict_box.pack_start(scroll, True, True, 0)

        add_button = Gtk.Button(label="Add Dictionary...")
        add_button.connect("clicked", self.on_add_dictionary)
        dict_box.pack_start(add_button, False, False, 0)

        box.pack_start(dict_frame, True, True, 0)
        return box

    def load_settings_to_ui(self, config):
        """Load ``config`` into the widgets"""
        for key, value in current_styles(config).items():
            self.style_combos[key].set_active_id(value)

        self.live_conversion_check.set_active(bool(config.get('live_conversion', False)))

        neural = style_config.StyleConfiguration.from_config(config).neural_assist
        self.neural_enabled_check.set_active(neural.enabled)
        self.inference_limit_spin.set_value(neural.inference_limit)
        self.weight_spin.set_value(neural.weight)
        self.accelerator_layers_spin.set_value(neural.accelerator_layers)
        self.profile_entry.set_text(neural.profile_text or '')
        self.neural_grid.set_sensitive(neural.enabled)

        self.layout_combo.remove_all()
        self.layout_combo.append('', BUILTIN_LAYOUT_LABEL)
        for filename, label in list_layouts():
            self.layout_combo.append(filename, label)
        layout = config.get('layout', '')
        if not isinstance(layout, str) or not self.layout_combo.set_active_id(layout):
            self.layout_combo.set_active_id('')

        dictionaries = config.get('dictionaries') or []
        self.dictionaries_view.get_buffer().set_text(
            '\n'.join(d for d in dictionaries if isinstance(d, str)))

    def read_settings_from_ui(self):
        """Collect the widget values in the shape collect_config() expects"""
        text_buffer = self.dictionaries_view.get_buffer()
        text = text_buffer.get_text(text_buffer.get_start_iter(), text_buffer.get_end_iter(), False)
        return {
            'style': {key: combo.get_active_id() for key, combo in self.style_combos.items()
                      if combo.get_active_id()},
            'live_conversion': self.live_conversion_check.get_active(),
            'neural_assist': {
                'enabled': self.neural_enabled_check.get_active(),
                'inference_limit': self.inference_limit_spin.get_value_as_int(),
                'weight': self.weight_spin.get_value(),
                'accelerator_layers': self.accelerator_layers_spin.get_value_as_int(),
                'profile_text': self.profile_entry.get_text(),
            },
            'layout': self.layout_combo.get_active_id() or '',
            'dictionaries': parse_dictionaries(text),
        }

    def on_neural_enabled_toggled(self, checkbox):
        self.neural_grid.set_sensitive(checkbox.get_active())

    def on_add_dictionary(self, button):
        dialog = Gtk.FileChooserDialog(
            title="Select Dictionary File",
            parent=self,
            action=Gtk.FileChooserAction.OPEN
        )
        dialog.add_buttons(
            Gtk.STOCK_CANCEL, Gtk.ResponseType.CANCEL,
            Gtk.STOCK_OPEN, Gtk.ResponseType.OK
        )
        response = dialog.run()
        if response == Gtk.ResponseType.OK:
            text_buffer = self.dictionaries_view.get_buffer()
            end = text_buffer.get_end_iter()
            prefix = '\n' if text_buffer.get_char_count() else ''
            text_buffer.insert(end, prefix + dialog.get_filename())
        dialog.destroy()

    def on_reset_clicked(self, button):
        """Show the packaged defaults; nothing is written until Save"""
        dialog = Gtk.MessageDialog(
            transient_for=self,
            flags=0,
            message_type=Gtk.MessageType.QUESTION,
            buttons=Gtk.ButtonsType.YES_NO,
            text="Reset Configuration"
        )
        dialog.format_secondary_text("Resetting will discard any unsaved changes. Continue?")
        response = dialog.run()
        dialog.destroy()
        if response != Gtk.ResponseType.YES:
            return

        defaults = default_config()
        if defaults is None:
            self.show_message(Gtk.MessageType.ERROR, "Reset Failed",
                              "The default config.json could not be loaded. Check logs for details.")
            return
        self.config = defaults
        self.load_settings_to_ui(self.config)
        logger.info('Settings panel reset to the default configuration')

    def on_save_clicked(self, button):
        """Collect all UI values and save them to config.json"""
        config = collect_config(self.config, self.read_settings_from_ui())
        if not util.save_config_data(config):
            self.show_message(Gtk.MessageType.ERROR, "Save Failed",
                              "Error saving configuration. Check logs for details.")
            return
        self.config = config
        if self.on_saved is not None:
            self.on_saved(config)
        self.show_message(Gtk.MessageType.INFO, "Settings Saved",
                          "Configuration saved successfully!")


def main():
    """Run settings panel standalone"""
    win = SettingsPanel()
    win.connect("destroy", Gtk.main_quit)
    win.show_all()
    Gtk.main()


if __name__ == "__main__":
    main()
