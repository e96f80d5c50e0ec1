import json
import os
from gi.repository import GLib
import logging

import romaji

logger = logging.getLogger(__name__)

# sections of config.json whose sub-keys are merged one by one
NESTED_CONFIG_SECTIONS = ('style', 'neural_assist')

SYSTEM_DICTIONARY_FILES = ('system_dictionary.json', 'user_dictionary.json')


def get_package_name():
    '''
    returns 'ibus-kanagaki'
    '''
    return 'ibus-kanagaki'


def get_version():
    return '0.1.0'


def get_prefix():
    '''
    It is usually /usr/local/
    '''
    return '/usr/local'


def get_datadir():
    '''
    Return the path to the data directory under user-independent (central)
    location (= not under the HOME)
    '''
    try:
        # generated at installation time
        import paths
        return paths.INSTALL_ROOT
    except ImportError:
        # development tree: <repo>/data
        return os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'data'))


def get_default_config_path():
    '''
    Return the path to the default config file in the system installation.
    This is the config.json that gets copied to user's home on first run.
    '''
    return os.path.join(get_datadir(), 'config.json')


def get_localedir():
    return os.path.join(get_prefix(), 'share', 'locale')


def get_user_config_dir():
    '''
    Return the path to the config directory under $HOME.
    Typically, it would be $HOME/.config/ibus-kanagaki
    '''
    return os.path.join(GLib.get_user_config_dir(), get_package_name())


def get_homedir():
    '''
    Return the path to the $HOME directory.
    '''
    return GLib.get_home_dir()


def get_user_config_dir_relative_to_home():
    return get_user_config_dir().replace(get_homedir(), '$' + '{HOME}')


def _load_json(path):
    with open(path, encoding='utf-8') as f:
        return json.load(f)


def _compatible(section, value, default_value):
    if type(value) == type(default_value):
        return True
    if isinstance(value, bool):
        return False
    # style selectors may be given by numeric index instead of by name
    if section == 'style' and isinstance(value, int):
        return True
    return isinstance(value, (int, float)) and isinstance(default_value, (int, float))


def _append_warning(warnings, message):
    logger.warning(message)
    return warnings + ("\n" if warnings else "") + message


def get_config_data():
    '''
    Load config.json from $HOME/.config/ibus-kanagaki. When the file is not
    present (e.g., after initial installation), the default config.json is
    copied from the central location.

    Missing keys are filled from the default, and values whose type differs
    from the default are replaced by the default value. The "style" and
    "neural_assist" sections are checked key by key.

    Returns:
        tuple: (config_data, warnings_string) where warnings_string is empty if no warnings
    '''
    configfile_path = os.path.join(get_user_config_dir(), 'config.json')
    default_config_path = get_default_config_path()
    default_config = _load_json(default_config_path)
    warnings = ""

    if not os.path.exists(configfile_path):
        warnings = _append_warning(warnings, f'config.json is not found under {get_user_config_dir()} . Copying the default config.json from {default_config_path} ..')
        os.makedirs(get_user_config_dir(), exist_ok=True)
        with open(configfile_path, 'w', encoding='utf-8') as f:
            json.dump(default_config, f, ensure_ascii=False, indent=2)
        return default_config, warnings
    try:
        config_data = _load_json(configfile_path)
    except json.decoder.JSONDecodeError as e:
        logger.error(f'Error loading the config.json under {get_user_config_dir()}')
        logger.error(e)
        logger.error(f'Using (but not copying) the default config.json from {default_config_path} ..')
        return default_config, warnings

    if not isinstance(config_data, dict):
        warnings = _append_warning(warnings, f'config.json under {get_user_config_dir()} is not a JSON object. Using the default config.json')
        return default_config, warnings

    for k in default_config:
        if k not in config_data:
            warnings = _append_warning(warnings, f'The key "{k}" was not found in the config.json under {get_user_config_dir()} . Copying the default key-value')
            config_data[k] = default_config[k]
        if type(config_data[k]) != type(default_config[k]):
            warnings = _append_warning(warnings, f'Type mismatch found for the key "{k}" between config.json under {get_user_config_dir()} and default config.json. Replacing the value of this key with the value in default config.json')
            config_data[k] = default_config[k]

    for section in NESTED_CONFIG_SECTIONS:
        default_section = default_config.get(section)
        if not isinstance(default_section, dict):
            continue
        user_section = config_data[section]
        for k, default_value in default_section.items():
            if k not in user_section:
                warnings = _append_warning(warnings, f'The key "{section}.{k}" was not found in the config.json. Copying the default key-value')
                user_section[k] = default_value
            elif not _compatible(section, user_section[k], default_value):
                warnings = _append_warning(warnings, f'Type mismatch found for the key "{section}.{k}". Replacing the value with the default')
                user_section[k] = default_value

    return config_data, warnings


def save_config_data(config_data):
    '''
    Save config data to the user config directory.

    Args:
        config_data: Dictionary containing configuration data to save

    Returns:
        bool: True if save was successful, False otherwise
    '''
    configfile_path = os.path.join(get_user_config_dir(), 'config.json')

    try:
        os.makedirs(get_user_config_dir(), exist_ok=True)
        with open(configfile_path, 'w', encoding='utf-8') as f:
            json.dump(config_data, f, ensure_ascii=False, indent=2)
        logger.info(f'Configuration saved successfully to {configfile_path}')
        return True
    except (OSError, TypeError) as e:
        logger.error(f'Error saving config.json to {configfile_path}')
        logger.error(e)
        return False


def get_default_config_data():
    default_config_path = get_default_config_path()
    if not os.path.exists(default_config_path):
        logger.error(f'config.json is not found under {get_default_config_path()}. Please check that installation was done without problem!')
        return None
    return _load_json(default_config_path)


def get_layout_data(config):
    '''
    Return the romaji layout entries named by config["layout"], searched in
    the user config dir, then under the data dir "layouts". An empty name
    (or an unusable file) gives None, meaning the built-in table.
    '''
    layout_file_name = config.get('layout', '')
    if not layout_file_name:
        return None
    for candidate in (os.path.join(get_user_config_dir(), 'layouts', layout_file_name),
                      os.path.join(get_user_config_dir(), layout_file_name),
                      os.path.join(get_datadir(), 'layouts', layout_file_name)):
        if os.path.exists(candidate):
            return romaji.load_layout_file(candidate)
    logger.error(f'Layout file {layout_file_name} not found; using the built-in romaji table')
    return None


def get_dictionary_files(config=None):
    """
    Obtain the list of dictionary file paths to be used for kana-kanji conversion.

    The returned list contains, in load order:
    1. system_dictionary.json / user_dictionary.json under the user config dir
    2. every entry of config["dictionaries"]; relative paths are resolved
       against the user config dir, then the data dir

    Returns:
        list: paths that exist (empty list if no dictionaries are found)
    """
    dictionary_files = []
    config_dir = get_user_config_dir()

    for name in SYSTEM_DICTIONARY_FILES:
        path = os.path.join(config_dir, name)
        if os.path.exists(path):
            dictionary_files.append(path)
            logger.debug(f'Found dictionary: {path}')

    for entry in (config or {}).get('dictionaries', []):
        if not isinstance(entry, str) or not entry:
            logger.warning(f'Ignoring invalid dictionary entry: {entry!r}')
            continue
        entry = os.path.expanduser(entry)
        if os.path.isabs(entry):
            candidates = [entry]
        else:
            candidates = [os.path.join(config_dir, entry), os.path.join(get_datadir(), entry)]
        for path in candidates:
            if os.path.exists(path):
                if path not in dictionary_files:
                    dictionary_files.append(path)
                break
        else:
            logger.warning(f'Dictionary file not found: {entry}')

    logger.info(f'Dictionary files to use: {len(dictionary_files)} file(s)')
    return dictionary_files
