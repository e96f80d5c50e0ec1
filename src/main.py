"""
main.py - Entry point for the Kanagaki IME engine
Kanagaki IMEエンジンのエントリーポイント

    User selects Kanagaki in system settings
    ユーザーがシステム設定でKanagakiを選択
            ↓
    IBus daemon starts this script (with --ibus)
    IBusデーモンがこのスクリプトを起動（--ibus付き）
            ↓
    This script registers EngineKanagaki with IBus
    このスクリプトがEngineKanagakiをIBusに登録
            ↓
    The engine handles keyboard input until IBus disconnects
    IBusが切断されるまでエンジンがキーボード入力を処理

All user-specific data is stored in ~/.config/ibus-kanagaki/:
全てのユーザー固有データは ~/.config/ibus-kanagaki/ に保存:

    config.json          - user settings / ユーザー設定
    ibus-kanagaki.log    - log file / ログファイル
    layouts/             - optional romaji layout JSON files
    *.json, SKK files    - dictionaries listed in config.json
"""
from engine import EngineKanagaki, NAME_TO_LOGGING_LEVEL
import util

import getopt
import gettext
import os
import locale
import logging
import sys
from shutil import copyfile

import gi
gi.require_version('Gtk', '3.0')
gi.require_version('IBus', '1.0')
from gi.repository import GLib, GObject, IBus, Gtk



ENGINE_NAME = 'kanagaki'
BUS_NAME = 'org.freedesktop.IBus.Kanagaki'


class IMApp:
    """
    Connects EngineKanagaki to the IBus daemon and runs the main loop.
    EngineKanagakiをIBusデーモンに接続し、メインループを実行する。

    exec_by_ibus=True:  started by the IBus daemon; only the D-Bus name is
                        requested.
    exec_by_ibus=False: standalone (development); the component and engine
                        description are registered manually.
    """

    def __init__(self, exec_by_ibus: bool) -> None:
        if not isinstance(exec_by_ibus, bool):
            raise TypeError("The `exec_by_ibus` parameter must be a boolean value.")
        self.exec_by_ibus = exec_by_ibus

        # Initialize GTK (needed by the About dialog)
        Gtk.init(None)

        self._mainloop = GLib.MainLoop()
        self._bus = IBus.Bus()
        # http://lazka.github.io/pgi-docs/GObject-2.0/classes/Object.html#GObject.Object.connect
        self._bus.connect("disconnected", self._bus_disconnected_cb)
        self._factory = IBus.Factory(self._bus)
        self._factory.add_engine(ENGINE_NAME, GObject.type_from_name("EngineKanagaki"))
        if exec_by_ibus:
            # http://lazka.github.io/pgi-docs/IBus-1.0/classes/Bus.html#IBus.Bus.request_name
            self._bus.request_name(BUS_NAME, 0)
        else:
            self._component = IBus.Component(
                name=BUS_NAME,
                description="Kanagaki",
                version=util.get_version(),
                license="MIT",
                textdomain=util.get_package_name())
            engine = IBus.EngineDesc(
                name=ENGINE_NAME,
                longname="Kanagaki",
                description="Kanagaki Japanese input",
                language="ja",
                license="MIT",
                icon=util.get_package_name(),
                layout="default")
            self._component.add_engine(engine)
            self._bus.register_component(self._component)
            self._bus.set_global_engine_async(ENGINE_NAME, -1, None, None, None)

    def run(self):
        self._mainloop.run()

    def _bus_disconnected_cb(self, bus=None):
        self._mainloop.quit()


def print_help(v: int = 0) -> None:
    print("-i, --ibus             executed by IBus.")
    print("-h, --help             show this message.")
    print("-d, --daemonize        daemonize ibus")
    sys.exit(v)


def setup_logging(user_configdir):
    '''
    Log to ~/.config/ibus-kanagaki/ibus-kanagaki.log at the level named by
    logging_level in config.json (WARNING when unknown).
    '''
    config, warnings = util.get_config_data()
    level_name = config.get('logging_level', 'WARNING')
    level = NAME_TO_LOGGING_LEVEL.get(level_name, logging.WARNING)
    logfile_name = os.path.join(user_configdir, util.get_package_name() + '.log')
    logging.basicConfig(filename=logfile_name, level=level, format='%(asctime)s %(levelname)-8s %(message)s', datefmt='%Y-%m-%d %H:%M:%S')
    logger = logging.getLogger()
    if level_name not in NAME_TO_LOGGING_LEVEL:
        logger.warning(f'Specified logging level {level_name} is not recognized. Using the default WARNING level.')
    for warning in filter(None, warnings.split('\n')):
        logger.warning(warning)
    return logger


def main():
    os.umask(0o077)

    # Create user specific data directory
    user_configdir = util.get_user_config_dir()
    os.makedirs(user_configdir, 0o700, True)
    os.chmod(user_configdir, 0o700)

    # check the config file and copy it from installed directory if it does not exist
    configfile_name = os.path.join(user_configdir, 'config.json')
    if not os.path.exists(configfile_name):
        copyfile(util.get_default_config_path(), configfile_name)

    logger = setup_logging(user_configdir)
    logger.info(f'main.py user_configdir: {user_configdir}')
    logger.info(f'main.py util.get_datadir(): {util.get_datadir()}')

    exec_by_ibus = False
    daemonize = False

    shortopt = "ihd"
    longopt = ["ibus", "help", "daemonize"]

    try:
        opts, args = getopt.getopt(sys.argv[1:], shortopt, longopt)
    except getopt.GetoptError as err:
        logger.error(err)
        sys.exit(1)

    # getopt rather than argparse: IBus passes its own arguments
    for o, a in opts:
        if o in ("-h", "--help"):
            print_help(0)
        elif o in ("-d", "--daemonize"):
            daemonize = True
        elif o in ("-i", "--ibus"):
            exec_by_ibus = True
        else:
            sys.stderr.write("Unknown argument: %s\n" % o)
            print_help(1)
    logger.info(f'daemonize? : {daemonize}')
    logger.info(f'IBus exec? : {exec_by_ibus}')

    if daemonize:
        if os.fork():
            sys.exit()
    IMApp(exec_by_ibus).run()


if __name__ == "__main__":
    try:
        locale.bindtextdomain(util.get_package_name(), util.get_localedir())
    except AttributeError:
        # locale.bindtextdomain is missing on some platforms
        pass
    gettext.bindtextdomain(util.get_package_name(), util.get_localedir())
    main()
