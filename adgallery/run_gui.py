import argparse
import logging
import os
import sys
import threading
import traceback
import warnings
from datetime import datetime

from PySide6.QtCore import qInstallMessageHandler
from PySide6.QtWidgets import QApplication, QMessageBox

from adgallery.clients.backend import BackendClient
from adgallery.widgets.gallery_window import GalleryWindow

CRASH_LOG_PATH = os.path.abspath('adgallery_crash.log')


def qt_message_handler(msg_type, msg_context, msg_string):
    """Drop Chromium/WebEngine console chatter coming from creatives."""
    if "js:" in msg_string or "QPainter" in msg_string:
        return
    print(f"[Qt] {msg_string}")


def _append_crash_log(title: str, exc_info=None):
    """Append a timestamped crash entry to the crash log."""
    ts = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    try:
        with open(CRASH_LOG_PATH, 'a', encoding='utf-8') as f:
            f.write("\n" + "=" * 80 + "\n")
            f.write(f"{ts} | {title}\n")
            f.write("=" * 80 + "\n")
            if exc_info is None:
                f.write(traceback.format_exc())
            else:
                f.writelines(traceback.format_exception(*exc_info))
            f.write("\n")
    except OSError as log_error:
        print(f"[CRASH] Failed to write crash log: {log_error}")
    print(f"[CRASH] Details written to: {CRASH_LOG_PATH}")


def install_crash_handlers():
    """Log unhandled Python and thread exceptions to the crash log."""
    def _unhandled_exception(exc_type, exc_value, exc_traceback):
        _append_crash_log("UNHANDLED EXCEPTION", (exc_type, exc_value, exc_traceback))
        sys.__excepthook__(exc_type, exc_value, exc_traceback)

    def _thread_exception(args):
        thread_name = getattr(args.thread, 'name', 'unknown')
        _append_crash_log(
            f"THREAD EXCEPTION ({thread_name})",
            (args.exc_type, args.exc_value, args.exc_traceback),
        )

    sys.excepthook = _unhandled_exception
    threading.excepthook = _thread_exception


def suppress_warnings():
    """Suppress all warnings when not in a development environment."""
    environment = os.getenv('ADGALLERY_ENVIRONMENT')
    if environment == 'development':
        print('Running in development environment.')
        return
    logging.getLogger('urllib3').setLevel(logging.ERROR)
    logging.basicConfig(level=logging.ERROR)
    warnings.simplefilter('ignore')


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Browse and share ad creative campaigns.')
    parser.add_argument('--share', metavar='TOKEN',
                        help='open the read-only view of the campaign with this share token')
    return parser.parse_args(argv)


def run_gui(argv=None):
    args = parse_args(argv)
    qInstallMessageHandler(qt_message_handler)

    app = QApplication(sys.argv[:1])
    # The application name is shown in the taskbar.
    app.setApplicationName('Ad Gallery')
    app.setApplicationDisplayName('Ad Gallery')
    app.setStyle('Fusion')

    main_window = GalleryWindow(app, BackendClient.from_settings(), share_token=args.share)
    main_window.show()
    main_window.load()
    return int(app.exec())


def main():
    suppress_warnings()
    install_crash_handlers()
    try:
        sys.exit(run_gui())
    except Exception as exception:
        _append_crash_log("TOP-LEVEL EXCEPTION", sys.exc_info())
        error_message_box = QMessageBox()
        error_message_box.setWindowTitle('Error')
        error_message_box.setIcon(QMessageBox.Icon.Critical)
        error_message_box.setText(str(exception))
        error_message_box.setDetailedText(traceback.format_exc())
        error_message_box.exec()
        sys.exit(1)


if __name__ == '__main__':
    main()
