"""
Logging configuration: debug log file plus colored console output
"""

import logging

from colorama import Fore, Style

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

LEVEL_COLORS = {
    logging.DEBUG: Style.DIM,
    logging.INFO: Fore.CYAN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.RED + Style.BRIGHT,
}


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the whole record by level"""

    def format(self, record):
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno, "")
        return f"{color}{message}{Style.RESET_ALL}"


def setup_logging(debug_log_file, verbose=False):
    """Configure the root logger (file at DEBUG, console at WARNING)"""
    file_handler = logging.FileHandler(debug_log_file, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(ColoredFormatter('%(levelname)s: %(message)s'))

    logging.basicConfig(
        level=logging.DEBUG,
        handlers=[file_handler, console_handler],
        force=True
    )
