"""
PVE Temperature Mod - Console Output
Colored status lines for the installer
"""

import sys


# ==================== ANSI COLORS ====================

class Color:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    RED = "\033[0;31m"
    GREEN = "\033[0;32m"
    YELLOW = "\033[0;33m"


_use_color = True


def set_color(enabled: bool):
    """Enable or disable ANSI colors for all following output"""
    global _use_color
    _use_color = enabled


def color_supported(stream=None) -> bool:
    """True when the stream is an interactive terminal"""
    stream = stream or sys.stdout
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


def colorize(text: str, color: str) -> str:
    if not _use_color:
        return text
    return f"{color}{text}{Color.RESET}"


# ==================== MESSAGE HELPERS ====================

def msg(text: str):
    print(text)


def msgb(text: str):
    """Print a message in bold"""
    print(colorize(text, Color.BOLD))


def ok(text: str):
    print(colorize(f"[OK] {text}", Color.GREEN))


def warn(text: str):
    print(colorize(f"[warning] {text}", Color.YELLOW))


def error(text: str):
    print(colorize(f"[error] {text}", Color.RED), file=sys.stderr)
