"""ANSI colouring helpers for terminal output."""

RED_CODE = "\x1b[31m"
GREEN_CODE = "\x1b[32m"
YELLOW_CODE = "\x1b[33m"
BLUE_CODE = "\x1b[34m"
MAGENTA_CODE = "\x1b[35m"
CYAN_CODE = "\x1b[36m"
BOLD_CODE = "\x1b[1m"
RESET_CODE = "\x1b[0m"

_UINT_MASK = (1 << 64) - 1

# Whether the helpers in this module emit escape sequences.
use_color = True


def _stylize(start_code: str, text: str) -> str:
    if use_color:
        return f"{start_code}{text}{RESET_CODE}"
    return text


def red(text: str) -> str:
    return _stylize(RED_CODE, text)


def green(text: str) -> str:
    return _stylize(GREEN_CODE, text)


def yellow(text: str) -> str:
    return _stylize(YELLOW_CODE, text)


def cyan(text: str) -> str:
    return _stylize(CYAN_CODE, text)


def magenta(text: str) -> str:
    return _stylize(MAGENTA_CODE, text)


def blue(text: str) -> str:
    return _stylize(BLUE_CODE, text)


def bold(text: str) -> str:
    return _stylize(BOLD_CODE, text)


def color_hash(name: str) -> str:
    """Colour text by a hash of it, so equal names always get the same colour."""
    if not use_color:
        return name

    value = 5381
    for byte in name.encode("utf-8"):
        value = (byte + (value << 5) + value) & _UINT_MASK

    return f"\x1b[{value % 6 + 31}m{name}{RESET_CODE}"