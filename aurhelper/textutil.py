"""Text helpers: translation, prompts, size and time formatting."""

import os
import sys
import unicodedata
from datetime import datetime

from . import colors
from .logger import operation_info

_Y_DEFAULT = "y"
_N_DEFAULT = "n"

_KEY_LENGTH = 32
_DELIM_COUNT = 2

_UNITS = ("", "Ki", "Mi", "Gi", "Ti", "Pi", "Ei", "Zi", "Yi")
_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_CJK_PREFIXES = (
    "CJK UNIFIED IDEOGRAPH",
    "CJK COMPATIBILITY IDEOGRAPH",
    "CJK RADICAL",
    "KANGXI RADICAL",
    "IDEOGRAPHIC",
    "HIRAGANA",
    "KATAKANA",
    "HANGUL",
)

_catalog: dict = {}
_cached_column_count = -1


def set_translations(catalog):
    """Install a msgid -> translation mapping; None clears it."""
    global _catalog
    _catalog = dict(catalog or {})


def translate(msgid, *args):
    """Translate a message and fill its printf-style placeholders."""
    text = _catalog.get(msgid, msgid)
    return text % args if args else text


def split_db_from_name(pkg):
    """Split 'db/package' into (db, package); db is empty when absent."""
    db, sep, name = pkg.partition("/")
    if sep:
        return db, name
    return "", pkg


def less_runes(first, second):
    """Case-insensitive ordering of two character sequences, ties broken by case."""
    for left, right in zip(first, second):
        lower_left, lower_right = left.lower(), right.lower()
        if lower_left != lower_right:
            return lower_left < lower_right
        if left != right:
            return left < right
    return len(first) < len(second)


def _is_latin(char):
    try:
        return unicodedata.name(char).startswith("LATIN ")
    except ValueError:
        return False


def _answer_letter(word, fallback):
    first = word[:1]
    return first if first and _is_latin(first) else fallback


def continue_task(stream, prompt, preset, no_confirm):
    """Ask a yes/no question on stream; the preset answers when nothing usable is read."""
    if no_confirm:
        return preset

    yes = translate("yes")
    no = translate("no")
    n = _answer_letter(no, _N_DEFAULT)
    y = _answer_letter(yes, _Y_DEFAULT)

    if preset:
        postfix = f" [{y.upper()}/{n}] "
    else:
        postfix = f" [{y}/{n.upper()}] "

    operation_info(colors.bold(prompt), colors.bold(postfix))

    tokens = stream.readline().split()
    if len(tokens) != 1:
        return preset

    response = tokens[0].casefold()
    return (
        response == yes.casefold()
        or response == y.casefold()
        or (_Y_DEFAULT != n.casefold() and response == _Y_DEFAULT)
    )


def _to_float32(value):
    import struct

    return struct.unpack("f", struct.pack("f", float(value)))[0]


def human(size):
    """Format a byte count with binary units, e.g. '1.5 KiB'."""
    value = _to_float32(size)
    for unit in _UNITS:
        if value < 1024:
            return f"{value:.1f} {unit}B"
        value /= 1024
    return f"{size}B"


def format_time(timestamp):
    """Format a unix timestamp as a local yyyy-mm-dd date."""
    moment = datetime.fromtimestamp(timestamp)
    return f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"


def format_time_query(timestamp):
    """Format a unix timestamp like 'Mon 02 Jan 2006 03:04:05 PM MST' in local time."""
    moment = datetime.fromtimestamp(timestamp).astimezone()
    hour12 = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return (
        f"{_DAYS[moment.weekday()]} {moment.day:02d} {_MONTHS[moment.month - 1]} "
        f"{moment.year:04d} {hour12:02d}:{moment.minute:02d}:{moment.second:02d} "
        f"{meridiem} {moment.tzname()}"
    )


def column_count():
    """Terminal width from COLUMNS or the terminal itself, else 80."""
    global _cached_column_count
    if _cached_column_count > 0:
        return _cached_column_count

    try:
        _cached_column_count = int(os.environ.get("COLUMNS", ""))
        return _cached_column_count
    except ValueError:
        pass

    try:
        _cached_column_count = os.get_terminal_size(sys.stdout.fileno()).columns
    except (OSError, ValueError, AttributeError):
        return 80
    return _cached_column_count


def _is_wide(char):
    try:
        name = unicodedata.name(char)
    except ValueError:
        return False
    return name.startswith(_CJK_PREFIXES)


def print_info_value(key, *args):
    """Print 'key: values' with values wrapped to the terminal width."""
    special = sum(1 for char in key if _is_wide(char))
    width = abs(special - _KEY_LENGTH + _DELIM_COUNT)
    head = colors.bold(key.ljust(width) + ": ")

    if not args or args == ("",):
        print(head + translate("None"))
        return

    max_cols = column_count()
    first = args[0]
    cols = _KEY_LENGTH + len(first.encode("utf-8"))
    parts = [head, first]

    for value in args[1:]:
        length = len(value.encode("utf-8"))
        if max_cols > _KEY_LENGTH and cols + length + _DELIM_COUNT >= max_cols:
            cols = _KEY_LENGTH
            parts.append("\n" + " " * _KEY_LENGTH)
        elif cols != _KEY_LENGTH:
            parts.append(" " * _DELIM_COUNT)
            cols += _DELIM_COUNT
        parts.append(value)
        cols += length

    print("".join(parts))