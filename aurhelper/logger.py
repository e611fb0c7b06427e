"""Leveled console output with coloured prefixes and line input."""

import sys

from . import colors

ARROW = "==>"
SMALL_ARROW = " ->"
OP_SYMBOL = "::"

_READ_BUFFER_SIZE = 4096


class InputOverflowError(Exception):
    """Raised when an input line is longer than the read buffer."""

    def __init__(self, message: str = "input too long"):
        super().__init__(message)


def _go_str(value) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "<nil>"
    if isinstance(value, (list, tuple, set, frozenset)):
        return "[" + " ".join(_go_str(item) for item in value) + "]"
    return str(value)


def _sprint(*args) -> str:
    """Join values, with a space only between two operands that are not strings."""
    parts = []
    previous = None
    for index, value in enumerate(args):
        if index > 0 and not isinstance(value, str) and not isinstance(previous, str):
            parts.append(" ")
        parts.append(_go_str(value))
        previous = value
    return "".join(parts)


def _sprintln(*args) -> str:
    return " ".join(_go_str(value) for value in args) + "\n"


class Logger:
    """Writes formatted messages to output streams and reads answers from input.

    A stream left as None resolves to the matching sys stream at the time of use.
    """

    def __init__(self, stdout=None, stderr=None, stdin=None, debug=False, name=""):
        self.name = name
        self.debug = debug
        self._stdout = stdout
        self._stderr = stderr
        self._stdin = stdin

    @property
    def _out(self):
        return self._stdout if self._stdout is not None else sys.stdout

    @property
    def _err(self):
        return self._stderr if self._stderr is not None else sys.stderr

    @property
    def _in(self):
        return self._stdin if self._stdin is not None else sys.stdin

    def child(self, name):
        return Logger(self._stdout, self._stderr, self._stdin, self.debug, name)

    def debugln(self, *args):
        if not self.debug:
            return
        self.println(colors.bold(colors.yellow(f"[DEBUG:{self.name}]")), *args)

    def operation_infoln(self, *args):
        self.println(self.sprint_operation_info(*args))

    def operation_info(self, *args):
        self.print(self.sprint_operation_info(*args))

    def sprint_operation_info(self, *args):
        prefix = colors.bold(colors.cyan(OP_SYMBOL + " "))
        return _sprint(prefix, colors.BOLD_CODE, *args) + colors.RESET_CODE

    def info(self, *args):
        self.print(colors.bold(colors.green(ARROW + " ")), *args)

    def infoln(self, *args):
        self.println(colors.bold(colors.green(ARROW)), *args)

    def warn(self, *args):
        self.print(self.sprint_warn(*args))

    def warnln(self, *args):
        self.println(self.sprint_warn(*args))

    def sprint_warn(self, *args):
        return _sprint(colors.bold(colors.yellow(SMALL_ARROW + " ")), *args)

    def error(self, *args):
        self._err.write(self.sprint_error(*args))

    def errorln(self, *args):
        self._err.write(_sprintln(self.sprint_error(*args)))

    def sprint_error(self, *args):
        return _sprint(colors.bold(colors.red(SMALL_ARROW + " ")), *args)

    def printf(self, fmt, *args):
        self._out.write(fmt % args if args else fmt)

    def println(self, *args):
        self._out.write(_sprintln(*args))

    def print(self, *args):
        self._out.write(_sprint(*args))

    def get_input(self, default_value, no_confirm):
        """Return the default when given, otherwise one line read from input."""
        self.info()

        if default_value or no_confirm:
            self.println(default_value)
            return default_value

        line = self._in.readline()
        if not line:
            raise EOFError("no input available")

        if line.endswith("\n"):
            line = line[:-1]
            if line.endswith("\r"):
                line = line[:-1]

        if len(line.encode("utf-8")) >= _READ_BUFFER_SIZE:
            raise InputOverflowError()

        return line


GLOBAL_LOGGER = Logger(name="global")


def debugln(*args):
    GLOBAL_LOGGER.debugln(*args)


def operation_infoln(*args):
    GLOBAL_LOGGER.operation_infoln(*args)


def operation_info(*args):
    GLOBAL_LOGGER.operation_info(*args)


def sprint_operation_info(*args):
    return GLOBAL_LOGGER.sprint_operation_info(*args)


def info(*args):
    GLOBAL_LOGGER.info(*args)


def infoln(*args):
    GLOBAL_LOGGER.infoln(*args)


def sprint_warn(*args):
    return GLOBAL_LOGGER.sprint_warn(*args)


def warn(*args):
    GLOBAL_LOGGER.warn(*args)


def warnln(*args):
    GLOBAL_LOGGER.warnln(*args)


def sprint_error(*args):
    return GLOBAL_LOGGER.sprint_error(*args)


def error(*args):
    GLOBAL_LOGGER.error(*args)


def errorln(*args):
    GLOBAL_LOGGER.errorln(*args)


def get_input(default_value, no_confirm):
    return GLOBAL_LOGGER.get_input(default_value, no_confirm)