"""Command line argument model shared with the package manager invocation."""

from __future__ import annotations

import enum
import sys
from dataclasses import dataclass, field

from .textutil import translate


class TargetMode(enum.IntEnum):
    """Which package sources a command may act on."""

    ANY = 0
    AUR = 1
    REPO = 2

    def at_least_aur(self):
        return self in (TargetMode.ANY, TargetMode.AUR)

    def at_least_repo(self):
        return self in (TargetMode.ANY, TargetMode.REPO)


class RebuildMode(str, enum.Enum):
    """How aggressively installed packages are rebuilt."""

    NO = "no"
    YES = "yes"
    TREE = "tree"
    ALL = "all"


class ArgumentError(Exception):
    """Raised when command line arguments cannot be parsed."""


_OPS = frozenset({
    "V", "version",
    "D", "database",
    "F", "files",
    "Q", "query",
    "R", "remove",
    "S", "sync",
    "T", "deptest",
    "U", "upgrade",
    "Y", "yay",
    "W", "web",
    "B", "build",
    "P", "show",
    "G", "getpkgbuild",
})

_GLOBALS = frozenset({
    "b", "dbpath",
    "r", "root",
    "v", "verbose",
    "arch", "cachedir", "color", "config", "debug", "gpgdir", "hookdir",
    "logfile", "noconfirm", "confirm",
})

_WITH_PARAM = frozenset({
    "dbpath", "b",
    "root", "r",
    "sysroot", "config", "ignore", "assume-installed", "overwrite", "ask",
    "cachedir", "hookdir", "logfile", "ignoregroup", "arch", "print-format",
    "gpgdir", "color",
    "aururl", "aurrpcurl", "mflags", "gpgflags", "gitflags", "builddir",
    "editor", "editorflags", "makepkg", "makepkgconf", "pacman", "git", "gpg",
    "sudo", "sudoflags", "requestsplitn", "answerclean", "answerdiff",
    "answeredit", "answerupgrade", "completioninterval", "sortby", "searchby",
})

_ARGS = _OPS | _GLOBALS | _WITH_PARAM | frozenset({
    "-", "--",
    "h", "help",
    "sysroot",
    "d", "nodeps",
    "assume-installed", "dbonly", "noprogressbar", "numberupgrades",
    "noscriptlet",
    "p", "print",
    "print-format", "asdeps", "asexplicit", "ignore", "ignoregroup", "needed",
    "overwrite",
    "f", "force",
    "c", "changelog",
    "deps",
    "e", "explicit",
    "g", "groups",
    "i", "info",
    "k", "check",
    "l", "list",
    "m", "foreign",
    "n", "native",
    "o", "owns",
    "file",
    "q", "quiet",
    "s", "search",
    "t", "unrequired",
    "u", "upgrades",
    "cascade", "nosave", "recursive", "unneeded", "clean", "sysupgrade",
    "w", "downloadonly",
    "y", "refresh",
    "x", "regex",
    "machinereadable",
    "disable-download-timeout",
    "save", "afterclean", "cleanafter", "noafterclean", "nocleanafter",
    "devel", "nodevel", "timeupdate", "notimeupdate", "topdown", "bottomup",
    "redownload", "redownloadall", "noredownload",
    "rebuild", "rebuildall", "rebuildtree", "norebuild",
    "batchinstall", "nobatchinstall",
    "noanswerclean", "noanswerdiff", "noansweredit", "noanswerupgrade",
    "nomakepkgconf", "sudoloop", "nosudoloop", "provides", "noprovides",
    "pgpfetch", "nopgpfetch", "cleanmenu", "nocleanmenu", "diffmenu",
    "nodiffmenu", "editmenu", "noeditmenu", "useask", "nouseask",
    "combinedupgrade", "nocombinedupgrade",
    "a", "aur",
    "repo", "removemake", "noremovemake", "askremovemake",
    "complete", "stats", "news", "gendb", "currentconfig", "defaultconfig",
    "singlelineresults", "doublelineresults",
    "separatesources", "noseparatesources",
})


def format_arg(arg):
    """Render an option name as '-x' or '--long'."""
    return "--" + arg if len(arg) > 1 else "-" + arg


def is_arg(arg):
    return arg in _ARGS


def is_op(op):
    return op in _OPS


def is_global(op):
    return op in _GLOBALS


def has_param(arg):
    return arg in _WITH_PARAM


@dataclass
class Option:
    """The values given for one option, and whether it is global."""

    args: list = field(default_factory=list)
    is_global: bool = False

    def add(self, *args):
        self.args.extend(args)

    def first(self):
        return self.args[0] if self.args else ""

    def set(self, arg):
        self.args = [arg]


@dataclass
class Arguments:
    """Parsed command line: one operation, options and targets."""

    op: str = ""
    options: dict = field(default_factory=dict)
    targets: list = field(default_factory=list)

    def create_or_append_option(self, option, *args):
        existing = self.options.get(option)
        if existing is None:
            self.options[option] = Option(args=list(args))
        else:
            existing.add(*args)

    def copy_global(self):
        """New arguments holding only the global options."""
        return Arguments(
            options={key: value for key, value in self.options.items() if value.is_global}
        )

    def copy(self):
        return Arguments(op=self.op, options=dict(self.options), targets=list(self.targets))

    def del_arg(self, *args):
        for option in args:
            self.options.pop(option, None)

    def need_root(self, mode):
        """Whether running these arguments requires root privileges."""
        if self.exists_arg("h", "help"):
            return False

        op = self.op
        if op in ("D", "database"):
            return not self.exists_arg("k", "check")
        if op in ("F", "files"):
            return self.exists_arg("y", "refresh")
        if op in ("Q", "query"):
            return self.exists_arg("k", "check")
        if op in ("R", "remove"):
            return not self.exists_arg("p", "print", "print-format")
        if op in ("S", "sync"):
            if self.exists_arg("y", "refresh"):
                return True
            if (
                self.exists_arg("p", "print", "print-format")
                or self.exists_arg("s", "search")
                or self.exists_arg("l", "list")
                or self.exists_arg("g", "groups")
                or self.exists_arg("i", "info")
                or (self.exists_arg("c", "clean") and mode == TargetMode.AUR)
            ):
                return False
            return True
        return op in ("U", "upgrade")

    def _add_op(self, op):
        if self.op:
            raise ArgumentError(translate("only one operation may be used at a time"))
        self.op = op

    def add_param(self, option, arg):
        """Record an option with its comma separated values."""
        if not is_arg(option):
            raise ArgumentError(translate("invalid option '%s'", option))

        if is_op(option):
            self._add_op(option)
            return

        self.create_or_append_option(option, *arg.split(","))
        if is_global(option):
            self.options[option].is_global = True

    def add_arg(self, *args):
        for option in args:
            self.add_param(option, "")

    def exists_arg(self, *args):
        return any(option in self.options for option in args)

    def get_arg(self, *args):
        """Return (first value, given twice or more, given at all) of the first present option."""
        for option in args:
            value = self.options.get(option)
            if value is not None:
                return value.first(), len(value.args) >= 2, len(value.args) >= 1
        return "", False, False

    def get_args(self, option):
        value = self.options.get(option)
        return value.args if value is not None else None

    def add_target(self, *args):
        self.targets.extend(args)

    def clear_targets(self):
        self.targets = []

    def exists_double(self, *args):
        for option in args:
            value = self.options.get(option)
            if value is not None:
                return len(value.args) >= 2
        return False

    def _format_options(self, want_global):
        formatted = []
        for option, value in self.options.items():
            if value.is_global != want_global or option == "--":
                continue
            flag = format_arg(option)
            for item in value.args:
                formatted.append(flag)
                if has_param(option):
                    formatted.append(item)
        return formatted

    def format_args(self):
        """The operation and non-global options as command line words."""
        formatted = [format_arg(self.op)] if self.op else []
        return formatted + self._format_options(False)

    def format_globals(self):
        """The global options as command line words."""
        return self._format_options(True)

    def _parse_short_option(self, arg, param):
        if arg == "-":
            self.add_arg("-")
            return False

        arg = arg[1:]
        for index, char in enumerate(arg):
            if has_param(char):
                if index < len(arg) - 1:
                    self.add_param(char, arg[index + 1:])
                    return False
                self.add_param(char, param)
                return True
            self.add_arg(char)
        return False

    def _parse_long_option(self, arg, param):
        if arg == "--":
            self.add_arg(arg)
            return False

        arg = arg[2:]
        name, sep, value = arg.partition("=")
        if sep:
            self.add_param(name, value)
            return False
        if has_param(arg):
            self.add_param(arg, param)
            return True
        self.add_arg(arg)
        return False

    def parse_stdin(self, stream):
        """Add every line of a piped stream as a target, then close it."""
        try:
            interactive = stream.isatty()
        except (ValueError, OSError) as exc:
            raise ArgumentError(str(exc)) from exc

        if interactive:
            raise ArgumentError(translate("argument '-' specified without input on stdin"))

        try:
            for line in stream:
                line = line.rstrip("\n")
                if line.endswith("\r"):
                    line = line[:-1]
                self.add_target(line)
        except (ValueError, OSError) as exc:
            raise ArgumentError(str(exc)) from exc
        finally:
            stream.close()

    def parse(self, argv=None, stdin=None):
        """Parse argv (without the program name); '-' reads targets from stdin."""
        if argv is None:
            argv = sys.argv[1:]
        if stdin is None:
            stdin = sys.stdin

        used_next = False
        for index, arg in enumerate(argv):
            if used_next:
                used_next = False
                continue

            next_arg = argv[index + 1] if index + 1 < len(argv) else ""

            if self.exists_arg("--"):
                self.add_target(arg)
            elif arg.startswith("--"):
                used_next = self._parse_long_option(arg, next_arg)
            elif arg.startswith("-"):
                used_next = self._parse_short_option(arg, next_arg)
            else:
                self.add_target(arg)

        if not self.op:
            if self.targets:
                self.op = "Y"
            else:
                self._parse_short_option("-Syu", "")

        if self.exists_arg("-"):
            reopen_tty = stdin is sys.stdin
            self.parse_stdin(stdin)
            self.del_arg("-")
            if reopen_tty:
                try:
                    sys.stdin = open("/dev/tty", encoding="utf-8")
                except OSError as exc:
                    raise ArgumentError(str(exc)) from exc