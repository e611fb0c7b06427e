"""Warnings about installed AUR packages: orphaned, out of date, missing or newer locally."""

from __future__ import annotations

from .colors import cyan
from .logger import GLOBAL_LOGGER
from .textutil import translate
from .version_diff import get_version_diff, is_devel_package, vercmp


def _split_debug(names):
    normal = [name for name in names if not name.endswith("-debug")]
    debug = [name for name in names if name.endswith("-debug")]
    return normal, debug


def _format_names(names):
    return " " + cyan("  ".join(names))


class AURWarnings:
    """Collects warnings while comparing installed packages with AUR data.

    Installed packages expose name, base, version and should_ignore().
    """

    def __init__(self, logger=None):
        self.orphans = []
        self.out_of_date = []
        self.missing = []
        self.local_newer = []
        self.ignore = set()
        self.log = logger if logger is not None else GLOBAL_LOGGER

    def add_to_warnings(self, remote, aur_pkg):
        """Record warnings for aur_pkg if it is installed (present in remote)."""
        name = aur_pkg.name
        pkg = remote.get(name)
        if pkg is None:
            return

        ignored = pkg.should_ignore()

        if not aur_pkg.maintainer and not ignored:
            self.orphans.append(name)

        if aur_pkg.out_of_date and not ignored:
            self.out_of_date.append(name)

        if not ignored and not is_devel_package(pkg) and vercmp(pkg.version, aur_pkg.version) > 0:
            left, right = get_version_diff(pkg.version, aur_pkg.version)
            self.local_newer.append(
                translate("%s: local (%s) is newer than AUR (%s)", cyan(name), left, right)
            )

    def calculate_missing(self, remote_names, remote, aur_data):
        """Record installed packages the AUR does not know, unless ignored."""
        for name in remote_names:
            if name not in aur_data and not remote[name].should_ignore():
                self.missing.append(name)

    def print(self):
        """Write the collected warnings to the logger."""
        normal_missing, debug_missing = _split_debug(self.missing)

        if normal_missing:
            self.log.warnln(translate("Packages not in AUR:"), _format_names(normal_missing))
        if debug_missing:
            self.log.warnln(translate("Missing AUR Debug Packages:"), _format_names(debug_missing))
        if self.orphans:
            self.log.warnln(translate("Orphan (unmaintained) AUR Packages:"),
                            _format_names(self.orphans))
        if self.out_of_date:
            self.log.warnln(translate("Flagged Out Of Date AUR Packages:"),
                            _format_names(self.out_of_date))
        for message in self.local_newer:
            self.log.warnln(message)