"""Recording stand-ins for the command builder and runner."""

from __future__ import annotations

from dataclasses import dataclass, field

from .exe import Command


@dataclass
class Call:
    """One recorded call: its results, arguments and working directory."""

    res: list = field(default_factory=list)
    args: list = field(default_factory=list)
    dir: str | None = ""

    def __str__(self):
        return "[" + " ".join(str(arg) for arg in self.args) + "]"


@dataclass
class MockRunner:
    """Records commands instead of running them; optional functions supply outcomes."""

    show_calls: list = field(default_factory=list)
    capture_calls: list = field(default_factory=list)
    show_fn: object = None
    capture_fn: object = None

    def show(self, cmd):
        """Record cmd; show_fn may raise to simulate a failure, which is re-raised."""
        failure = None
        if self.show_fn is not None:
            try:
                self.show_fn(cmd)
            except Exception as exc:  # noqa: BLE001 - the simulated failure is replayed
                failure = exc

        self.show_calls.append(Call(args=[cmd], dir=cmd.cwd))

        if failure is not None:
            raise failure

    def capture(self, cmd):
        self.capture_calls.append(Call(args=[cmd], dir=cmd.cwd))
        if self.capture_fn is not None:
            return self.capture_fn(cmd)
        return "", ""


@dataclass
class MockBuilder:
    """A command builder that returns plain commands and records makepkg builds."""

    runner: object = None
    build_makepkg_cmd_calls: list = field(default_factory=list)
    build_makepkg_cmd_fn: object = None
    build_pacman_cmd_fn: object = None

    def build_makepkg_cmd(self, directory, *args):
        if self.build_makepkg_cmd_fn is not None:
            res = self.build_makepkg_cmd_fn(directory, *args)
        else:
            res = Command(["makepkg", *args])

        self.build_makepkg_cmd_calls.append(Call(res=[res], args=[directory, list(args)]))
        return res

    def add_makepkg_flag(self, flag):
        """Flags are ignored by the mock."""

    def build_git_cmd(self, directory, *args):
        return Command(["git", *args])

    def build_pacman_cmd(self, args, mode, no_confirm):
        if self.build_pacman_cmd_fn is not None:
            return self.build_pacman_cmd_fn(args, mode, no_confirm)
        return Command(["pacman"])

    def set_pacman_db_path(self, db_path):
        """The database path is ignored by the mock."""

    def sudo_loop(self):
        """No sudo refresh happens in the mock."""

    def show(self, cmd):
        return self.runner.show(cmd)

    def capture(self, cmd):
        return self.runner.capture(cmd)