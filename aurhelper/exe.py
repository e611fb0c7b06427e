"""Building and running the external commands the helper depends on."""

from __future__ import annotations

import os
import pwd
import shutil
import subprocess
import threading
import time
from dataclasses import dataclass, field

from .logger import GLOBAL_LOGGER, Logger
from .textutil import translate

SUDO_LOOP_DURATION = 241

_LOCK_POLL_SECONDS = 3
_GIT_DENY_LIST = frozenset({"GIT_WORK_TREE", "GIT_DIR"})
_PROXY_VARIABLES = ("http_proxy", "https_proxy", "ftp_proxy")


class CommandError(Exception):
    """Raised when an external command cannot be started or exits with failure."""

    def __init__(self, message, stdout="", stderr="", returncode=None):
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode


@dataclass
class Command:
    """An external command: its words, working directory, environment and identity."""

    args: list
    cwd: str | None = None
    env: dict | None = None
    user: int | None = None
    group: int | None = None

    def __str__(self):
        return " ".join(self.args)


def _run(cmd, **kwargs):
    try:
        return subprocess.run(
            cmd.args,
            cwd=cmd.cwd or None,
            env=cmd.env,
            user=cmd.user,
            group=cmd.group,
            check=False,
            **kwargs,
        )
    except OSError as exc:
        raise CommandError(str(exc)) from exc


@dataclass
class OSRunner:
    """Runs commands on the real system."""

    log: Logger = GLOBAL_LOGGER

    def show(self, cmd):
        """Run a command attached to the terminal; raise CommandError on failure."""
        self.log.debugln("running", str(cmd))
        completed = _run(cmd)
        if completed.returncode != 0:
            raise CommandError(
                f"exit status {completed.returncode}", returncode=completed.returncode
            )

    def capture(self, cmd):
        """Run a command and return its trimmed (stdout, stderr)."""
        self.log.debugln("capturing", str(cmd))
        completed = _run(cmd, capture_output=True, text=True)
        stdout = (completed.stdout or "").strip()
        stderr = (completed.stderr or "").strip()
        if completed.returncode != 0:
            raise CommandError(
                f"exit status {completed.returncode}",
                stdout=stdout,
                stderr=stderr,
                returncode=completed.returncode,
            )
        return stdout, stderr


def git_filtered_env():
    """The current environment without variables that redirect git, prompts disabled."""
    env = {key: value for key, value in os.environ.items() if key not in _GIT_DENY_LIST}
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env


@dataclass
class CmdBuilder:
    """Builds the git, gpg, makepkg and pacman commands from configured binaries and flags."""

    git_bin: str = ""
    git_flags: list = field(default_factory=list)
    gpg_bin: str = ""
    gpg_flags: list = field(default_factory=list)
    makepkg_flags: list = field(default_factory=list)
    makepkg_conf_path: str = ""
    makepkg_bin: str = ""
    sudo_bin: str = ""
    sudo_flags: list = field(default_factory=list)
    sudo_loop_enabled: bool = False
    pacman_bin: str = ""
    pacman_config_path: str = ""
    pacman_db_path: str = ""
    runner: object = None
    log: Logger = GLOBAL_LOGGER

    def build_gpg_cmd(self, *args):
        cmd = Command([self.gpg_bin, *self.gpg_flags, *args])
        return self._de_elevate(cmd)

    def build_git_cmd(self, directory, *args):
        words = [self.git_bin, *self.git_flags]
        if directory:
            words += ["-C", directory]
        words += args
        cmd = Command(words, env=git_filtered_env())
        return self._de_elevate(cmd)

    def add_makepkg_flag(self, flag):
        self.makepkg_flags.append(flag)

    def build_makepkg_cmd(self, directory, *args):
        words = [self.makepkg_bin, *self.makepkg_flags]
        if self.makepkg_conf_path:
            words += ["--config", self.makepkg_conf_path]
        words += args
        cmd = Command(words, cwd=directory)
        return self._de_elevate(cmd)

    def set_pacman_db_path(self, db_path):
        self.pacman_db_path = db_path

    def _de_elevate(self, cmd):
        """When running as root, run cmd as the invoking user or through systemd-run."""
        if os.geteuid() != 0:
            return cmd

        caller = os.environ.get("SUDO_USER") or os.environ.get("DOAS_USER") or ""
        try:
            entry = pwd.getpwnam(caller)
        except KeyError:
            entry = None

        if entry is not None:
            cmd.user = entry.pw_uid
            cmd.group = entry.pw_gid
            return cmd

        words = [
            "--service-type=oneshot",
            "--pipe", "--wait", "--pty", "--quiet",
            "-p", "DynamicUser=yes",
            "-p", "CacheDirectory=yay",
            "-E", "HOME=/tmp",
        ]
        if cmd.cwd:
            words += ["-p", f"WorkingDirectory={cmd.cwd}"]

        for name in _PROXY_VARIABLES:
            value = os.environ.get(name, "")
            if value:
                words += ["-E", f"{name}={value}"]

        path = shutil.which(cmd.args[0]) or ""
        return Command(["systemd-run", *words, path, *cmd.args[1:]], cwd=cmd.cwd)

    def _build_privilege_elevator_command(self, words):
        if self.sudo_bin == "su":
            return Command([self.sudo_bin, "-c", " ".join(words)])
        return Command([self.sudo_bin, *self.sudo_flags, *words])

    def build_pacman_cmd(self, args, mode, no_confirm):
        """Build the pacman invocation for parsed arguments, elevated when needed."""
        needs_root = args.need_root(mode)

        words = [self.pacman_bin, *args.format_globals(), *args.format_args()]
        if no_confirm:
            words.append("--noconfirm")
        words += ["--config", self.pacman_config_path, "--", *args.targets]

        if needs_root:
            self._wait_lock(self.pacman_db_path)
            if os.geteuid() != 0:
                return self._build_privilege_elevator_command(words)

        return Command(words)

    def _wait_lock(self, db_path):
        """Block while pacman's database lock file exists."""
        lock_path = os.path.join(db_path, "db.lck")
        if not os.path.exists(lock_path):
            return

        self.log.warnln(translate("%s is present.", lock_path))
        self.log.warn(translate("There may be another Pacman instance running. Waiting..."))

        while True:
            time.sleep(_LOCK_POLL_SECONDS)
            if not os.path.exists(lock_path):
                print()
                return

    def sudo_loop(self):
        """Refresh the sudo timestamp now and keep refreshing it in the background."""
        self._update_sudo()
        threading.Thread(target=self._sudo_loop_background, daemon=True).start()

    def _sudo_loop_background(self):
        while True:
            self._update_sudo()
            time.sleep(SUDO_LOOP_DURATION)

    def _update_sudo(self):
        while True:
            try:
                self.show(Command([self.sudo_bin, "-v"]))
            except CommandError as exc:
                self.log.errorln(exc)
            else:
                return

    def show(self, cmd):
        return self.runner.show(cmd)

    def capture(self, cmd):
        return self.runner.capture(cmd)