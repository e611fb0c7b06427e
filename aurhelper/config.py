"""Persistent helper configuration: defaults, JSON file, environment and directories."""

from __future__ import annotations

import enum
import json
import os
import re
import shutil
import sys
from dataclasses import dataclass, field, fields

from .exe import CmdBuilder, OSRunner
from .logger import GLOBAL_LOGGER, Logger, errorln
from .parser import RebuildMode, TargetMode
from .textutil import translate

CONFIG_FILE_NAME = "config.json"
VCS_FILE_NAME = "vcs.json"
COMPLETION_FILE_NAME = "completion.cache"
SYSTEMD_CACHE = "/var/cache/yay"

_ENV_PATTERN = re.compile(
    r"\$(?:\{(?P<braced>[^}]*)\}|(?P<special>[*#$@!?\-0-9])|(?P<name>[A-Za-z_][A-Za-z0-9_]*))"
)
_JSON_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}
_PRIVILEGE_FALLBACKS = ("doas", "pkexec", "su")


class PrivilegeElevatorNotFoundError(Exception):
    """Raised when no sudo-like program can be found."""

    def __init__(self, conf_value):
        super().__init__(
            f"unable to find a privilege elevator, config value: {conf_value}"
        )
        self.conf_value = conf_value


class RuntimeDirError(Exception):
    """Raised when a directory the helper needs cannot be created."""

    def __init__(self, directory, inner):
        super().__init__(
            translate("failed to create directory '%s': %s", directory, inner)
        )
        self.dir = directory
        self.inner = inner


class UserAbortError(Exception):
    """Raised when the user declines to continue."""

    def __init__(self):
        super().__init__(translate("aborting due to user"))


def _expand(text):
    """Replace $VAR and ${VAR} with environment values; unset variables become empty."""

    def substitute(match):
        name = match.group("braced")
        if name is None:
            name = match.group("special") or match.group("name")
        return os.environ.get(name, "")

    return _ENV_PATTERN.sub(substitute, text)


def expand_env_or_home(path):
    """Expand environment variables and a leading '~/'."""
    path = _expand(path)
    if path.startswith("~/"):
        path = os.path.join(os.environ.get("HOME", ""), path[2:])
    return path


def _as_rebuild(value):
    value = getattr(value, "value", value)
    try:
        return RebuildMode(value)
    except ValueError:
        return value


def _json(name):
    return {"json": name}


@dataclass
class Configuration:
    """All settings of the helper; fields with a JSON name are saved to the config file."""

    logger: Logger = field(default=GLOBAL_LOGGER, repr=False, compare=False)
    aur_url: str = field(default="", metadata=_json("aururl"))
    aur_rpc_url: str = field(default="", metadata=_json("aurrpcurl"))
    build_dir: str = field(default="", metadata=_json("buildDir"))
    editor: str = field(default="", metadata=_json("editor"))
    editor_flags: str = field(default="", metadata=_json("editorflags"))
    makepkg_bin: str = field(default="", metadata=_json("makepkgbin"))
    makepkg_conf: str = field(default="", metadata=_json("makepkgconf"))
    pacman_bin: str = field(default="", metadata=_json("pacmanbin"))
    pacman_conf: str = field(default="", metadata=_json("pacmanconf"))
    re_download: str = field(default="", metadata=_json("redownload"))
    answer_clean: str = field(default="", metadata=_json("answerclean"))
    answer_diff: str = field(default="", metadata=_json("answerdiff"))
    answer_edit: str = field(default="", metadata=_json("answeredit"))
    answer_upgrade: str = field(default="", metadata=_json("answerupgrade"))
    git_bin: str = field(default="", metadata=_json("gitbin"))
    gpg_bin: str = field(default="", metadata=_json("gpgbin"))
    gpg_flags: str = field(default="", metadata=_json("gpgflags"))
    mflags: str = field(default="", metadata=_json("mflags"))
    sort_by: str = field(default="", metadata=_json("sortby"))
    search_by: str = field(default="", metadata=_json("searchby"))
    git_flags: str = field(default="", metadata=_json("gitflags"))
    remove_make: str = field(default="", metadata=_json("removemake"))
    sudo_bin: str = field(default="", metadata=_json("sudobin"))
    sudo_flags: str = field(default="", metadata=_json("sudoflags"))
    version: str = field(default="", metadata=_json("version"))
    request_split_n: int = field(default=0, metadata=_json("requestsplitn"))
    completion_interval: int = field(default=0, metadata=_json("completionrefreshtime"))
    max_concurrent_downloads: int = field(default=0, metadata=_json("maxconcurrentdownloads"))
    bottom_up: bool = field(default=False, metadata=_json("bottomup"))
    sudo_loop: bool = field(default=False, metadata=_json("sudoloop"))
    time_update: bool = field(default=False, metadata=_json("timeupdate"))
    devel: bool = field(default=False, metadata=_json("devel"))
    clean_after: bool = field(default=False, metadata=_json("cleanAfter"))
    provides: bool = field(default=False, metadata=_json("provides"))
    pgp_fetch: bool = field(default=False, metadata=_json("pgpfetch"))
    clean_menu: bool = field(default=False, metadata=_json("cleanmenu"))
    diff_menu: bool = field(default=False, metadata=_json("diffmenu"))
    edit_menu: bool = field(default=False, metadata=_json("editmenu"))
    combined_upgrade: bool = field(default=False, metadata=_json("combinedupgrade"))
    use_ask: bool = field(default=False, metadata=_json("useask"))
    batch_install: bool = field(default=False, metadata=_json("batchinstall"))
    single_line_results: bool = field(default=False, metadata=_json("singlelineresults"))
    separate_sources: bool = field(default=False, metadata=_json("separatesources"))
    debug: bool = field(default=False, metadata=_json("debug"))
    use_rpc: bool = field(default=False, metadata=_json("rpc"))
    double_confirm: bool = field(default=False, metadata=_json("doubleconfirm"))
    completion_path: str = ""
    vcs_file_path: str = ""
    save_config: bool = False
    mode: TargetMode = TargetMode.ANY
    rebuild: str = field(default="", metadata=_json("rebuild"))

    def _serialized(self):
        data = {}
        for item in fields(self):
            if "json" not in item.metadata:
                continue
            value = getattr(self, item.name)
            if isinstance(value, enum.Enum):
                value = value.value
            data[item.metadata["json"]] = value

        text = json.dumps(data, indent="\t", ensure_ascii=False)
        for char, escape in _JSON_ESCAPES.items():
            text = text.replace(char, escape)
        return text

    def save(self, config_path, version):
        """Write the configuration to config_path, stamped with version."""
        self.version = version
        content = self._serialized() + "\n"

        parent = os.path.dirname(config_path)
        if parent and not os.path.exists(parent):
            os.makedirs(parent, mode=0o755, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())

    def to_json(self):
        """The configuration as tab-indented JSON ending in a newline."""
        return self._serialized() + "\n"

    def __str__(self):
        return self.to_json()

    def expand_env(self):
        """Expand environment variables, and '~/' for paths, in the string settings."""
        for name in (
            "aur_url", "aur_rpc_url", "editor_flags", "gpg_flags", "mflags",
            "git_flags", "sort_by", "search_by", "sudo_flags", "re_download",
            "answer_clean", "answer_diff", "answer_edit", "answer_upgrade",
            "remove_make",
        ):
            setattr(self, name, _expand(getattr(self, name)))

        for name in (
            "build_dir", "editor", "makepkg_bin", "makepkg_conf", "pacman_bin",
            "pacman_conf", "git_bin", "gpg_bin", "sudo_bin",
        ):
            setattr(self, name, expand_env_or_home(getattr(self, name)))

        self.rebuild = _as_rebuild(_expand(getattr(self.rebuild, "value", self.rebuild)))

    def set_privilege_elevator(self):
        """Choose an available sudo-like program, honouring PACMAN_AUTH."""
        auth = os.environ.get("PACMAN_AUTH", "")
        if auth:
            self.sudo_bin = auth
            if auth != "sudo":
                self.sudo_flags = ""
                self.sudo_loop = False

        for candidate in (self.sudo_bin, "sudo"):
            if shutil.which(candidate) is not None:
                self.sudo_bin = candidate
                return

        self.sudo_flags = ""
        self.sudo_loop = False

        for candidate in _PRIVILEGE_FALLBACKS:
            if shutil.which(candidate) is not None:
                self.sudo_bin = candidate
                return

        raise PrivilegeElevatorNotFoundError(self.sudo_bin)

    def load(self, config_path):
        """Overlay settings from a JSON file; problems are reported, not raised."""
        try:
            with open(config_path, encoding="utf-8") as handle:
                text = handle.read()
        except FileNotFoundError:
            return
        except OSError as exc:
            print(translate("failed to open config file '%s': %s", config_path, exc),
                  file=sys.stderr)
            return

        problem = self._apply_json(text)
        if problem:
            print(translate("failed to read config file '%s': %s", config_path, problem),
                  file=sys.stderr)

    def _apply_json(self, text):
        """Apply the first JSON value in text; return a description of the first problem."""
        try:
            data, _ = json.JSONDecoder().raw_decode(text.lstrip())
        except ValueError as exc:
            return str(exc) or "unexpected EOF"

        if data is None:
            return ""
        if not isinstance(data, dict):
            return "cannot unmarshal into Configuration"

        exact = {}
        folded = {}
        for item in fields(self):
            if "json" in item.metadata:
                exact[item.metadata["json"]] = item.name
                folded.setdefault(item.metadata["json"].casefold(), item.name)

        problem = ""
        for key, value in data.items():
            name = exact.get(key) or folded.get(key.casefold())
            if name is None or value is None:
                continue

            current = getattr(self, name)
            if isinstance(current, bool):
                valid = isinstance(value, bool)
            elif isinstance(current, int):
                valid = isinstance(value, int) and not isinstance(value, bool)
            else:
                valid = isinstance(value, str)

            if not valid:
                problem = problem or f"cannot unmarshal {value!r} into field {key}"
                continue

            setattr(self, name, _as_rebuild(value) if name == "rebuild" else value)

        return problem

    def cmd_builder(self, runner):
        """A command builder using these settings; a real runner when runner is None."""
        if runner is None:
            runner = OSRunner(log=self.logger.child("runner"))

        return CmdBuilder(
            git_bin=self.git_bin,
            git_flags=self.git_flags.split(),
            gpg_bin=self.gpg_bin,
            gpg_flags=self.gpg_flags.split(),
            makepkg_flags=self.mflags.split(),
            makepkg_conf_path=self.makepkg_conf,
            makepkg_bin=self.makepkg_bin,
            sudo_bin=self.sudo_bin,
            sudo_flags=self.sudo_flags.split(),
            sudo_loop_enabled=self.sudo_loop,
            pacman_bin=self.pacman_bin,
            pacman_config_path=self.pacman_conf,
            pacman_db_path="",
            runner=runner,
            log=self.logger.child("cmd_builder"),
        )


def default_config(version):
    """The configuration used when no file overrides it."""
    return Configuration(
        aur_url="https://aur.archlinux.org",
        build_dir=_expand("$HOME/.cache/yay"),
        makepkg_bin="makepkg",
        pacman_bin="pacman",
        pgp_fetch=True,
        pacman_conf="/etc/pacman.conf",
        bottom_up=True,
        completion_interval=7,
        sort_by="votes",
        search_by="name-desc",
        git_bin="git",
        gpg_bin="gpg",
        sudo_bin="sudo",
        request_split_n=150,
        re_download="no",
        rebuild=RebuildMode.NO,
        remove_make="ask",
        provides=True,
        clean_menu=True,
        diff_menu=True,
        combined_upgrade=True,
        separate_sources=True,
        version=version,
        use_rpc=True,
        double_confirm=True,
        logger=GLOBAL_LOGGER,
        mode=TargetMode.ANY,
    )


def new_config(config_path, version):
    """Defaults, overlaid with the file and environment, with directories prepared."""
    config = default_config(version)

    try:
        cache_home = get_cache_home()
    except RuntimeDirError as exc:
        errorln(exc)
        cache_home = exc.dir

    config.build_dir = cache_home
    config.completion_path = os.path.join(cache_home, COMPLETION_FILE_NAME)
    config.vcs_file_path = os.path.join(cache_home, VCS_FILE_NAME)
    config.load(config_path)

    aurdest = os.environ.get("AURDEST", "")
    if aurdest:
        config.build_dir = aurdest

    config.expand_env()

    if config.build_dir != SYSTEMD_CACHE:
        init_dir(config.build_dir)

    config.set_privilege_elevator()
    return config


def get_config_path():
    """Path of the config file under XDG_CONFIG_HOME or ~/.config; '' if neither works."""
    for base, parts in (
        (os.environ.get("XDG_CONFIG_HOME", ""), ("yay",)),
        (os.environ.get("HOME", ""), (".config", "yay")),
    ):
        if not base:
            continue
        config_dir = os.path.join(base, *parts)
        try:
            init_dir(config_dir)
        except (RuntimeDirError, OSError):
            continue
        return os.path.join(config_dir, CONFIG_FILE_NAME)

    return ""


def get_cache_home():
    """The cache directory, created if needed.

    Raises RuntimeDirError, whose dir is still the chosen path, when it cannot be created.
    """
    is_root = os.geteuid() == 0

    if not is_root:
        for base, parts in (
            (os.environ.get("XDG_CACHE_HOME", ""), ("yay",)),
            (os.environ.get("HOME", ""), (".cache", "yay")),
        ):
            if not base:
                continue
            cache_dir = os.path.join(base, *parts)
            try:
                init_dir(cache_dir)
            except (RuntimeDirError, OSError):
                continue
            return cache_dir

    if is_root and not os.environ.get("SUDO_USER") and not os.environ.get("DOAS_USER"):
        return SYSTEMD_CACHE

    tmp_dir = os.path.join(os.environ.get("TMPDIR") or "/tmp", "yay")
    try:
        init_dir(tmp_dir)
    except RuntimeDirError:
        raise
    except OSError as exc:
        raise RuntimeDirError(tmp_dir, exc) from exc
    return tmp_dir


def init_dir(directory):
    """Create directory with its parents if it does not exist."""
    try:
        os.stat(directory)
    except FileNotFoundError:
        try:
            os.makedirs(directory, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise RuntimeDirError(directory, exc) from exc