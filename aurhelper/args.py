"""Applying the helper's own command line options to a configuration."""

from __future__ import annotations

import re

from .config import Configuration
from .logger import GLOBAL_LOGGER
from .parser import Arguments, RebuildMode, TargetMode

_INTEGER = re.compile(r"[+-]?[0-9]+")

# Whether user input should be skipped; set by the --noconfirm option.
no_confirm = False

_STRING_OPTIONS = {
    "aururl": "aur_url",
    "aurrpcurl": "aur_rpc_url",
    "sortby": "sort_by",
    "searchby": "search_by",
    "config": "pacman_conf",
    "answerclean": "answer_clean",
    "answerdiff": "answer_diff",
    "answeredit": "answer_edit",
    "answerupgrade": "answer_upgrade",
    "gpgflags": "gpg_flags",
    "mflags": "mflags",
    "gitflags": "git_flags",
    "builddir": "build_dir",
    "editor": "editor",
    "editorflags": "editor_flags",
    "makepkg": "makepkg_bin",
    "makepkgconf": "makepkg_conf",
    "pacman": "pacman_bin",
    "git": "git_bin",
    "gpg": "gpg_bin",
    "sudo": "sudo_bin",
    "sudoflags": "sudo_flags",
}

_FIXED_OPTIONS = {
    "save": ("save_config", True),
    "afterclean": ("clean_after", True),
    "cleanafter": ("clean_after", True),
    "noafterclean": ("clean_after", False),
    "nocleanafter": ("clean_after", False),
    "devel": ("devel", True),
    "nodevel": ("devel", False),
    "timeupdate": ("time_update", True),
    "notimeupdate": ("time_update", False),
    "topdown": ("bottom_up", False),
    "bottomup": ("bottom_up", True),
    "singlelineresults": ("single_line_results", True),
    "doublelineresults": ("single_line_results", False),
    "redownload": ("re_download", "yes"),
    "redownloadall": ("re_download", "all"),
    "noredownload": ("re_download", "no"),
    "rebuild": ("rebuild", RebuildMode.YES),
    "rebuildall": ("rebuild", RebuildMode.ALL),
    "rebuildtree": ("rebuild", RebuildMode.TREE),
    "norebuild": ("rebuild", RebuildMode.NO),
    "batchinstall": ("batch_install", True),
    "nobatchinstall": ("batch_install", False),
    "noanswerclean": ("answer_clean", ""),
    "noanswerdiff": ("answer_diff", ""),
    "noansweredit": ("answer_edit", ""),
    "noanswerupgrade": ("answer_upgrade", ""),
    "nomakepkgconf": ("makepkg_conf", ""),
    "sudoloop": ("sudo_loop", True),
    "nosudoloop": ("sudo_loop", False),
    "provides": ("provides", True),
    "noprovides": ("provides", False),
    "pgpfetch": ("pgp_fetch", True),
    "nopgpfetch": ("pgp_fetch", False),
    "cleanmenu": ("clean_menu", True),
    "nocleanmenu": ("clean_menu", False),
    "diffmenu": ("diff_menu", True),
    "nodiffmenu": ("diff_menu", False),
    "editmenu": ("edit_menu", True),
    "noeditmenu": ("edit_menu", False),
    "useask": ("use_ask", True),
    "nouseask": ("use_ask", False),
    "combinedupgrade": ("combined_upgrade", True),
    "nocombinedupgrade": ("combined_upgrade", False),
    "a": ("mode", TargetMode.AUR),
    "aur": ("mode", TargetMode.AUR),
    "repo": ("mode", TargetMode.REPO),
    "removemake": ("remove_make", "yes"),
    "noremovemake": ("remove_make", "no"),
    "askremovemake": ("remove_make", "ask"),
    "separatesources": ("separate_sources", True),
    "noseparatesources": ("separate_sources", False),
}


def _parse_int(value):
    if _INTEGER.fullmatch(value):
        return int(value)
    return None


def handle_option(config: Configuration, option, value):
    """Apply one option to config; return True if the option belongs to the helper alone."""
    global no_confirm

    if option in _STRING_OPTIONS:
        setattr(config, _STRING_OPTIONS[option], value)
    elif option in _FIXED_OPTIONS:
        name, setting = _FIXED_OPTIONS[option]
        setattr(config, name, setting)
    elif option == "debug":
        config.debug = True
        GLOBAL_LOGGER.debug = True
        return False
    elif option == "completioninterval":
        number = _parse_int(value)
        if number is not None:
            config.completion_interval = number
    elif option == "requestsplitn":
        number = _parse_int(value)
        if number is not None and number > 0:
            config.request_split_n = number
    elif option == "noconfirm":
        no_confirm = True
    else:
        return False

    return True


def extract_yay_options(config: Configuration, arguments: Arguments):
    """Move the helper's own options from arguments into config and normalise AUR URLs."""
    for option, value in list(arguments.options.items()):
        if handle_option(config, option, value.first()):
            arguments.del_arg(option)

    config.aur_url = config.aur_url.rstrip("/")

    if not config.aur_rpc_url:
        config.aur_rpc_url = config.aur_url + "/rpc?"
        return

    if not config.aur_rpc_url.endswith("?"):
        if config.aur_rpc_url.endswith("/rpc"):
            config.aur_rpc_url += "?"
        else:
            config.aur_rpc_url = config.aur_rpc_url.rstrip("/") + "/rpc?"


def parse_command_line(config: Configuration, arguments: Arguments, argv=None, stdin=None):
    """Parse argv into arguments, apply the helper options and return a fresh command builder."""
    arguments.parse(argv, stdin)
    extract_yay_options(config, arguments)
    return config.cmd_builder(None)