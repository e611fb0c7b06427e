"""Checking and importing the PGP keys that package sources are signed with."""

import sys

from . import colors
from .logger import operation_infoln, sprint_operation_info, sprint_warn
from .textutil import continue_task, translate


class KeyImportError(Exception):
    """Raised when gpg fails to import the missing keys."""

    def __init__(self, message, keys=()):
        super().__init__(message)
        self.keys = list(keys)


class _KeySet(dict):
    """Maps an upper-cased key to the package bases that require it."""

    def add(self, key, base):
        self.setdefault(key.upper(), []).append(base)

    def __contains__(self, key):
        return super().__contains__(key.upper())


def check_pgp_keys(pkgbuild_dirs_by_base, srcinfos, cmd_builder, no_confirm):
    """Return the keys missing from the keyring, importing them if the user agrees.

    Each srcinfo needs a valid_pgp_keys sequence. Raises KeyImportError when
    the import fails.
    """
    problematic = _KeySet()

    for base in pkgbuild_dirs_by_base:
        for key in srcinfos[base].valid_pgp_keys:
            if key in problematic:
                problematic.add(key, base)
                continue

            try:
                cmd_builder.show(cmd_builder.build_gpg_cmd("--list-keys", key))
            except Exception:  # noqa: BLE001 - any failure means the key is unusable
                problematic.add(key, base)

    if not problematic:
        return []

    print()
    print(format_keys_to_import(problematic))

    keys = list(problematic)
    if continue_task(sys.stdin, translate("Import?"), True, no_confirm):
        _import_keys(cmd_builder, keys)

    return keys


def _import_keys(cmd_builder, keys):
    operation_infoln(translate("Importing keys with gpg..."))
    try:
        cmd_builder.show(cmd_builder.build_gpg_cmd("--recv-keys", *keys))
    except Exception as exc:  # noqa: BLE001 - reported as a key import failure
        raise KeyImportError(translate("problem importing keys"), keys) from exc


def format_keys_to_import(keys):
    """Describe which keys need importing and which packages require each."""
    if not keys:
        raise ValueError(translate("no keys to import"))

    parts = [sprint_operation_info(translate("PGP keys need importing:"))]
    for key, bases in keys.items():
        pkglist = "  ".join(bases).rstrip(" ")
        message = translate("%s, required by: %s", colors.cyan(key), colors.cyan(pkglist))
        parts.append("\n" + sprint_warn(message))

    return "".join(parts)