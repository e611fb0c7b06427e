"""One-off adjustments applied to configurations saved by older versions."""

from __future__ import annotations

import abc

from .logger import infoln
from .textutil import translate
from .version_diff import vercmp


class ConfigMigration(abc.ABC):
    """A change to apply to configurations older than target_version()."""

    @abc.abstractmethod
    def __str__(self):
        """Describe what the migration does."""

    @abc.abstractmethod
    def apply(self, config):
        """Change config; return True if anything was changed."""

    @abc.abstractmethod
    def target_version(self):
        """The release that introduced this migration, e.g. '11.2.1'."""


class ProvidesMigration(ConfigMigration):
    """Turns the 'provides' setting off."""

    def __str__(self):
        return translate("Disable 'provides' setting by default")

    def apply(self, config):
        if config.provides:
            config.provides = False
            return True
        return False

    def target_version(self):
        return "11.2.1"


def default_migrations():
    return [ProvidesMigration()]


def run_migrations(config, migrations, config_path, new_version):
    """Apply migrations newer than config.version and save the config if any changed it."""
    changed = False

    for migration in migrations:
        if vercmp(migration.target_version(), config.version) > 0 and migration.apply(config):
            infoln("Config migration executed (", migration.target_version(), "):", migration)
            changed = True

    if changed:
        config.save(config_path, new_version)