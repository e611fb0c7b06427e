import io
import json

import pytest

from aurhelper.config import Configuration
from aurhelper.logger import Logger
from aurhelper.migrations import (
    ConfigMigration,
    ProvidesMigration,
    default_migrations,
    run_migrations,
)


def _quiet_logger():
    return Logger(io.StringIO(), io.StringIO(), io.StringIO(""), False, "test")


def test_migration_nothing_to_do(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("")
    config = Configuration(version="99.0.0", logger=_quiet_logger())

    run_migrations(config, default_migrations(), str(path), "20.0.0")

    assert path.read_text() == ""
    assert config.version == "99.0.0"


def test_provides_migration_apply():
    migration = ProvidesMigration()
    config = Configuration(provides=True, logger=_quiet_logger())
    assert migration.apply(config) is True
    assert config.provides is False

    false_config = Configuration(provides=False)
    assert migration.apply(false_config) is False


def test_provides_migration_metadata():
    migration = ProvidesMigration()
    assert migration.target_version() == "11.2.1"
    assert str(migration) == "Disable 'provides' setting by default"
    assert isinstance(migration, ConfigMigration)


def test_default_migrations_list():
    migrations = default_migrations()
    assert [type(m) for m in migrations] == [ProvidesMigration]


def test_config_migration_is_abstract():
    with pytest.raises(TypeError):
        ConfigMigration()


@pytest.mark.parametrize(
    "version, provides, new_version, want_save",
    [
        ("11.0.1", True, "11.2.1", True),
        ("11.2.0.r7.g6f60892", True, "11.2.1", True),
        ("11.2.0", False, "11.2.1", False),
        ("11.2.1", True, "11.2.1", False),
        ("11.3.0", True, "11.3.0", False),
    ],
    ids=[
        "to upgrade",
        "to upgrade-git",
        "to not upgrade",
        "to not upgrade - target version",
        "to not upgrade - new version",
    ],
)
def test_provides_migration(tmp_path, version, provides, new_version, want_save):
    path = tmp_path / "config.json"
    path.write_text("")
    config = Configuration(version=version, provides=provides, logger=_quiet_logger())

    run_migrations(config, [ProvidesMigration()], str(path), new_version)

    text = path.read_text()
    if want_save:
        data = json.loads(text)
        assert data["version"] == new_version
        assert data["provides"] is False
        loaded = Configuration()
        loaded.load(str(path))
        assert loaded.version == new_version
        assert loaded.provides is False
    else:
        assert text == ""
        assert config.version == version