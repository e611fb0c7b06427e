# aurhelper

Building blocks for an AUR helper that wraps pacman. The package is a library
with no dependencies beyond the standard library:

- `aurhelper.parser`: pacman-compatible command-line parsing. `Arguments`
  holds one operation, a dict of `Option` objects and a list of targets;
  `Arguments.parse(argv, stdin)` handles short option clusters (`-Syu`), long
  options with `=` or a following value, global options, `--`, and `-` to read
  targets line by line from a piped stream. `need_root`, `format_args` and
  `format_globals` turn the result back into pacman words. `TargetMode`
  (`ANY`, `AUR`, `REPO`) and `RebuildMode` are enums; bad input raises
  `ArgumentError`.
- `aurhelper.config`: the `Configuration` dataclass, saved to and loaded from
  tab-indented JSON (`save`, `load`, `to_json`), with `expand_env` for `$VAR`
  and `~/`, `set_privilege_elevator` choosing `PACMAN_AUTH`, the configured
  program, `sudo`, `doas`, `pkexec` or `su` from `PATH`, and `cmd_builder`.
  `default_config`, `new_config`, `get_config_path`, `get_cache_home` and
  `init_dir` locate and create the config and cache directories
  (`XDG_CONFIG_HOME`, `XDG_CACHE_HOME`, `HOME`, `AURDEST`).
- `aurhelper.args`: `parse_command_line`, `extract_yay_options` and
  `handle_option` move the helper's own options (such as `--aururl`,
  `--bottomup`, `--rebuildall`, `--noconfirm`) from parsed arguments into a
  `Configuration` and normalise the AUR RPC URL.
- `aurhelper.migrations`: `ConfigMigration`, `ProvidesMigration`,
  `default_migrations` and `run_migrations`, which applies migrations newer
  than the stored version and saves the config when one changes it.
- `aurhelper.exe`: `CmdBuilder` builds `git`, `gpg`, `makepkg` and `pacman`
  `Command`s, elevating pacman with the configured sudo-like program when
  needed, waiting on pacman's `db.lck`, and running commands as the invoking
  user (or through `systemd-run`) when started as root. `OSRunner` runs
  commands with `subprocess` and raises `CommandError` on failure.
  `aurhelper.mocks` holds recording stand-ins: `MockRunner`, `MockBuilder`
  and `Call`.
- `aurhelper.pgp`: `check_pgp_keys` lists each required key with `gpg
  --list-keys`, reports the missing ones (`format_keys_to_import`) and, after
  confirmation, imports them with `gpg --recv-keys`; failure raises
  `KeyImportError`.
- `aurhelper.topo`: a dependency `Graph` with cycle and self-reference checks
  (`CircularDependencyError`, `SelfReferentialError`), provider tracking,
  transitive `dependencies`/`dependents`, `prune`, layered
  `topo_sorted_layer_map` and Graphviz output via `str(graph)`.
- `aurhelper.search`: `SourceQueryBuilder` queries the AUR and the sync
  repositories, ranks results by Hamming similarity, votes and source, prints
  them (`SearchVerbosity`) and maps menu numbers to `source/name` targets.
  `aurhelper.aur_warnings.AURWarnings` collects orphaned, out-of-date, missing
  and locally newer packages.
- `aurhelper.version_diff`: `vercmp` compares `[epoch:]version[-release]`
  strings; `get_version_diff` colours where two versions differ;
  `is_devel_name` and `is_devel_package` recognise VCS packages.
- `aurhelper.colors`, `aurhelper.logger`, `aurhelper.textutil` and
  `aurhelper.stringset`: ANSI colours, the `Logger` and its module-level
  shortcuts, translation hooks (`translate`, `set_translations`), yes/no
  prompts (`continue_task`), size and time formatting, and `MapStringSet`.

## Installation

```
pip install .
```

## Example

```python
from aurhelper.parser import Arguments, TargetMode

arguments = Arguments()
arguments.parse(["-Syu", "--needed", "yay"], None)
print(arguments.op, arguments.targets)
print(arguments.need_root(TargetMode.ANY))
print(arguments.format_args())
```

```python
from aurhelper.version_diff import get_version_diff, vercmp

left, right = get_version_diff("1.0.0-1", "1.0.1-1")
print(left, right)
print(vercmp("1.0.1-1", "1.0.0-1"))
```

```python
from aurhelper.topo import Graph

graph = Graph()
graph.depend_on("app", "lib")
for layer in graph.topo_sorted_layer_map(None):
    print(sorted(layer))
```

## What the package does not do

- There is no command-line program; the modules are meant to be used from
  your own code.
- It has no AUR web client and no access to the pacman databases.
  `SourceQueryBuilder` takes an `aur_client` whose `get(AurQuery)` returns a
  list of `AurPkg`, and a database executor providing `sync_packages`,
  `local_package` and `package_groups`; you supply both.
- It does not parse `.SRCINFO` files. `check_pgp_keys` expects objects with a
  `valid_pgp_keys` sequence for each package base.
- It does not build or install packages itself; it builds the commands and
  runs them through a runner.

## Running the tests

```
pip install .[test]
pytest
```