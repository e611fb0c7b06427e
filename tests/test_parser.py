import io
from collections import Counter

import pytest

from aurhelper.parser import (
    ArgumentError,
    Arguments,
    Option,
    RebuildMode,
    TargetMode,
    format_arg,
    has_param,
    is_arg,
    is_global,
    is_op,
)


@pytest.mark.parametrize(
    "initial, expected",
    [(["a", "b"], ["a", "b", "c"]), ([], ["c"])],
)
def test_option_add(initial, expected):
    option = Option(args=list(initial))
    option.add("c")
    assert Counter(option.args) == Counter(expected)


@pytest.mark.parametrize("initial", [["a", "b"], []])
def test_option_set(initial):
    option = Option(args=list(initial))
    option.set("c")
    assert option.args == ["c"]


@pytest.mark.parametrize("initial, expected", [(["a", "b"], "a"), ([], "")])
def test_option_first(initial, expected):
    assert Option(args=initial).first() == expected


def test_make_arguments_empty():
    args = Arguments()
    assert args.op == ""
    assert args.options == {}
    assert args.targets == []


def _sample_options():
    return {
        "a": Option(),
        "arch": Option(args=["x86_x64"], is_global=True),
        "boo": Option(args=["a", "b"], is_global=True),
    }


def test_copy_global():
    original = Arguments(op="Q", options=_sample_options(), targets=["a", "b"])
    got = original.copy_global()
    assert got.options != original.options
    assert got.targets != original.targets
    assert got.op != original.op
    assert got == Arguments(
        op="",
        options={
            "arch": Option(args=["x86_x64"], is_global=True),
            "boo": Option(args=["a", "b"], is_global=True),
        },
        targets=[],
    )


def test_copy():
    original = Arguments(op="Q", options=_sample_options(), targets=["a", "b"])
    got = original.copy()
    assert got == original
    assert got == Arguments(op="Q", options=_sample_options(), targets=["a", "b"])


def test_copy_is_independent():
    original = Arguments(op="Q", options=_sample_options(), targets=["a"])
    got = original.copy()
    got.add_target("z")
    got.del_arg("arch")
    assert original.targets == ["a"]
    assert "arch" in original.options


def test_del_arg():
    args = Arguments()
    args.add_param("arch", "arg")
    args.add_param("ask", "arg")
    args.del_arg("arch", "ask")
    assert args.options == {}


@pytest.mark.parametrize(
    "op, options, expected",
    [
        ("S", {}, ["-S"]),
        ("Y", {"noconfirm": Option(args=[""], is_global=True)}, ["-Y"]),
        (
            "Y",
            {"overwrite": Option(args=["/tmp/a"]), "useask": Option(args=[""])},
            ["-Y", "--overwrite", "/tmp/a", "--useask"],
        ),
        (
            "Y",
            {"overwrite": Option(args=["/tmp/a", "/tmp/b", "/tmp/c"]), "needed": Option(args=[""])},
            ["-Y", "--overwrite", "/tmp/a", "--overwrite", "/tmp/b", "--overwrite", "/tmp/c", "--needed"],
        ),
    ],
)
def test_format_args(op, options, expected):
    args = Arguments(op=op, options=options, targets=["yay"])
    assert Counter(args.format_args()) == Counter(expected)


@pytest.mark.parametrize(
    "op, options, expected",
    [
        ("S", {"dbpath": Option(args=["/tmp/a", "/tmp/b"], is_global=True)},
         ["--dbpath", "/tmp/a", "--dbpath", "/tmp/b"]),
        ("Y", {"noconfirm": Option(args=[""], is_global=True)}, ["--noconfirm"]),
        ("Y", {"overwrite": Option(args=["/tmp/a"]), "useask": Option(args=[""])}, []),
        ("Y", {"overwrite": Option(args=["/tmp/a", "/tmp/b"]), "needed": Option(args=[""])}, []),
    ],
)
def test_format_globals(op, options, expected):
    args = Arguments(op=op, options=options)
    assert Counter(args.format_globals()) == Counter(expected)


def test_format_args_skips_double_dash():
    args = Arguments(op="S", options={"--": Option(args=[""])})
    assert args.format_args() == ["-S"]


def test_is_arg():
    assert is_arg("zorg") is False
    assert is_arg("dbpath") is True


def test_classifiers():
    assert is_op("S") and is_op("getpkgbuild") and not is_op("y")
    assert is_global("noconfirm") and not is_global("needed")
    assert has_param("aururl") and not has_param("needed")


def test_format_arg():
    assert format_arg("S") == "-S"
    assert format_arg("sync") == "--sync"


def test_parse_stdin():
    args = Arguments()
    args.parse_stdin(io.StringIO("yay"))
    assert args.targets == ["yay"]


def test_parse_stdin_broken_pipe():
    stream = io.StringIO("yay")
    stream.close()
    with pytest.raises(ArgumentError):
        Arguments().parse_stdin(stream)


class _Terminal(io.StringIO):
    def isatty(self):
        return True


def test_parse_stdin_terminal_rejected():
    with pytest.raises(ArgumentError):
        Arguments().parse_stdin(_Terminal("yay"))


def test_parse_combined_short_options():
    args = Arguments()
    args.parse(["-Syu", "foo"], io.StringIO(""))
    assert args.op == "S"
    assert set(args.options) == {"y", "u"}
    assert args.targets == ["foo"]


def test_parse_defaults_to_sysupgrade():
    args = Arguments()
    args.parse([], io.StringIO(""))
    assert args.op == "S"
    assert set(args.options) == {"y", "u"}


def test_parse_targets_only_uses_yay_op():
    args = Arguments()
    args.parse(["foo", "bar"], io.StringIO(""))
    assert args.op == "Y"
    assert args.targets == ["foo", "bar"]


def test_parse_two_operations_fails():
    with pytest.raises(ArgumentError):
        Arguments().parse(["-S", "-Q"], io.StringIO(""))


def test_parse_invalid_option_fails():
    with pytest.raises(ArgumentError):
        Arguments().parse(["--zorg"], io.StringIO(""))


def test_parse_long_param_uses_next():
    args = Arguments()
    args.parse(["--dbpath", "/some/path", "-S", "pkg"], io.StringIO(""))
    assert args.get_arg("dbpath") == ("/some/path", False, True)
    assert args.options["dbpath"].is_global is True
    assert args.targets == ["pkg"]


def test_parse_short_param_inline():
    args = Arguments()
    args.parse(["-Sb/some/path"], io.StringIO(""))
    assert args.op == "S"
    assert args.get_arg("b")[0] == "/some/path"


def test_parse_equals_and_comma_split():
    args = Arguments()
    args.parse(["-S", "--ignore=a,b"], io.StringIO(""))
    assert args.get_args("ignore") == ["a", "b"]
    assert args.exists_double("ignore") is True


def test_parse_double_dash_makes_targets():
    args = Arguments()
    args.parse(["-S", "--", "-y", "--foo"], io.StringIO(""))
    assert args.targets == ["-y", "--foo"]
    assert "y" not in args.options


def test_parse_dash_reads_stdin():
    args = Arguments()
    args.parse(["-S", "-"], io.StringIO("one\ntwo\n"))
    assert args.targets == ["one", "two"]
    assert "-" not in args.options


def test_get_arg_missing():
    assert Arguments().get_arg("x") == ("", False, False)
    assert Arguments().get_args("x") is None


def test_clear_targets():
    args = Arguments(targets=["a"])
    args.clear_targets()
    assert args.targets == []


@pytest.mark.parametrize(
    "op, flags, mode, expected",
    [
        ("S", [], TargetMode.ANY, True),
        ("S", ["s"], TargetMode.ANY, False),
        ("S", ["y", "s"], TargetMode.ANY, True),
        ("S", ["c"], TargetMode.AUR, False),
        ("S", ["c"], TargetMode.ANY, True),
        ("Q", [], TargetMode.ANY, False),
        ("Q", ["k"], TargetMode.ANY, True),
        ("D", ["k"], TargetMode.ANY, False),
        ("D", [], TargetMode.ANY, True),
        ("F", ["y"], TargetMode.ANY, True),
        ("R", [], TargetMode.ANY, True),
        ("R", ["p"], TargetMode.ANY, False),
        ("U", [], TargetMode.ANY, True),
        ("U", ["h"], TargetMode.ANY, False),
        ("Y", [], TargetMode.ANY, False),
    ],
)
def test_need_root(op, flags, mode, expected):
    args = Arguments(op=op)
    args.add_arg(*flags)
    assert args.need_root(mode) is expected


def test_target_mode():
    assert TargetMode.ANY.at_least_aur() and TargetMode.ANY.at_least_repo()
    assert TargetMode.AUR.at_least_aur() and not TargetMode.AUR.at_least_repo()
    assert TargetMode.REPO.at_least_repo() and not TargetMode.REPO.at_least_aur()


def test_rebuild_mode_values():
    assert RebuildMode("tree") is RebuildMode.TREE
    assert RebuildMode.NO == "no"