import io
from dataclasses import dataclass, field

import pytest

from aurhelper import colors
from aurhelper.logger import Logger
from aurhelper.parser import TargetMode
from aurhelper.search import (
    AURSearchError,
    AurPkg,
    SearchBy,
    SearchVerbosity,
    SourceQueryBuilder,
    get_search_by,
    hamming_similarity,
    matches_search,
    query_aur,
    remove_invalid_targets,
    sync_pkg_search_string,
    aur_pkg_search_string,
)

LINUX_CK = AurPkg(
    name="linux-ck",
    version="5.16.12-1",
    description="The Linux-ck kernel and modules with ck's hrtimer patches",
    num_votes=450,
    popularity=1.511141,
    maintainer="graysky",
    out_of_date=0,
    package_base="linux-ck",
)


@dataclass
class RepoPkg:
    name: str
    version: str
    description: str
    size: int = 1
    isize: int = 1
    db_name: str = "core"
    provides: list = field(default_factory=list)


@dataclass
class LocalPkg:
    version: str


class MockClient:
    def __init__(self, pkgs=(), error=None):
        self.pkgs = list(pkgs)
        self.error = error
        self.queries = []

    def get(self, query):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return list(self.pkgs)


class MockDB:
    def __init__(self, local=None, groups=()):
        self.local = local or {}
        self.groups = list(groups)

    def local_package(self, name):
        return self.local.get(name)

    def package_groups(self, pkg):
        return list(self.groups)

    def sync_packages(self, *names):
        return [
            RepoPkg("linux", "5.16.0", "The Linux kernel and modules"),
            RepoPkg("linux-zen", "5.16.0", "The Linux ZEN kernel and modules"),
        ]


def make_logger():
    out, err = io.StringIO(), io.StringIO()
    return Logger(out, err, io.StringIO(""), False, "test"), out, err


MIXED_WANT = {
    True: "\x1b[1m\x1b[33mcore\x1b[0m\x1b[0m/\x1b[1mlinux-zen\x1b[0m \x1b[36m5.16.0\x1b[0m\x1b[1m (1.0 B 1.0 B) \x1b[0m\n    The Linux ZEN kernel and modules\n\x1b[1m\x1b[34maur\x1b[0m\x1b[0m/\x1b[1mlinux-ck\x1b[0m \x1b[36m5.16.12-1\x1b[0m\x1b[1m (+450\x1b[0m \x1b[1m1.51) \x1b[0m\n    The Linux-ck kernel and modules with ck's hrtimer patches\n\x1b[1m\x1b[33mcore\x1b[0m\x1b[0m/\x1b[1mlinux\x1b[0m \x1b[36m5.16.0\x1b[0m\x1b[1m (1.0 B 1.0 B) \x1b[0m\n    The Linux kernel and modules\n",
    False: "\x1b[1m\x1b[33mcore\x1b[0m\x1b[0m/\x1b[1mlinux\x1b[0m \x1b[36m5.16.0\x1b[0m\x1b[1m (1.0 B 1.0 B) \x1b[0m\n    The Linux kernel and modules\n\x1b[1m\x1b[34maur\x1b[0m\x1b[0m/\x1b[1mlinux-ck\x1b[0m \x1b[36m5.16.12-1\x1b[0m\x1b[1m (+450\x1b[0m \x1b[1m1.51) \x1b[0m\n    The Linux-ck kernel and modules with ck's hrtimer patches\n\x1b[1m\x1b[33mcore\x1b[0m\x1b[0m/\x1b[1mlinux-zen\x1b[0m \x1b[36m5.16.0\x1b[0m\x1b[1m (1.0 B 1.0 B) \x1b[0m\n    The Linux ZEN kernel and modules\n",
}

SEPARATE_WANT = {
    True: "\x1b[1m\x1b[34maur\x1b[0m\x1b[0m/\x1b[1mlinux-ck\x1b[0m \x1b[36m5.16.12-1\x1b[0m\x1b[1m (+450\x1b[0m \x1b[1m1.51) \x1b[0m\n    The Linux-ck kernel and modules with ck's hrtimer patches\n\x1b[1m\x1b[33mcore\x1b[0m\x1b[0m/\x1b[1mlinux-zen\x1b[0m \x1b[36m5.16.0\x1b[0m\x1b[1m (1.0 B 1.0 B) \x1b[0m\n    The Linux ZEN kernel and modules\n\x1b[1m\x1b[33mcore\x1b[0m\x1b[0m/\x1b[1mlinux\x1b[0m \x1b[36m5.16.0\x1b[0m\x1b[1m (1.0 B 1.0 B) \x1b[0m\n    The Linux kernel and modules\n",
    False: "\x1b[1m\x1b[33mcore\x1b[0m\x1b[0m/\x1b[1mlinux\x1b[0m \x1b[36m5.16.0\x1b[0m\x1b[1m (1.0 B 1.0 B) \x1b[0m\n    The Linux kernel and modules\n\x1b[1m\x1b[33mcore\x1b[0m\x1b[0m/\x1b[1mlinux-zen\x1b[0m \x1b[36m5.16.0\x1b[0m\x1b[1m (1.0 B 1.0 B) \x1b[0m\n    The Linux ZEN kernel and modules\n\x1b[1m\x1b[34maur\x1b[0m\x1b[0m/\x1b[1mlinux-ck\x1b[0m \x1b[36m5.16.12-1\x1b[0m\x1b[1m (+450\x1b[0m \x1b[1m1.51) \x1b[0m\n    The Linux-ck kernel and modules with ck's hrtimer patches\n",
}


@pytest.mark.parametrize("bottom_up", [True, False])
def test_mixed_source_query_builder(bottom_up):
    logger, out, _ = make_logger()
    builder = SourceQueryBuilder(MockClient([LINUX_CK]), logger, "votes", TargetMode.ANY,
                                 "", bottom_up, False, False)
    db = MockDB()
    builder.execute(db, ["linux"])
    assert len(builder) == 3
    expected = ["linux-zen", "linux-ck", "linux"]
    if not bottom_up:
        expected.reverse()
    assert builder.result_names == expected

    builder.results(db, SearchVerbosity.DETAILED)
    assert out.getvalue() == MIXED_WANT[bottom_up]


@pytest.mark.parametrize("bottom_up", [True, False])
def test_source_query_builder_separate_sources(bottom_up):
    logger, out, _ = make_logger()
    builder = SourceQueryBuilder(MockClient([LINUX_CK]), logger, "votes", TargetMode.ANY,
                                 "", bottom_up, False, True)
    db = MockDB()
    builder.execute(db, ["linux"])
    assert len(builder) == 3
    expected = ["linux-ck", "linux-zen", "linux"]
    if not bottom_up:
        expected.reverse()
    assert builder.result_names == expected

    builder.results(db, SearchVerbosity.DETAILED)
    assert out.getvalue() == SEPARATE_WANT[bottom_up]


def test_minimal_results_print_names_only():
    logger, out, _ = make_logger()
    builder = SourceQueryBuilder(MockClient([LINUX_CK]), logger, "votes", TargetMode.ANY,
                                 "", False, False, True)
    builder.execute(MockDB(), ["linux"])
    builder.results(MockDB(), SearchVerbosity.MINIMAL)
    assert out.getvalue() == "linux\nlinux-zen\nlinux-ck\n"


def test_number_menu_counts_down_when_bottom_up():
    logger, out, _ = make_logger()
    builder = SourceQueryBuilder(MockClient([LINUX_CK]), logger, "votes", TargetMode.ANY,
                                 "", True, True, True)
    builder.execute(MockDB(), ["linux"])
    builder.results(MockDB(), SearchVerbosity.NUMBER_MENU)
    lines = out.getvalue().splitlines()
    assert lines[0].startswith(colors.magenta("3") + " ")
    assert lines[2].startswith(colors.magenta("1") + " ")


def test_get_targets_include_and_exclude():
    logger, _, _ = make_logger()
    builder = SourceQueryBuilder(MockClient([LINUX_CK]), logger, "votes", TargetMode.ANY,
                                 "", False, False, True)
    builder.execute(MockDB(), ["linux"])
    assert builder.get_targets({1}, set(), set()) == ["core/linux"]
    assert builder.get_targets(set(), {1}, set()) == ["core/linux-zen", "aur/linux-ck"]


def test_get_targets_bottom_up_numbers_from_the_end():
    logger, _, _ = make_logger()
    builder = SourceQueryBuilder(MockClient([LINUX_CK]), logger, "votes", TargetMode.ANY,
                                 "", True, False, True)
    builder.execute(MockDB(), ["linux"])
    assert builder.get_targets({1}, set(), set()) == ["core/linux"]


def test_aur_failure_is_logged_and_repo_results_kept():
    logger, out, err = make_logger()
    builder = SourceQueryBuilder(MockClient(error=ValueError("offline")), logger, "votes",
                                 TargetMode.ANY, "", False, False, True)
    builder.execute(MockDB(), ["linux"])
    assert builder.result_names == ["linux", "linux-zen"]
    assert "Error during AUR search" in err.getvalue()
    assert "offline" in err.getvalue()
    assert "Showing repo packages only" in out.getvalue()


def test_repo_mode_skips_aur():
    logger, _, _ = make_logger()
    client = MockClient([LINUX_CK])
    builder = SourceQueryBuilder(client, logger, "votes", TargetMode.REPO, "", False, False, True)
    builder.execute(MockDB(), ["linux"])
    assert client.queries == []
    assert "linux-ck" not in builder.result_names


def test_query_aur_returns_first_success():
    class Flaky(MockClient):
        def get(self, query):
            self.queries.append(query)
            if query.needles == ["bad"]:
                raise ValueError("nope")
            return [LINUX_CK]

    client = Flaky()
    assert query_aur(client, ["bad", "linux"], "maintainer") == [LINUX_CK]
    assert client.queries[1].needles == ["linux"]
    assert client.queries[1].by is SearchBy.MAINTAINER
    assert client.queries[1].contains is True


def test_query_aur_all_failures_raise():
    with pytest.raises(AURSearchError) as info:
        query_aur(MockClient(error=ValueError("down")), ["a", "b"], "")
    assert "down" in str(info.value)


def test_query_aur_without_terms_is_empty():
    assert query_aur(MockClient(error=ValueError("down")), [], "") == []


def test_get_search_by():
    assert get_search_by("maintainer") is SearchBy.MAINTAINER
    assert get_search_by("comaintainers") is SearchBy.CO_MAINTAINERS
    assert get_search_by("name-desc") is SearchBy.NAME_DESC
    assert get_search_by("anything") is SearchBy.NAME_DESC


def test_remove_invalid_targets():
    targets = ["aur/foo", "core/bar", "baz"]
    assert remove_invalid_targets(targets, TargetMode.REPO) == ["core/bar", "baz"]
    assert remove_invalid_targets(targets, TargetMode.AUR) == ["aur/foo", "baz"]
    assert remove_invalid_targets(targets, TargetMode.ANY) == targets


def test_hamming_similarity():
    assert hamming_similarity("", "") == 1.0
    assert hamming_similarity("Linux", "linux") == 1.0
    assert hamming_similarity("abc", "xyz") == 0.0
    assert hamming_similarity("linux-ck", "linux") == pytest.approx(0.625)
    assert hamming_similarity("ab", "abcd") == hamming_similarity("abcd", "ab")


def test_aur_search_string_flags():
    pkg = AurPkg(name="foo", version="1.0", description="desc", maintainer="",
                 out_of_date=1600000000)
    text = aur_pkg_search_string(pkg, MockDB(local={"foo": LocalPkg("0.9")}), True)
    assert "(Orphaned)" in text
    assert "(Out-of-date:" in text
    assert "(Installed: 0.9)" in text
    assert text.endswith("\tdesc")


def test_sync_search_string_groups_and_installed():
    pkg = RepoPkg("linux", "5.16.0", "kernel")
    text = sync_pkg_search_string(pkg, MockDB(local={"linux": LocalPkg("5.16.0")},
                                              groups=["base", "devel"]), False)
    assert "[base devel] " in text
    assert "(Installed)" in text
    assert text.endswith("\n    kernel")