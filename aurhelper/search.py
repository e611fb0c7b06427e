"""Searching the AUR and the sync repositories, and ranking and printing the results."""

from __future__ import annotations

import enum
import unicodedata
from dataclasses import dataclass, field
from typing import Any

from .colors import bold, color_hash, cyan, green, magenta, red
from .logger import GLOBAL_LOGGER, warnln
from .parser import TargetMode
from .textutil import format_time, human, split_db_from_name, translate

SOURCE_AUR = "aur"

_MIN_VOTES = 30
_WELL_KNOWN_SOURCES = {
    SOURCE_AUR: 0,
    "core": 40,
    "extra": 30,
    "community": 20,
    "multilib": 10,
}
_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193


class SearchVerbosity(enum.IntEnum):
    """How much is printed for each search result."""

    NUMBER_MENU = 0
    DETAILED = 1
    MINIMAL = 2


class SearchBy(str, enum.Enum):
    """The AUR field a search term is matched against."""

    NAME = "name"
    NAME_DESC = "name-desc"
    MAINTAINER = "maintainer"
    SUBMITTER = "submitter"
    DEPENDS = "depends"
    MAKE_DEPENDS = "makedepends"
    OPT_DEPENDS = "optdepends"
    CHECK_DEPENDS = "checkdepends"
    PROVIDES = "provides"
    CONFLICTS = "conflicts"
    REPLACES = "replaces"
    GROUPS = "groups"
    KEYWORDS = "keywords"
    CO_MAINTAINERS = "comaintainers"
    NONE = ""


_SEARCH_BY_VALUES = {
    item.value: item for item in SearchBy if item not in (SearchBy.NAME_DESC, SearchBy.NONE)
}
_TERM_FILTERED = (SearchBy.NAME_DESC, SearchBy.NONE, SearchBy.NAME)


class AURSearchError(Exception):
    """Raised when the AUR could not be searched."""

    def __init__(self, inner):
        super().__init__(translate("Error during AUR search: %s\n", str(inner)))
        self.inner = inner


class NoQueryError(Exception):
    """Raised when results are requested before a query was executed."""

    def __init__(self):
        super().__init__(translate("no query was executed"))


@dataclass
class AurPkg:
    """A package as described by the AUR."""

    name: str
    version: str = ""
    description: str = ""
    num_votes: int = 0
    popularity: float = 0.0
    maintainer: str = ""
    out_of_date: int = 0
    package_base: str = ""
    url: str = ""
    provides: list = field(default_factory=list)


@dataclass
class AurQuery:
    """One request to the AUR: the needles, the field to match and substring matching."""

    needles: list
    by: SearchBy = SearchBy.NAME_DESC
    contains: bool = True


class _CombinedError(Exception):
    """Several failures reported together."""

    def __init__(self, errors):
        self.errors = list(errors)
        noun = "error" if len(self.errors) == 1 else "errors"
        verb = "occurred"
        lines = "".join(f"\t* {err}\n" for err in self.errors)
        super().__init__(f"{len(self.errors)} {noun} {verb}:\n{lines}\n")


def get_search_by(value):
    """Map a configured search field name to SearchBy; unknown names mean name-desc."""
    return _SEARCH_BY_VALUES.get(value, SearchBy.NAME_DESC)


def remove_invalid_targets(targets, mode):
    """Drop targets whose repository prefix the target mode excludes, warning about each."""
    kept = []
    for target in targets:
        db_name, _ = split_db_from_name(target)

        if db_name == SOURCE_AUR and not mode.at_least_aur():
            warnln(translate("%s: can't use target with option --repo -- skipping", cyan(target)))
            continue

        if db_name not in (SOURCE_AUR, "") and not mode.at_least_repo():
            warnln(translate("%s: can't use target with option --aur -- skipping", cyan(target)))
            continue

        kept.append(target)
    return kept


def query_aur(aur_client, pkgs, search_by):
    """Search the AUR word by word, returning the results of the first request that succeeds.

    aur_client.get(AurQuery) returns a list of AurPkg. Raises AURSearchError
    when every request fails.
    """
    by = get_search_by(search_by)
    errors = []

    for word in pkgs:
        try:
            return aur_client.get(AurQuery(needles=[word], by=by, contains=True))
        except Exception as exc:  # noqa: BLE001 - collected and reported together
            errors.append(exc)

    if errors:
        raise AURSearchError(_CombinedError(errors))
    return []


def _has_symbol(text):
    return any(unicodedata.category(char).startswith("S") for char in text)


def matches_search(pkg, terms):
    """Whether every term appears in the package name or description, ignoring case."""
    if len(terms) <= 1:
        return True

    name = pkg.name.lower()
    description = pkg.description.lower()
    for term in terms:
        if _has_symbol(term):
            return True
        target = term.lower()
        if target not in name and target not in description:
            return False
    return True


def hamming_similarity(first, second):
    """Case-insensitive Hamming similarity in [0, 1], padding the shorter string."""
    first, second = first.lower(), second.lower()
    if not first and not second:
        return 1.0

    shorter, longer = sorted((first, second), key=len)
    distance = len(longer) - len(shorter)
    distance += sum(a != b for a, b in zip(shorter, longer))
    return 1 - distance / len(longer)


def _fnv32a(data):
    value = _FNV_OFFSET
    for byte in data:
        value ^= byte
        value = (value * _FNV_PRIME) & 0xFFFFFFFF
    return value


@dataclass
class _Result:
    source: str
    name: str
    description: str
    votes: int
    provides: list


@dataclass
class _Ranker:
    """Scores results against the search string, caching per name and per source."""

    search: str
    separate_sources: bool
    _distance_cache: dict = field(default_factory=dict)
    _source_cache: dict = field(default_factory=dict)

    @staticmethod
    def _aur_popularity(result):
        return 1 - (_MIN_VOTES / (_MIN_VOTES + float(result.votes)))

    def metric(self, result):
        cached = self._distance_cache.get(result.name)
        if cached is not None:
            return cached

        if result.name.casefold() == self.search.casefold():
            return 1.0

        similarity = hamming_similarity(result.name, self.search)
        for provided in result.provides:
            similarity = max(similarity, hamming_similarity(provided, self.search) * 0.80)

        description_similarity = hamming_similarity(result.description, self.search)
        popularity = self._aur_popularity(result) if result.source == SOURCE_AUR else 1.0

        score = similarity * 0.5 + description_similarity * 0.2 + popularity * 0.3
        self._distance_cache[result.name] = score
        return score

    def source_score(self, source, score):
        if not self.separate_sources:
            return 0
        if score == 1.0:
            return 50
        if source in _WELL_KNOWN_SOURCES:
            return _WELL_KNOWN_SOURCES[source]

        cached = self._source_cache.get(source)
        if cached is None:
            cached = float(_fnv32a(source.encode()) % 9 + 2)
            self._source_cache[source] = cached
        return cached

    def rank(self, result):
        score = self.metric(result)
        return self.source_score(result.source, score) + score


def _installed_suffix(db_executor, name, version):
    local = db_executor.local_package(name)
    if local is None:
        return ""
    if local.version != version:
        return bold(green(translate("(Installed: %s)", local.version)))
    return bold(green(translate("(Installed)")))


def _line_break(single_line_results):
    return "\t" if single_line_results else "\n    "


def aur_pkg_search_string(pkg, db_executor, single_line_results):
    """Format an AUR package for the search listing."""
    text = (
        bold(color_hash(SOURCE_AUR)) + "/" + bold(pkg.name)
        + " " + cyan(pkg.version)
        + bold(f" (+{pkg.num_votes}")
        + " " + bold(f"{pkg.popularity:.2f}) ")
    )

    if not pkg.maintainer:
        text += bold(red(translate("(Orphaned)"))) + " "

    if pkg.out_of_date:
        text += bold(red(translate("(Out-of-date: %s)", format_time(pkg.out_of_date)))) + " "

    text += _installed_suffix(db_executor, pkg.name, pkg.version)
    text += _line_break(single_line_results)
    return text + pkg.description


def sync_pkg_search_string(pkg, db_executor, single_line_results):
    """Format a repository package (db_name, name, version, size, isize, description)."""
    text = (
        bold(color_hash(pkg.db_name)) + "/" + bold(pkg.name)
        + " " + cyan(pkg.version)
        + bold(" (" + human(pkg.size) + " " + human(pkg.isize) + ") ")
    )

    groups = db_executor.package_groups(pkg)
    if groups:
        text += "[" + " ".join(groups) + "] "

    text += _installed_suffix(db_executor, pkg.name, pkg.version)
    text += _line_break(single_line_results)
    return text + pkg.description


def _provided_names(provides):
    return [getattr(item, "name", item) for item in provides]


class SourceQueryBuilder:
    """Runs a search over the AUR and sync repositories and keeps the ranked results.

    The database executor provides sync_packages(*terms), local_package(name)
    and package_groups(pkg).
    """

    def __init__(self, aur_client, logger, sort_by, target_mode, search_by,
                 bottom_up, single_line_results, separate_sources):
        self.aur_client = aur_client
        self.logger = logger if logger is not None else GLOBAL_LOGGER
        self.sort_by = sort_by
        self.target_mode = target_mode if target_mode is not None else TargetMode.ANY
        self.search_by = search_by
        self.bottom_up = bottom_up
        self.single_line_results = single_line_results
        self.separate_sources = separate_sources
        self._query_map: dict[str, dict[str, Any]] = {}
        self._results: list[_Result] = []

    @property
    def result_names(self):
        """Names of the ranked results, in the order they are held."""
        return [result.name for result in self._results]

    def execute(self, db_executor, pkgs):
        """Search for pkgs and rank the findings; AUR failures are logged, not raised."""
        pkgs = remove_invalid_targets(pkgs, self.target_mode)
        ranker = _Ranker(search="".join(pkgs), separate_sources=self.separate_sources)
        results = []
        aur_error = None
        repo_results = []

        if self.target_mode.at_least_aur():
            try:
                aur_results = query_aur(self.aur_client, pkgs, self.search_by)
            except AURSearchError as exc:
                aur_error = exc
                aur_results = []

            filter_terms = get_search_by(self.search_by) in _TERM_FILTERED
            for pkg in aur_results:
                bucket = self._query_map.setdefault(SOURCE_AUR, {})
                if filter_terms and not matches_search(pkg, pkgs):
                    continue
                bucket[pkg.name] = pkg
                results.append(_Result(
                    source=SOURCE_AUR,
                    name=pkg.name,
                    description=pkg.description,
                    votes=pkg.num_votes,
                    provides=list(pkg.provides),
                ))

        if self.target_mode.at_least_repo():
            repo_results = list(db_executor.sync_packages(*pkgs))
            for pkg in repo_results:
                self._query_map.setdefault(pkg.db_name, {})[pkg.name] = pkg
                results.append(_Result(
                    source=pkg.db_name,
                    name=pkg.name,
                    description=pkg.description,
                    votes=-1,
                    provides=_provided_names(getattr(pkg, "provides", ())),
                ))

        self._results = sorted(results, key=ranker.rank, reverse=not self.bottom_up)

        if aur_error is not None:
            self.logger.errorln(aur_error)
            if repo_results:
                self.logger.warnln(translate("Showing repo packages only"))

    def results(self, db_executor, verbosity):
        """Print the results at the given verbosity."""
        total = len(self._results)
        for index, result in enumerate(self._results):
            if verbosity == SearchVerbosity.MINIMAL:
                self.logger.println(result.name)
                continue

            text = ""
            if verbosity == SearchVerbosity.NUMBER_MENU:
                number = total - index if self.bottom_up else index + 1
                text += magenta(str(number)) + " "

            pkg = self._query_map[result.source][result.name]
            if isinstance(pkg, AurPkg):
                text += aur_pkg_search_string(pkg, db_executor, self.single_line_results)
            else:
                text += sync_pkg_search_string(pkg, db_executor, self.single_line_results)

            self.logger.println(text)

    def __len__(self):
        return len(self._results)

    def get_targets(self, include, exclude, other_exclude):
        """Return 'source/name' for the menu numbers chosen by include or not excluded."""
        is_include = not exclude and not other_exclude
        ordered = reversed(self._results) if self.bottom_up else self._results

        targets = []
        for number, result in enumerate(ordered, 1):
            chosen = number in include if is_include else number not in exclude
            if chosen:
                targets.append(f"{result.source}/{result.name}")
        return targets