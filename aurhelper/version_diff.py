"""Version comparison and highlighting of where two versions differ."""

from . import colors

_DEVEL_SUFFIXES = ("git", "svn", "hg", "bzr", "nightly", "insiders-bin")
_PRERELEASE_WORDS = ("rc", "pre", "alpha", "beta")


def _followed_by_word(text, index, words):
    """Whether a word from words starts right after index, outside a longer word."""
    if text[index].isalpha():
        return False

    following = index + 1
    return any(
        index < len(text) - len(word) and text[following:following + len(word)] == word
        for word in words
    )


def get_version_diff(old_version, new_version):
    """Return both versions with their differing tails coloured red and green."""
    if old_version == new_version:
        return old_version + colors.red(""), new_version + colors.green("")

    diff_position = 0
    last_old = len(old_version) - 1
    last_new = len(new_version) - 1

    for index, char in enumerate(old_version):
        special = not (char.isalpha() or char.isnumeric())

        if index >= len(new_version) or char != new_version[index]:
            if special:
                diff_position = index
            break

        at_end = index in (last_old, last_new) and (
            len(old_version) != len(new_version) or old_version[index] == new_version[index]
        )
        if special or at_end or _followed_by_word(old_version, index, _PRERELEASE_WORDS):
            diff_position = index + 1

    same = old_version[:diff_position]
    left = same + colors.red(old_version[diff_position:])
    right = same + colors.green(new_version[diff_position:])
    return left, right


def is_devel_name(name):
    """Whether a package name marks a development (VCS) package."""
    if any(name.endswith("-" + suffix) for suffix in _DEVEL_SUFFIXES):
        return True
    return "-always-" in name


def is_devel_package(pkg):
    """Whether a package with name and base attributes is a development package."""
    return is_devel_name(pkg.name) or is_devel_name(pkg.base)


def _is_digit(char):
    return "0" <= char <= "9"


def _is_alpha(char):
    return "a" <= char <= "z" or "A" <= char <= "Z"


def _is_alnum(char):
    return _is_digit(char) or _is_alpha(char)


def _segment_compare(first, second):
    """Compare two version fragments segment by segment; returns -1, 0 or 1."""
    if first == second:
        return 0

    one = two = 0
    prev1 = prev2 = 0
    len1, len2 = len(first), len(second)

    while one < len1 and two < len2:
        while one < len1 and not _is_alnum(first[one]):
            one += 1
        while two < len2 and not _is_alnum(second[two]):
            two += 1

        if one >= len1 or two >= len2:
            break

        if one - prev1 != two - prev2:
            return -1 if one - prev1 < two - prev2 else 1

        end1, end2 = one, two
        is_number = _is_digit(first[end1])
        accept = _is_digit if is_number else _is_alpha
        while end1 < len1 and accept(first[end1]):
            end1 += 1
        while end2 < len2 and accept(second[end2]):
            end2 += 1

        if one == end1:
            return -1
        if two == end2:
            return 1 if is_number else -1

        part1, part2 = first[one:end1], second[two:end2]
        if is_number:
            part1 = part1.lstrip("0")
            part2 = part2.lstrip("0")
            if len(part1) != len(part2):
                return 1 if len(part1) > len(part2) else -1

        if part1 != part2:
            return -1 if part1 < part2 else 1

        one = prev1 = end1
        two = prev2 = end2

    rest1, rest2 = first[one:], second[two:]
    if not rest1 and not rest2:
        return 0
    if (not rest1 and not _is_alpha(rest2[0])) or (rest1 and _is_alpha(rest1[0])):
        return -1
    return 1


def _parse_evr(version):
    index = 0
    while index < len(version) and _is_digit(version[index]):
        index += 1

    if index < len(version) and version[index] == ":":
        epoch = version[:index] or "0"
        rest = version[index + 1:]
    else:
        epoch = "0"
        rest = version

    version_part, sep, release = rest.rpartition("-")
    if not sep:
        return epoch, rest, None
    return epoch, version_part, release


def vercmp(first, second):
    """Compare two package versions ([epoch:]version[-release]); returns -1, 0 or 1."""
    if first == second:
        return 0

    epoch1, version1, release1 = _parse_evr(first)
    epoch2, version2, release2 = _parse_evr(second)

    result = _segment_compare(epoch1, epoch2)
    if result == 0:
        result = _segment_compare(version1, version2)
        if result == 0 and release1 and release2:
            result = _segment_compare(release1, release2)
    return result