"""Mapping of keys to sets of strings."""


class MapStringSet(dict):
    """A dict whose values are sets of strings."""

    def add(self, key, value):
        """Add value to the set stored under key, creating the set if needed."""
        self.setdefault(key, set()).add(value)


def equal(first, second):
    """Compare two string sets, where None equals only None."""
    if first is None and second is None:
        return True
    if first is None or second is None:
        return False
    return set(first) == set(second)