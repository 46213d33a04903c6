"""Target framework moniker recognition."""

from typing import FrozenSet, Iterable

KNOWN_TFMS = (
    "netcoreapp1.0", "netcoreapp1.1", "netcoreapp2.0", "netcoreapp2.1",
    "netcoreapp2.2", "netcoreapp3.0", "netcoreapp3.1",
    "net5.0", "net6.0", "net7.0", "net8.0", "net9.0", "net10.0",
    "netstandard1.0", "netstandard1.1", "netstandard1.2", "netstandard1.3",
    "netstandard1.4", "netstandard1.5", "netstandard1.6",
    "netstandard2.0", "netstandard2.1",
    "net11", "net20", "net35", "net40", "net403", "net45", "net451", "net452",
    "net46", "net461", "net462", "net47", "net471", "net472", "net48", "net481",
)


class TfmCatalog:
    """Case-insensitive set of folder names recognized as target frameworks."""

    def __init__(self, extra: Iterable[str] = ()):
        names = list(KNOWN_TFMS) + [name.strip() for name in extra if name and name.strip()]
        self._names: FrozenSet[str] = frozenset(name.casefold() for name in names)

    def is_tfm_name(self, name: str) -> bool:
        return bool(name) and name.casefold() in self._names

    def __contains__(self, name: str) -> bool:
        return self.is_tfm_name(name)

    def __len__(self) -> int:
        return len(self._names)
