"""Preprocessors that reduce bounded and dependency items to 0/1 pseudo-items.

- BoundedExpander: binary decomposition of a multiplicity ceiling C into
  multipliers 1, 2, 4, ..., plus the remainder, i.e. ceil(log2(C+1))
  pseudo-items whose 0/1 subsets reach every total count 0..C.
- PackageExpander: every main item with k attachments becomes 2^k packages
  (main plus one subset of its attachments). Packages of one main are
  mutually exclusive.

Package enumeration is exponential in the attachments of a single main.
Callers are expected to keep that number small; above the configured
ceiling (SolverConfig.max_attachments, 16 by default, i.e. 65536 packages
for one main) the catalog is rejected instead of expanded.
"""

from typing import Iterator, List, Sequence, Tuple

from config import DEFAULT_CONFIG
from errors import AttachmentLimitError
from models import ItemCatalog, Package, SplitItem


def binary_multipliers(count):
    """Split a count into powers of two plus a non-power remainder.

    Args:
        count: Multiplicity ceiling (>= 0)

    Returns:
        List of multipliers summing to count, e.g. 10 -> [1, 2, 4, 3]
    """
    multipliers = []
    k = 1
    remaining = count
    while k <= remaining:
        multipliers.append(k)
        remaining -= k
        k *= 2
    if remaining > 0:
        multipliers.append(remaining)
    return multipliers


class BoundedExpander:
    """Turn every bounded-count item into O(log count) 0/1 pseudo-items."""

    def expand_item(self, index, item) -> List[SplitItem]:
        return [SplitItem(item.weight * k, item.value * k, index, k)
                for k in binary_multipliers(item.count)]

    def expand(self, catalog: ItemCatalog) -> List[SplitItem]:
        """Expand a whole catalog, keeping original item order.

        Pseudo-items of one original item are contiguous and ordered by the
        decomposition (1, 2, 4, ..., remainder).
        """
        split_items: List[SplitItem] = []
        for index, item in enumerate(catalog.items):
            split_items.extend(self.expand_item(index, item))
        return split_items


def enumerate_subsets(members: Sequence[int]) -> Iterator[Tuple[int, ...]]:
    """Yield every subset of `members` in bit-mask order.

    Mask m selects members[b] for every set bit b, so the empty subset comes
    first and the full set last. The generator yields 2^len(members) tuples.
    """
    k = len(members)
    for mask in range(1 << k):
        yield tuple(members[b] for b in range(k) if mask & (1 << b))


class PackageExpander:
    """Enumerate the packages of a dependency catalog.

    Args:
        max_attachments: Attachments allowed per main before refusing
    """

    def __init__(self, max_attachments: int = DEFAULT_CONFIG.max_attachments):
        self.max_attachments = max_attachments

    def check_limit(self, main_index, attachments):
        if len(attachments) > self.max_attachments:
            raise AttachmentLimitError(
                f"Main item {main_index + 1} has {len(attachments)} attachments; "
                f"at most {self.max_attachments} are enumerated "
                f"({2 ** len(attachments)} packages requested)")

    def check_catalog(self, catalog):
        """Check every main of the catalog and return [(main_index, attachments)]."""
        mains = catalog.attachments()
        for main_index, attachments in mains:
            self.check_limit(main_index, attachments)
        return mains

    def packages_for(self, catalog, main_index, attachments) -> List[Package]:
        self.check_limit(main_index, attachments)
        main = catalog.items[main_index]
        packages = []
        for subset in enumerate_subsets(attachments):
            weight = main.weight + sum(catalog.items[a].weight for a in subset)
            value = main.value + sum(catalog.items[a].value for a in subset)
            packages.append(Package(weight, value, main_index, (main_index,) + subset))
        return packages

    def expand(self, catalog: ItemCatalog) -> List[Package]:
        """Expand every main item (parent 0) in input order.

        All attachment counts are checked before any package is built, so an
        oversized main fails the call without partial output.
        """
        mains = self.check_catalog(catalog)
        packages: List[Package] = []
        for main_index, attachments in mains:
            packages.extend(self.packages_for(catalog, main_index, attachments))
        return packages
