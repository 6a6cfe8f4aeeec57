"""Decode the positional argument format of the command-line tools.

Format (one invocation per variant):
    <capacity> <n> <item>...                  0/1, complete, multiple, group,
                                              depend, mixed, count, tree
    <capacity> <capacity2> <n> <item>...      2d
    <capacity> <K> <n> <item>...              kth

Item tokens are comma separated:
    w,v        0/1, complete, count, kth
    w,m,v      2d (secondary cost in the middle)
    w,v,c      multiple (copy ceiling)
    w,v,g      group (group id)
    w,v,p      depend, tree (1-based parent, 0 = main/root)
    w,v,t[,c]  mixed (type tag, optional copy ceiling for type 2)
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from errors import InsufficientArgumentsError, MalformedFieldError
from models import Item, ItemCatalog, Variant


log = logging.getLogger(__name__)

HEADER_FIELDS = {
    Variant.TWO_DIMENSIONAL: ("capacity", "capacity2", "n"),
    Variant.KTH_BEST: ("capacity", "k", "n"),
}
DEFAULT_HEADER = ("capacity", "n")

ITEM_FIELDS = {
    Variant.ZERO_ONE: ("weight", "value"),
    Variant.COMPLETE: ("weight", "value"),
    Variant.COUNTING: ("weight", "value"),
    Variant.KTH_BEST: ("weight", "value"),
    Variant.TWO_DIMENSIONAL: ("weight", "volume", "value"),
    Variant.BOUNDED: ("weight", "value", "count"),
    Variant.GROUPED: ("weight", "value", "group"),
    Variant.DEPENDENCY: ("weight", "value", "parent"),
    Variant.TREE: ("weight", "value", "parent"),
    Variant.MIXED: ("weight", "value", "item_type"),
}


@dataclass(frozen=True)
class ParsedInput:
    """Decoded invocation.

    Attributes:
        catalog: Items that were actually supplied (may be fewer than declared)
        capacity: Primary capacity
        declared_count: Item count announced in the header
        capacity2: Secondary capacity (2d only)
        k: K (kth only)
    """
    catalog: ItemCatalog
    capacity: int
    declared_count: int
    capacity2: Optional[int] = None
    k: Optional[int] = None

    @property
    def truncated(self):
        return len(self.catalog) < self.declared_count


def parse_int(text, field):
    """Parse one integer field.

    Raises:
        MalformedFieldError: If text is empty or not an integer
    """
    stripped = text.strip()
    if not stripped:
        raise MalformedFieldError(field, "empty value")
    try:
        return int(stripped)
    except ValueError:
        raise MalformedFieldError(field, f"not an integer: {text!r}") from None


def parse_item(variant, token, position=1) -> Item:
    """Decode one comma-separated item token for the given variant."""
    variant = Variant(variant)
    names = ITEM_FIELDS[variant]
    parts = token.split(",")
    allowed = (len(names), len(names) + 1) if variant is Variant.MIXED else (len(names),)
    if len(parts) not in allowed:
        raise MalformedFieldError(
            f"item {position}",
            f"expected {len(names)} comma-separated fields ({','.join(names)}), got {token!r}")
    values = {name: parse_int(part, f"item {position}.{name}") for name, part in zip(names, parts)}
    if len(parts) > len(names):
        values["count"] = parse_int(parts[-1], f"item {position}.count")
    return Item(**values)


def parse_arguments(variant, args: Sequence[str]) -> ParsedInput:
    """Decode header and item tokens into a validated ItemCatalog.

    Missing header values are fatal. When fewer item tokens than the
    declared count are present, the catalog is truncated to the tokens
    available and a warning is logged; extra tokens are ignored.

    Args:
        variant: Variant (or its short name)
        args: Positional arguments after the variant name

    Returns:
        ParsedInput

    Raises:
        InsufficientArgumentsError: If a header value is missing
        MalformedFieldError: If a field is not an integer or lacks separators
        ContractViolation: If a decoded item breaks a domain invariant
    """
    variant = Variant(variant)
    header = HEADER_FIELDS.get(variant, DEFAULT_HEADER)
    if len(args) < len(header):
        missing = ", ".join(header[len(args):])
        raise InsufficientArgumentsError(f"Insufficient parameters: missing {missing}")
    values = {name: parse_int(args[i], name) for i, name in enumerate(header)}
    declared = values["n"]
    if declared < 0:
        raise MalformedFieldError("n", f"item count must be >= 0, got {declared}")

    tokens = list(args[len(header):len(header) + declared])
    if len(tokens) < declared:
        log.warning("Declared %d items but only %d supplied; truncating to the supplied items",
                    declared, len(tokens))
    items: List[Item] = [parse_item(variant, tok, pos) for pos, tok in enumerate(tokens, start=1)]

    return ParsedInput(
        catalog=ItemCatalog(variant, items),
        capacity=values["capacity"],
        declared_count=declared,
        capacity2=values.get("capacity2"),
        k=values.get("k"),
    )
