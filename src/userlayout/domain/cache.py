"""CacheEntryTag — immutable ``(tag_type, tag_value)`` cache-key component.

Tags label cache entries so that every entry derived from one source
(for example one user's layout) can be evicted together.

INVARIANT: Two tags are equal iff both fields are equal (None equals only
None). The hash is computed once at construction and never changes.
The hash uses the Java ``String.hashCode`` algorithm so tag hashes are
stable across processes, unlike the salted builtin ``hash(str)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

_PRIME = 31
_INT32 = 1 << 32


def _to_int32(value: int) -> int:
    value &= _INT32 - 1
    return value - _INT32 if value >= 1 << 31 else value


def string_hash(value: str | None) -> int:
    """Java-compatible 32-bit string hash; 0 for None.

    Hashes UTF-16 code units, so characters outside the BMP count as two.
    """
    if value is None:
        return 0
    data = value.encode("utf-16-be")
    result = 0
    for i in range(0, len(data), 2):
        result = (_PRIME * result + ((data[i] << 8) | data[i + 1])) & (_INT32 - 1)
    return _to_int32(result)


@dataclass(frozen=True)
class CacheEntryTag:
    """Value-compared tag attached to cache entries.

    Example:
        >>> CacheEntryTag("permission", "VIEW") == CacheEntryTag("permission", "VIEW")
        True
        >>> CacheEntryTag("permission", "VIEW") == CacheEntryTag("permission", "EDIT")
        False
    """

    tag_type: str | None
    tag_value: str | None
    _hash: int = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        result = 1
        result = _to_int32(_PRIME * result + string_hash(self.tag_type))
        result = _to_int32(_PRIME * result + string_hash(self.tag_value))
        object.__setattr__(self, "_hash", result)

    def __hash__(self) -> int:
        return self._hash

    def __str__(self) -> str:
        return f"CacheEntryTag [tag_type={self.tag_type}, tag_value={self.tag_value}]"


LAYOUT_TAG_TYPE = "userLayout"


def layout_tag(layout_id: int) -> CacheEntryTag:
    """The tag carried by every cache entry derived from layout *layout_id*."""
    return CacheEntryTag(LAYOUT_TAG_TYPE, str(layout_id))
