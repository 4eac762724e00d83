"""String block writer with suffix sharing.

The block always starts with a NUL byte so that offset 0 reads as the
empty string. Every added string is stored once, NUL-terminated, and each
of its suffixes (cut on character boundaries) is remembered so that a later
string equal to such a suffix points into the earlier copy.

Only suffixes of strings already written are shared, in insertion order:
adding "3", "23", "123" stores all three. The game's own files are
compacted differently, so rewritten tables are equivalent but not
byte-identical to the originals.
"""

from typing import Dict


class StringCache:
    """Builds the string block of a DBC file while rows are written."""

    def __init__(self):
        self._buffer = bytearray(b"\x00")
        self._offsets: Dict[str, int] = {"": 0}

    def add(self, s: str) -> int:
        """Add a string and return its offset in the block.

        Adding the same string again returns the first offset and does not
        grow the block.

        Raises:
            ValueError: If the string contains a NUL byte, which would end it
                early in the block.
        """
        if "\x00" in s:
            raise ValueError(f"String {s!r} contains a NUL byte")

        offset = self._offsets.get(s)
        if offset is not None:
            return offset

        offset = len(self._buffer)
        encoded = s.encode("utf-8")
        self._buffer += encoded
        self._buffer.append(0)

        # Register every suffix; the first string to provide one keeps it
        suffix_offset = offset
        for i, ch in enumerate(s):
            self._offsets.setdefault(s[i:], suffix_offset)
            suffix_offset += len(ch.encode("utf-8"))

        return offset

    def size(self) -> int:
        """Length of the string block in bytes."""
        return len(self._buffer)

    def buffer(self) -> bytes:
        return bytes(self._buffer)

    def __contains__(self, s: str) -> bool:
        return s in self._offsets

    def __len__(self) -> int:
        return len(self._buffer)
