"""Persistent key/value store for game variables (strings and integers)."""

from __future__ import annotations

import io
import logging
import struct

log = logging.getLogger(__name__)

_UINT = struct.Struct("<I")
_INT = struct.Struct("<i")
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


class DatabaseError(Exception):
    """Raised when a database file is malformed."""


def _encode(text: str) -> bytes:
    return text.encode(_ENCODING, _ERRORS)


class _Reader:
    """Sequential reader over the binary database layout."""

    def __init__(self, data: bytes) -> None:
        self._stream = io.BytesIO(data)

    def _take(self, size: int) -> bytes:
        chunk = self._stream.read(size)
        if len(chunk) != size:
            raise DatabaseError("unexpected end of database file")
        return chunk

    def count(self) -> int:
        """Read an entry count; a missing count means no entries."""
        chunk = self._stream.read(_UINT.size)
        if len(chunk) != _UINT.size:
            return 0
        return _UINT.unpack(chunk)[0]

    def uint(self) -> int:
        return _UINT.unpack(self._take(_UINT.size))[0]

    def int(self) -> int:
        return _INT.unpack(self._take(_INT.size))[0]

    def text(self, size: int) -> str:
        raw = self._take(size).partition(b"\0")[0]
        return raw.decode(_ENCODING, _ERRORS)


class Database:
    """Two maps of named values, one of strings and one of integers."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._strings: dict[str, str] = {}
        self._values: dict[str, int] = {}
        if name:
            self.load(name)

    def load(self, name: str) -> None:
        """Replace the contents with those read from the file ``name``."""
        if len(name) < 2:
            raise ValueError(f"database file name too short: {name!r}")
        self.name = name
        self.clear()

        with open(name, "rb") as handle:
            reader = _Reader(handle.read())

        for _ in range(reader.count()):
            key_len = reader.uint()
            if key_len == 0:
                raise DatabaseError("zero-length string key")
            key = reader.text(key_len)
            value_len = reader.uint()
            if value_len == 0:
                log.error("zero-length value for string key %r", key)
                continue
            self.set_str(key, reader.text(value_len))

        for _ in range(reader.count()):
            key_len = reader.uint()
            if key_len == 0:
                log.error("zero-length integer key")
                continue
            key = reader.text(key_len)
            self.set_val(key, reader.int())

        log.debug(
            "loaded %d strings and %d values", len(self._strings), len(self._values)
        )

    def save(self, name: str) -> None:
        """Write the contents to the file ``name``."""
        if len(name) < 2:
            raise ValueError(f"database file name too short: {name!r}")
        self.name = name

        out = bytearray()
        strings = sorted((_encode(k), _encode(v)) for k, v in self._strings.items())
        out += _UINT.pack(len(strings))
        for key, value in strings:
            out += _UINT.pack(len(key)) + key
            out += _UINT.pack(len(value)) + value

        values = sorted((_encode(k), v) for k, v in self._values.items())
        out += _UINT.pack(len(values))
        for key, value in values:
            out += _UINT.pack(len(key)) + key
            out += _INT.pack(value)

        with open(name, "wb") as handle:
            handle.write(out)

        log.info("saved %d strings and %d values", len(strings), len(values))

    def clear(self) -> None:
        self._strings.clear()
        self._values.clear()

    def get_val(self, name: str) -> int:
        """Return the integer ``name``, creating it as 0 if absent."""
        return self._values.setdefault(name, 0)

    def get_str(self, name: str) -> str:
        """Return the string ``name``, or an empty string if absent."""
        return self._strings.get(name, "")

    def set_val(self, name: str, val: int) -> None:
        if not name:
            return
        self._values[name] = val

    def set_str(self, name: str, value: str) -> None:
        if not name:
            return
        self._strings[name] = value