"""Resource identifiers: encoding database values to identifiers and back."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import Any, Protocol

from .naming import camel_to_snake

_DEFAULT_RESOURCE = "<default>"
_INT64_RE = re.compile(r"[+-]?\d+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class ResourceError(ValueError):
    """Raised when an identifier or value cannot be converted."""


class RegistrationError(RuntimeError):
    """Raised on an invalid or repeated registration."""


@dataclass
class Identifier:
    """A resource reference: application name, resource type and resource id."""

    application_name: str = ""
    resource_type: str = ""
    resource_id: str = ""

    @classmethod
    def message_name(cls) -> str:
        return "atlas.rpc.Identifier"


class Codec(Protocol):
    def encode(self, value: Any) -> Identifier | None: ...

    def decode(self, identifier: Identifier | None) -> Any: ...


def _is_nil(identifier: Identifier | None) -> bool:
    return identifier is None or not (
        identifier.application_name or identifier.resource_type or identifier.resource_id
    )


def message_name(message: Any) -> str:
    """The fully qualified name of a message."""
    getter = getattr(message, "message_name", None)
    if callable(getter):
        return getter()
    if isinstance(getter, str):
        return getter
    full_name = getattr(getattr(message, "DESCRIPTOR", None), "full_name", None)
    if isinstance(full_name, str):
        return full_name
    return message.__name__ if isinstance(message, type) else type(message).__name__


def build_string(application_name: str, resource_type: str, resource_id: str) -> str:
    """Format a fully qualified reference "app/type/id"; leading empty parts are left out."""
    if application_name:
        return f"{application_name}/{resource_type}/{resource_id}"
    if resource_type:
        return f"{resource_type}/{resource_id}"
    return resource_id


def parse_string(value: str) -> tuple[str, str, str]:
    """Split a reference into (application name, resource type, resource id)."""
    parts = value.split("/", 2)
    if len(parts) == 1:
        return "", "", parts[0]
    if len(parts) == 2:
        return "", parts[0], parts[1]
    return parts[0], parts[1], parts[2]


class Registry:
    """Codecs per message type plus the settings used to build identifiers."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._codecs: dict[str, Codec] = {}
        self._application_name = ""
        self.return_empty = False
        self.plural = False

    @property
    def application_name(self) -> str:
        with self._lock:
            return self._application_name

    def register_application(self, name: str) -> None:
        """Set the application name put into encoded identifiers; allowed once."""
        with self._lock:
            if self._application_name:
                raise RegistrationError("resource: application name already registered")
            self._application_name = name

    def register_codec(self, codec: Codec | None, message: Any) -> None:
        """Register codec for message's type, or as the default when message is None."""
        key = _DEFAULT_RESOURCE if message is None else message_name(message)
        with self._lock:
            if codec is None:
                raise RegistrationError(f"resource: register nil codec for resource {key}")
            if key in self._codecs:
                raise RegistrationError(
                    f"resource: register codec called twice for resource {key}"
                )
            self._codecs[key] = codec

    def _lookup(self, message: Any) -> Codec | None:
        key = _DEFAULT_RESOURCE if message is None else message_name(message)
        with self._lock:
            return self._codecs.get(key)

    def name(self, message: Any) -> str:
        """Resource name of message: its resource_name(), else its snake_case type name."""
        if message is None:
            return ""
        resource_name = getattr(message, "resource_name", None)
        if callable(resource_name):
            return resource_name()
        result = camel_to_snake(message_name(message).split(".")[-1])
        with self._lock:
            if self.plural:
                result += "s"
        return result

    def decode(self, message: Any, identifier: Identifier | None) -> Any:
        """Decode identifier with the codec of message, or by default rules.

        Without a codec an empty identifier gives None, a None message gives the
        fully qualified string, and otherwise the resource id is returned.
        """
        codec = self._lookup(message)
        if codec is not None:
            return codec.decode(identifier)
        if _is_nil(identifier):
            return None
        if message is None:
            return build_string(
                identifier.application_name, identifier.resource_type, identifier.resource_id
            )
        app = self.application_name
        resource = self.name(message)
        if identifier.application_name not in ("", app):
            raise ResourceError(
                f"resource: invalid application name - {identifier.application_name}, "
                f"expected {app}"
            )
        if identifier.resource_type not in ("", resource):
            raise ResourceError(
                f"resource: invalid resource name - {identifier.resource_type}, "
                f"expected {resource}"
            )
        return identifier.resource_id

    def decode_int64(self, message: Any, identifier: Identifier | None) -> int:
        """Decode identifier as a 64-bit integer; empty values give 0."""
        value = self.decode(message, identifier)
        if value is None:
            return 0
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if not isinstance(value, str):
            raise ResourceError("resource: invalid value type, expected int64")
        if value == "":
            return 0
        if not _INT64_RE.fullmatch(value):
            raise ResourceError("resource: invalid value type, expected int64")
        number = int(value)
        if not _INT64_MIN <= number <= _INT64_MAX:
            raise ResourceError("resource: invalid value type, expected int64")
        return number

    def decode_bytes(self, message: Any, identifier: Identifier | None) -> bytes | None:
        """Decode identifier as bytes; empty values give None."""
        value = self.decode(message, identifier)
        if value is None:
            return None
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        if not isinstance(value, str):
            raise ResourceError("resource: invalid value type, expected []byte")
        if value == "":
            return None
        return value.encode()

    def encode(self, message: Any, value: Any) -> Identifier | None:
        """Encode value into an identifier with the codec of message, or by default rules."""
        codec = self._lookup(message)
        if codec is not None:
            return codec.encode(value)
        if value is None:
            with self._lock:
                return Identifier() if self.return_empty else None
        if isinstance(value, (bytes, bytearray)):
            text = bytes(value).decode()
        elif isinstance(value, int) and not isinstance(value, bool):
            text = str(value)
        elif isinstance(value, str):
            text = value
        else:
            raise ResourceError(f"resource: unsupported value type {type(value).__name__}")
        identifier = Identifier()
        if text == "":
            return identifier
        if message is None:
            (
                identifier.application_name,
                identifier.resource_type,
                identifier.resource_id,
            ) = parse_string(text)
        if not identifier.application_name:
            identifier.application_name = self.application_name
        if not identifier.resource_type:
            identifier.resource_type = self.name(message)
        if not identifier.resource_id:
            identifier.resource_id = text
        return identifier


_default = Registry()


def register_application(name: str) -> None:
    """Register the application name in the default registry."""
    _default.register_application(name)


def register_codec(codec: Codec | None, message: Any) -> None:
    """Register a codec in the default registry."""
    _default.register_codec(codec, message)


def decode(message: Any, identifier: Identifier | None) -> Any:
    """Decode with the default registry."""
    return _default.decode(message, identifier)


def decode_int64(message: Any, identifier: Identifier | None) -> int:
    """Decode as an integer with the default registry."""
    return _default.decode_int64(message, identifier)


def decode_bytes(message: Any, identifier: Identifier | None) -> bytes | None:
    """Decode as bytes with the default registry."""
    return _default.decode_bytes(message, identifier)


def encode(message: Any, value: Any) -> Identifier | None:
    """Encode with the default registry."""
    return _default.encode(message, value)


def name(message: Any) -> str:
    """Resource name of message in the default registry."""
    return _default.name(message)


def application_name() -> str:
    """Application name registered in the default registry."""
    return _default.application_name


def set_return_empty() -> None:
    """Make encoding None give an empty identifier instead of None."""
    with _default._lock:
        _default.return_empty = True


def set_plural() -> None:
    """Make resource names plural by appending "s"."""
    with _default._lock:
        _default.plural = True