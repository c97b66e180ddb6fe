"""Codecs converting artifacts to and from cache file bytes.

A codec is any object with ``encode(value) -> bytes`` and
``decode(data) -> value`` that raises :class:`~tote.exceptions.CodecError`
on failure.  :class:`~tote.cache.Tote` is parameterised over a codec rather
than inspecting artifact types at runtime.

:class:`JsonCodec` is the default.  It writes indented UTF-8 JSON so the
file stays human-inspectable, and validates decoded data against the
declared artifact type through a :class:`pydantic.TypeAdapter`, so a file
holding valid JSON of the wrong shape is treated as corrupt.

Example::

    from tote.codec import JsonCodec

    codec = JsonCodec(list[str])
    codec.decode(codec.encode(["a", "b"]))  # ["a", "b"]
"""

from __future__ import annotations

from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from pydantic import TypeAdapter, ValidationError

from tote.exceptions import CodecError

T = TypeVar("T")


@runtime_checkable
class Codec(Protocol[T]):
    """Encode/decode pair between artifact values and bytes."""

    def encode(self, value: T) -> bytes:
        """Serialise *value*; raise :class:`CodecError` if it cannot be represented."""
        ...

    def decode(self, data: bytes) -> T:
        """Deserialise *data*; raise :class:`CodecError` on malformed input."""
        ...


class JsonCodec(Generic[T]):
    """JSON codec validated by a pydantic :class:`~pydantic.TypeAdapter`.

    Args:
        artifact_type: Any type pydantic can validate -- builtins,
            generics such as ``list[str]``, dataclasses, ``BaseModel``
            subclasses, ``ipaddress.IPv4Address`` and so on.  Defaults to
            ``Any``, which accepts any JSON value.
        indent: Indentation passed to the JSON serialiser.  ``None``
            produces compact output.
    """

    def __init__(self, artifact_type: Any = Any, indent: int | None = 2) -> None:
        self._artifact_type = artifact_type
        self._adapter: TypeAdapter[T] = TypeAdapter(artifact_type)
        self._indent = indent

    @property
    def artifact_type(self) -> Any:
        """The type decoded values are validated against."""
        return self._artifact_type

    def encode(self, value: T) -> bytes:
        """Validate *value* against the artifact type and serialize it.

        A value that would not decode back as the artifact type is refused
        here rather than written and later reported as corrupt.
        """
        try:
            validated = self._adapter.validate_python(value)
        except ValidationError as exc:
            raise CodecError(
                f"Cannot encode {type(value).__name__} as {self._describe()}: "
                f"{exc.error_count()} error(s)"
            ) from exc
        try:
            data = self._adapter.dump_json(validated, indent=self._indent)
        except (ValueError, TypeError) as exc:
            raise CodecError(f"Cannot encode {type(value).__name__}: {exc}") from exc
        return data + b"\n"

    def decode(self, data: bytes) -> T:
        try:
            return self._adapter.validate_json(data)
        except ValidationError as exc:
            raise CodecError(
                f"Invalid cache data for {self._describe()}: {exc.error_count()} error(s)"
            ) from exc
        except ValueError as exc:
            raise CodecError(f"Unreadable cache data: {exc}") from exc

    def _describe(self) -> str:
        return getattr(self._artifact_type, "__name__", None) or repr(self._artifact_type)

    def __repr__(self) -> str:
        return f"JsonCodec({self._describe()})"
