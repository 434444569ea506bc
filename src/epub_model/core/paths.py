"""Resolution of relative references against archive-internal paths."""

import posixpath
from typing import Any
from urllib.parse import unquote, urlsplit

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

from epub_model.errors import InvalidReferenceError


class ArchivePath(str):
    """Canonical, slash-separated path of an entry inside the archive.

    Never starts with "/", never contains empty, "." or ".." segments.
    """

    def __new__(cls, value: str) -> "ArchivePath":
        if isinstance(value, ArchivePath):
            return value
        if not value or value.startswith("/"):
            raise InvalidReferenceError(
                f"Not a canonical archive path: {value!r}", reference=value
            )
        for segment in value.split("/"):
            if segment in ("", ".", ".."):
                raise InvalidReferenceError(
                    f"Not a canonical archive path: {value!r}", reference=value
                )
        return super().__new__(cls, value)

    @property
    def directory(self) -> str:
        """Directory part, "" for entries at the archive root."""
        return posixpath.dirname(self)

    @property
    def name(self) -> str:
        return posixpath.basename(self)

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.str_schema(),
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )


def _split(reference: str) -> tuple[str, str | None]:
    """Split a reference into its decoded path and fragment."""
    parts = urlsplit(reference)
    if parts.scheme or parts.netloc:
        raise InvalidReferenceError(
            f"External reference not allowed: {reference!r}", reference=reference
        )
    if parts.path.startswith("/"):
        raise InvalidReferenceError(
            f"Absolute reference not allowed: {reference!r}", reference=reference
        )
    fragment = unquote(parts.fragment) if parts.fragment else None
    return unquote(parts.path), fragment


def _normalize(directory: str, path: str, reference: str) -> ArchivePath:
    segments: list[str] = []
    joined = f"{directory}/{path}" if directory else path
    for segment in joined.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not segments:
                raise InvalidReferenceError(
                    f"Reference escapes the archive root: {reference!r}",
                    reference=reference,
                )
            segments.pop()
            continue
        segments.append(segment)
    if not segments:
        raise InvalidReferenceError(
            f"Reference resolves to the archive root: {reference!r}",
            reference=reference,
        )
    return ArchivePath("/".join(segments))


def resolve_with_fragment(
    base: ArchivePath, reference: str
) -> tuple[ArchivePath, str | None]:
    """Resolve reference against the directory of base.

    Returns the resolved path and the fragment (None when absent). An empty
    or fragment-only reference points at base itself.
    """
    if isinstance(reference, ArchivePath):
        return reference, None

    path, fragment = _split(reference)
    if not path:
        return ArchivePath(base), fragment
    return _normalize(posixpath.dirname(base), path, reference), fragment


def resolve(base: ArchivePath, reference: str) -> ArchivePath:
    """Resolve reference against base, dropping any fragment."""
    return resolve_with_fragment(base, reference)[0]


def root_path(reference: str) -> ArchivePath:
    """Resolve a reference that is already relative to the archive root."""
    if isinstance(reference, ArchivePath):
        return reference
    path, _ = _split(reference)
    return _normalize("", path, reference)
