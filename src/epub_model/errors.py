"""Exception types raised while parsing EPUB archives.

Every failure mode has its own class so callers can tell them apart, and
each carries the offending archive path and/or identifier.
"""


class EpubError(Exception):
    """Base exception for all EPUB parsing errors.

    Attributes:
        path: Archive-internal path (or source file) the error relates to
        identifier: Manifest/spine identifier the error relates to
    """

    def __init__(
        self, message: str, path: str | None = None, identifier: str | None = None
    ):
        super().__init__(message)
        self.path = path
        self.identifier = identifier


class SourceUnreadableError(EpubError):
    """Raised when the archive cannot be opened or its bytes cannot be decoded."""
    pass


class NotAnEpubError(EpubError):
    """Raised when the mimetype marker entry is missing or wrong."""
    pass


class MalformedContainerError(EpubError):
    """Raised when META-INF/container.xml is missing, broken or declares no rootfile."""
    pass


class MalformedPackageError(EpubError):
    """Raised when a package document is not well-formed or lacks required sections."""
    pass


class DuplicateManifestIdError(MalformedPackageError):
    """Raised when two manifest items in one package share an id."""

    def __init__(self, identifier: str, path: str | None = None):
        super().__init__(
            f"Duplicate manifest id '{identifier}'", path=path, identifier=identifier
        )


class DanglingSpineReferenceError(MalformedPackageError):
    """Raised when a spine itemref points at a manifest id that does not exist."""

    def __init__(self, identifier: str, path: str | None = None):
        super().__init__(
            f"Spine itemref '{identifier}' has no matching manifest item",
            path=path,
            identifier=identifier,
        )


class MalformedNavigationError(EpubError):
    """Raised when the navigation document or NCX cannot be parsed."""
    pass


class NoNavigationSourceError(EpubError):
    """Raised when navigation is required but the package declares none."""
    pass


class InvalidReferenceError(EpubError):
    """Raised when a reference is an absolute URI or escapes the archive root.

    Attributes:
        reference: The raw reference string that was rejected
    """

    def __init__(
        self, message: str, reference: str | None = None, path: str | None = None
    ):
        super().__init__(message, path=path)
        self.reference = reference


class ResourceNotFoundError(EpubError):
    """Raised when a manifest-declared resource is absent from the archive."""
    pass


class ArchiveClosedError(EpubError):
    """Raised when a resource is read after the document was closed."""
    pass


class MalformedContentError(EpubError):
    """Raised when a content resource opened as markup cannot be parsed."""
    pass
