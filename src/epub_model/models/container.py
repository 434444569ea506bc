"""Data models for the OCF container layer."""

from pydantic import BaseModel, ConfigDict, Field

from epub_model.core.paths import ArchivePath

PACKAGE_MEDIA_TYPE = "application/oebps-package+xml"


class Rendition(BaseModel):
    """One rootfile declared by META-INF/container.xml."""

    model_config = ConfigDict(frozen=True)

    full_path: ArchivePath
    media_type: str = PACKAGE_MEDIA_TYPE
    attributes: dict[str, str] = Field(default_factory=dict)


class EncryptedResource(BaseModel):
    """Resource listed in META-INF/encryption.xml."""

    model_config = ConfigDict(frozen=True)

    path: ArchivePath
    algorithm: str | None = None


class ContainerDescriptor(BaseModel):
    """Validated mimetype marker plus the renditions of the publication."""

    model_config = ConfigDict(frozen=True)

    mimetype: str
    renditions: list[Rendition]
    encrypted_resources: list[EncryptedResource] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def rendition(self) -> Rendition:
        """Default rendition (the first rootfile)."""
        return self.renditions[0]

    def is_encrypted(self, path: str) -> bool:
        return any(res.path == path for res in self.encrypted_resources)
