"""OCF layer: mimetype marker and META-INF/container.xml."""

import logging
import zipfile

from epub_model.core.archive import ZipEntryReader
from epub_model.core.paths import root_path
from epub_model.core.xml import NAMESPACES, local_name, parse_xml, plain_attributes
from epub_model.errors import (
    EpubError,
    InvalidReferenceError,
    MalformedContainerError,
    NotAnEpubError,
)
from epub_model.models.container import (
    PACKAGE_MEDIA_TYPE,
    ContainerDescriptor,
    EncryptedResource,
    Rendition,
)

log = logging.getLogger(__name__)

MIMETYPE_PATH = "mimetype"
MIMETYPE = b"application/epub+zip"
CONTAINER_PATH = "META-INF/container.xml"
ENCRYPTION_PATH = "META-INF/encryption.xml"


def check_mimetype(reader: ZipEntryReader) -> list[str]:
    """Validate the mimetype marker entry.

    Returns warnings for the storage-mode violations that real-world files
    commonly have.

    Raises:
        NotAnEpubError: If the entry is missing, unreadable or wrong
    """
    if not reader.has(MIMETYPE_PATH):
        raise NotAnEpubError("Archive has no mimetype entry", path=MIMETYPE_PATH)
    try:
        content = reader.read(MIMETYPE_PATH)
    except EpubError as exc:
        raise NotAnEpubError(
            f"Cannot read mimetype entry: {exc}", path=MIMETYPE_PATH
        ) from exc
    if content != MIMETYPE:
        raise NotAnEpubError(
            f"Unexpected mimetype {content[:64]!r}, expected {MIMETYPE!r}",
            path=MIMETYPE_PATH,
        )

    warnings = []
    if reader.first_entry() != MIMETYPE_PATH:
        warnings.append("mimetype is not the first entry of the archive")
    if reader.info(MIMETYPE_PATH).compress_type != zipfile.ZIP_STORED:
        warnings.append("mimetype entry is compressed")
    for message in warnings:
        log.warning(message)
    return warnings


def _parse_encryption(
    reader: ZipEntryReader, encoding: str | None
) -> tuple[list[EncryptedResource], list[str]]:
    if not reader.has(ENCRYPTION_PATH):
        return [], []

    try:
        root = parse_xml(
            reader.read(ENCRYPTION_PATH), encoding, ENCRYPTION_PATH, MalformedContainerError
        )
    except EpubError as exc:
        message = f"Ignoring unreadable {ENCRYPTION_PATH}: {exc}"
        log.warning(message)
        return [], [message]

    resources = []
    warnings = []
    for data in root.iterfind(".//enc:EncryptedData", NAMESPACES):
        method = data.find("enc:EncryptionMethod", NAMESPACES)
        algorithm = method.get("Algorithm") if method is not None else None
        for ref in data.iterfind(".//enc:CipherReference", NAMESPACES):
            uri = ref.get("URI")
            if not uri:
                continue
            try:
                path = root_path(uri)
            except InvalidReferenceError as exc:
                message = f"Skipping encrypted resource {uri!r}: {exc}"
                log.warning(message)
                warnings.append(message)
                continue
            resources.append(EncryptedResource(path=path, algorithm=algorithm))
    return resources, warnings


def parse_container(
    reader: ZipEntryReader, encoding: str | None = None
) -> ContainerDescriptor:
    """Validate the archive marker and list its renditions.

    Raises:
        NotAnEpubError: If the mimetype marker is missing or wrong
        MalformedContainerError: If container.xml is missing, broken,
            declares no rootfile, or points at a missing entry
        InvalidReferenceError: If a full-path is not a valid archive path
    """
    warnings = check_mimetype(reader)

    if not reader.has(CONTAINER_PATH):
        raise MalformedContainerError(
            f"Archive has no {CONTAINER_PATH}", path=CONTAINER_PATH
        )
    root = parse_xml(
        reader.read(CONTAINER_PATH), encoding, CONTAINER_PATH, MalformedContainerError
    )
    if local_name(root) != "container":
        raise MalformedContainerError(
            f"Root element of {CONTAINER_PATH} is <{local_name(root)}>, expected <container>",
            path=CONTAINER_PATH,
        )

    rootfiles = root.findall("container:rootfiles/container:rootfile", NAMESPACES)
    if not rootfiles:
        # Tolerate descriptors that omit the container namespace
        rootfiles = [el for el in root.iter() if local_name(el) == "rootfile"]
    if not rootfiles:
        raise MalformedContainerError(
            f"{CONTAINER_PATH} declares no rootfile", path=CONTAINER_PATH
        )

    renditions = []
    for rootfile in rootfiles:
        full_path = rootfile.get("full-path")
        if not full_path:
            raise MalformedContainerError(
                "rootfile without full-path attribute", path=CONTAINER_PATH
            )
        path = root_path(full_path)
        if not reader.has(path):
            raise MalformedContainerError(
                f"rootfile '{path}' is not in the archive", path=path
            )

        media_type = rootfile.get("media-type")
        if not media_type:
            message = f"rootfile '{path}' has no media-type, assuming {PACKAGE_MEDIA_TYPE}"
            log.warning(message)
            warnings.append(message)
            media_type = PACKAGE_MEDIA_TYPE

        attributes = {
            key: value
            for key, value in plain_attributes(rootfile).items()
            if key not in ("full-path", "media-type")
        }
        renditions.append(
            Rendition(full_path=path, media_type=media_type, attributes=attributes)
        )

    encrypted, encryption_warnings = _parse_encryption(reader, encoding)
    warnings.extend(encryption_warnings)

    log.debug("Container declares %d rendition(s)", len(renditions))
    return ContainerDescriptor(
        mimetype=MIMETYPE.decode("ascii"),
        renditions=renditions,
        encrypted_resources=encrypted,
        warnings=warnings,
    )
