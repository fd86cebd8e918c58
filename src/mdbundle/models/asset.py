"""Asset model for the binary files bundled with a document (images, attachments)"""

import hashlib
import logging
import mimetypes
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from mdbundle.models.errors import InvalidName, SizeInvariantViolation, UnknownAsset

IMAGE_EXTENSIONS: frozenset[str] = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp"})


class AssetKind(Enum):
    """Namespace an asset belongs to, which is also its folder in the archive"""

    IMAGE = "images"
    ATTACHMENT = "attachments"

    @property
    def folder(self) -> str:
        return self.value


def is_image_name(name: str) -> bool:
    """Whether a file name carries one of the recognized image extensions"""
    lowered = name.lower()
    return any(lowered.endswith(ext) for ext in IMAGE_EXTENSIONS)


def detect_image_mime_type(data: bytes) -> str:
    """Detect MIME type from image header bytes"""
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if data[:2] == b"\xff\xd8":
        return "image/jpeg"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "application/octet-stream"


def guess_mime_type(kind: AssetKind, name: str, data: bytes) -> str:
    """Image types come from the header bytes, everything else from the name"""
    if kind is AssetKind.IMAGE:
        detected = detect_image_mime_type(data)
        if detected != "application/octet-stream":
            return detected
    guessed, _ = mimetypes.guess_type(name)
    return guessed or "application/octet-stream"


def validate_name(name: str) -> str:
    """Return the trimmed name, or raise InvalidName if it cannot be used"""
    trimmed = name.strip()
    if not trimmed:
        raise InvalidName(f"Asset name cannot be empty: {name!r}")
    if trimmed in (".", ".."):
        raise InvalidName(f"Asset name cannot be a relative path: {name!r}")
    if "/" in trimmed or "\\" in trimmed:
        raise InvalidName(f"Asset name cannot contain a path separator: {name!r}")
    return trimmed


@dataclass
class Asset:
    """A binary file owned by a bundle, identified independently of its name"""

    asset_id: str
    kind: AssetKind
    name: str
    data: bytes
    size: int = -1
    mime_type: str = ""
    checksum: str | None = None

    def __post_init__(self) -> None:
        """Fill in the derived fields that were not given"""
        if self.size < 0:
            self.size = len(self.data)
        if not self.mime_type:
            self.mime_type = guess_mime_type(self.kind, self.name, self.data)
        if self.checksum is None:
            self.checksum = self._calculate_checksum(self.data)
        self.check_invariants()

    @staticmethod
    def _calculate_checksum(data: bytes) -> str:
        """Calculate SHA-256 checksum of data"""
        return hashlib.sha256(data).hexdigest()

    @classmethod
    def create(
        cls,
        kind: AssetKind,
        name: str,
        data: bytes,
        mime_type: str | None = None,
    ) -> "Asset":
        """
        Create a new Asset with a freshly generated identity.

        The name is validated but stored as given, so an archive entry such
        as ``" notes.txt"`` keeps its exact name.
        """
        _ = validate_name(name)
        return cls(
            asset_id=uuid.uuid4().hex,
            kind=kind,
            name=name,
            data=bytes(data),
            mime_type=mime_type or "",
        )

    @property
    def found(self) -> bool:
        """An Asset is always a successful resolution result"""
        return True

    @property
    def path(self) -> str:
        """Canonical archive path for the current display name"""
        return f"{self.kind.folder}/{self.name}"

    def check_invariants(self) -> None:
        """Raise SizeInvariantViolation if size and content disagree"""
        if self.size != len(self.data):
            raise SizeInvariantViolation(
                f"Asset {self.asset_id} records size {self.size}"
                + f" but holds {len(self.data)} bytes"
            )

    def verify_checksum(self) -> bool:
        """Verify that the data matches the stored checksum"""
        if self.checksum is None:
            return False
        return self._calculate_checksum(self.data) == self.checksum


@dataclass
class AssetStore:
    """Insertion-ordered table of the assets of one namespace, keyed by identity"""

    kind: AssetKind
    assets: dict[str, Asset] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.logger: logging.Logger = logging.getLogger("AssetStore")

    def add(self, name: str, data: bytes, mime_type: str | None = None) -> Asset:
        """Ingest a new file, assigning it an identity"""
        asset = Asset.create(self.kind, name, data, mime_type)
        self.assets[asset.asset_id] = asset
        self.logger.debug(
            "Added %s %s (%s, %d bytes)",
            self.kind.name.lower(),
            asset.asset_id,
            asset.name,
            asset.size,
        )
        return asset

    def get(self, asset_id: str) -> Asset | None:
        """Get an asset by ID"""
        return self.assets.get(asset_id)

    def rename(self, asset_id: str, new_name: str) -> Asset:
        """
        Change the display name of an asset.

        Names are not required to be unique here; duplicates are resolved
        when the bundle is encoded.
        """
        asset = self._require(asset_id)
        trimmed = validate_name(new_name)
        self.logger.debug("Renaming %s: %s -> %s", asset_id, asset.name, trimmed)
        asset.name = trimmed
        asset.check_invariants()
        return asset

    def replace_content(self, asset_id: str, data: bytes) -> Asset:
        """Swap the binary content of an asset, keeping its identity and name"""
        asset = self._require(asset_id)
        asset.data = bytes(data)
        asset.size = len(asset.data)
        asset.checksum = Asset._calculate_checksum(asset.data)
        asset.mime_type = guess_mime_type(asset.kind, asset.name, asset.data)
        asset.check_invariants()
        self.logger.debug("Replaced content of %s (%d bytes)", asset_id, asset.size)
        return asset

    def remove(self, asset_id: str) -> Asset | None:
        """Remove an asset from the store, doing nothing if it is absent"""
        return self.assets.pop(asset_id, None)

    def names(self) -> list[str]:
        """Display names in insertion order, duplicates included"""
        return [asset.name for asset in self.assets.values()]

    def total_size(self) -> int:
        return sum(asset.size for asset in self.assets.values())

    def _require(self, asset_id: str) -> Asset:
        asset = self.assets.get(asset_id)
        if asset is None:
            raise UnknownAsset(asset_id)
        return asset

    def __contains__(self, asset_id: str) -> bool:
        return asset_id in self.assets

    def __iter__(self) -> Iterator[Asset]:
        return iter(self.assets.values())

    def __len__(self) -> int:
        return len(self.assets)
