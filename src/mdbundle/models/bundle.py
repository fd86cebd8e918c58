"""The Bundle: a markdown readme plus the images and attachments it references"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from mdbundle.models.asset import Asset, AssetKind, AssetStore, is_image_name


def format_file_size(size: int) -> str:
    """Human readable size label used when listing assets"""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


@dataclass
class Bundle:
    """
    The complete editable unit: readme text, images and attachments.

    A Bundle is either decoded from an archive or started empty. The core
    keeps no other state about it; whoever holds the Bundle owns it.
    """

    readme: str = ""
    images: AssetStore = field(default_factory=lambda: AssetStore(AssetKind.IMAGE))
    attachments: AssetStore = field(
        default_factory=lambda: AssetStore(AssetKind.ATTACHMENT)
    )

    def store_for(self, kind: AssetKind) -> AssetStore:
        """Return the store holding assets of the given kind"""
        if kind is AssetKind.IMAGE:
            return self.images
        return self.attachments

    def add_image(self, name: str, data: bytes) -> Asset:
        return self.images.add(name, data)

    def add_attachment(self, name: str, data: bytes) -> Asset:
        return self.attachments.add(name, data)

    def ingest(self, name: str, data: bytes) -> Asset:
        """Add a file, filing it as an image when its extension says so"""
        if is_image_name(name):
            return self.add_image(name, data)
        return self.add_attachment(name, data)

    def ingest_path(self, path: Path) -> Asset:
        """Read a file from disk and ingest it under its file name"""
        logging.getLogger("Bundle").debug("Ingesting %s", path)
        return self.ingest(path.name, path.read_bytes())

    def find(self, asset_id: str) -> Asset | None:
        """Look an identity up in both namespaces"""
        return self.images.get(asset_id) or self.attachments.get(asset_id)

    def asset_count(self) -> int:
        return len(self.images) + len(self.attachments)
