"""The models used to represent a bundle and its assets"""

__all__ = [
    "Asset",
    "AssetKind",
    "AssetStore",
    "Bundle",
    "ArchiveDAO",
    "BundleError",
    "CorruptArchive",
    "InvalidName",
    "SizeInvariantViolation",
    "UnknownAsset",
]

from .asset import Asset, AssetKind, AssetStore
from .bundle import Bundle
from .dao.archive_dao import ArchiveDAO
from .errors import (
    BundleError,
    CorruptArchive,
    InvalidName,
    SizeInvariantViolation,
    UnknownAsset,
)
