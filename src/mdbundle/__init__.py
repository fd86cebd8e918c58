"""Bundle a markdown document and its images and attachments into one zip archive"""

__all__ = [
    "Asset",
    "AssetKind",
    "AssetStore",
    "Bundle",
    "ArchiveDAO",
    "AssetNotFound",
    "BundleError",
    "CorruptArchive",
    "InvalidName",
    "SizeInvariantViolation",
    "UnknownAsset",
    "resolve_image",
    "resolve_attachment",
]

__version__ = "0.1.0"

from .models import (
    ArchiveDAO,
    Asset,
    AssetKind,
    AssetStore,
    Bundle,
    BundleError,
    CorruptArchive,
    InvalidName,
    SizeInvariantViolation,
    UnknownAsset,
)
from .references import AssetNotFound, resolve_attachment, resolve_image
