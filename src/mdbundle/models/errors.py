"""Exceptions raised by the bundle model and the archive codec"""


class BundleError(Exception):
    """Base class for every error raised by mdbundle"""


class CorruptArchive(BundleError):
    """The archive bytes could not be parsed as a bundle"""


class InvalidName(BundleError, ValueError):
    """An asset name is empty, whitespace-only or contains a path separator"""


class UnknownAsset(BundleError, KeyError):
    """No asset with the given identity exists in the store"""


class SizeInvariantViolation(BundleError, AssertionError):
    """An asset's recorded size no longer matches its content"""
