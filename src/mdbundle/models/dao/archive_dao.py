"""Zip-based persistence for bundles"""

import asyncio
import io
import logging
import os
import posixpath
import tempfile
import zipfile
import zlib
from pathlib import Path

from mdbundle.config import settings
from mdbundle.models.asset import AssetStore, is_image_name
from mdbundle.models.bundle import Bundle
from mdbundle.models.dao.naming import resolve_names
from mdbundle.models.errors import CorruptArchive


class ArchiveDAO:
    """
    Handles reading/writing the bundle archive format.

    Zip structure:
    - README.md (the markdown document, UTF-8)
    - images/{name} (image assets)
    - attachments/{name} (every other asset)

    On read, any non-directory entry other than README.md is an asset; its
    folder is discarded and images are recognized by file extension.
    """

    README_PATH: str = "README.md"
    # Fixed entry timestamp so the same Bundle always encodes to the same bytes
    ENTRY_DATE_TIME: tuple[int, int, int, int, int, int] = (1980, 1, 1, 0, 0, 0)

    @staticmethod
    def decode(archive_bytes: bytes) -> Bundle:
        """
        Build a Bundle from archive bytes.

        Every asset gets a fresh identity. Nothing is returned unless the
        whole archive could be read.

        Raises:
            CorruptArchive: if the bytes are not a readable bundle archive
        """
        logger = logging.getLogger("ArchiveDAO")
        logger.debug("Decoding archive: %d bytes", len(archive_bytes))

        bundle = Bundle()
        try:
            with zipfile.ZipFile(io.BytesIO(archive_bytes), mode="r") as archive:
                for info in archive.infolist():
                    if info.is_dir():
                        continue

                    data = archive.read(info)
                    filename = info.filename.replace("\\", "/")
                    if filename == ArchiveDAO.README_PATH:
                        bundle.readme = data.decode("utf-8")
                        continue

                    name = posixpath.basename(filename)
                    if name.strip() in ("", ".", ".."):
                        logger.debug("Skipping unnamed entry %r", info.filename)
                        continue

                    if is_image_name(name):
                        _ = bundle.add_image(name, data)
                    else:
                        _ = bundle.add_attachment(name, data)
        except (
            zipfile.BadZipFile,
            zipfile.LargeZipFile,
            zlib.error,
            EOFError,
            NotImplementedError,
            RuntimeError,
            UnicodeDecodeError,
            ValueError,
        ) as e:
            logger.error("Could not decode archive: %s", e)
            raise CorruptArchive(f"Invalid bundle archive: {e}") from e

        logger.debug(
            "Archive decoded: %d images, %d attachments",
            len(bundle.images),
            len(bundle.attachments),
        )
        return bundle

    @staticmethod
    def encode(bundle: Bundle) -> bytes:
        """
        Serialize a Bundle to archive bytes.

        Duplicate display names are disambiguated per namespace, so this
        never fails for a Bundle built through the public API.
        """
        logger = logging.getLogger("ArchiveDAO")
        buffer = io.BytesIO()

        with zipfile.ZipFile(
            buffer,
            mode="w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=settings.COMPRESSION_LEVEL,
        ) as archive:
            ArchiveDAO._add_bytes_to_zip(
                archive, ArchiveDAO.README_PATH, bundle.readme.encode("utf-8")
            )
            for store in (bundle.images, bundle.attachments):
                ArchiveDAO._add_store_to_zip(archive, store)

        logger.debug(
            "Archive encoded: %d images, %d attachments, %d bytes",
            len(bundle.images),
            len(bundle.attachments),
            buffer.tell(),
        )
        return buffer.getvalue()

    @staticmethod
    def entry_paths(bundle: Bundle) -> dict[str, str]:
        """
        Return the archive path every asset will be written to.

        Returns:
            dict of asset_id -> path such as ``images/photo-2.png``
        """
        paths: dict[str, str] = {}
        for store in (bundle.images, bundle.attachments):
            for asset_id, name in resolve_names(store).items():
                paths[asset_id] = f"{store.kind.folder}/{name}"
        return paths

    @staticmethod
    def load(filepath: Path) -> Bundle:
        """Read and decode an archive file"""
        logging.getLogger("ArchiveDAO").debug("Loading bundle from %s", filepath)
        return ArchiveDAO.decode(Path(filepath).read_bytes())

    @staticmethod
    def save(bundle: Bundle, filepath: Path) -> None:
        """Encode a Bundle and atomically replace the file at filepath"""
        logger = logging.getLogger("ArchiveDAO")
        data = ArchiveDAO.encode(bundle)
        ArchiveDAO._atomic_write(data, Path(filepath))
        logger.debug("Bundle saved to %s: %d bytes", filepath, len(data))

    @staticmethod
    async def decode_async(archive_bytes: bytes) -> Bundle:
        """Decode in a worker thread so the calling event loop stays responsive"""
        return await asyncio.to_thread(ArchiveDAO.decode, archive_bytes)

    @staticmethod
    async def encode_async(bundle: Bundle) -> bytes:
        """Encode in a worker thread so the calling event loop stays responsive"""
        return await asyncio.to_thread(ArchiveDAO.encode, bundle)

    @staticmethod
    def _add_store_to_zip(archive: zipfile.ZipFile, store: AssetStore) -> None:
        """Write every asset of one namespace under its resolved name"""
        resolved = resolve_names(store)
        for asset in store:
            asset.check_invariants()
            name = resolved[asset.asset_id]
            if name != asset.name:
                logging.getLogger("ArchiveDAO").debug(
                    "Name collision: writing %s as %s", asset.name, name
                )
            ArchiveDAO._add_bytes_to_zip(
                archive, f"{store.kind.folder}/{name}", asset.data
            )

    @staticmethod
    def _add_bytes_to_zip(archive: zipfile.ZipFile, name: str, data: bytes) -> None:
        """Add bytes to a zip archive as a file"""
        info = zipfile.ZipInfo(filename=name, date_time=ArchiveDAO.ENTRY_DATE_TIME)
        info.compress_type = zipfile.ZIP_DEFLATED
        info.external_attr = 0o644 << 16
        archive.writestr(info, data, compresslevel=settings.COMPRESSION_LEVEL)

    @staticmethod
    def _atomic_write(data: bytes, filepath: Path) -> None:
        """Write to a temporary file next to filepath, then move it into place"""
        output_dir = filepath.parent
        output_dir.mkdir(parents=True, exist_ok=True)

        with tempfile.NamedTemporaryFile(
            suffix=".tmp", dir=output_dir, delete=False
        ) as temp_file:
            temp_path = temp_file.name
            try:
                _ = temp_file.write(data)
                temp_file.flush()
                os.fsync(temp_file.fileno())
            except Exception:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
                raise

        try:
            os.replace(temp_path, filepath)
        except OSError:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise
