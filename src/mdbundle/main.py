"""
Command-line interface for mdbundle.

Subcommands:
- pack: build an archive from a markdown file and its asset files
- unpack: write an archive out as README.md, images/ and attachments/
- check: report references that do not resolve to an asset
- ls: list the assets of an archive
"""

import argparse
import logging
import sys
from pathlib import Path

from mdbundle import __version__
from mdbundle.logger import configure_logging
from mdbundle.models.asset import AssetKind
from mdbundle.models.bundle import Bundle, format_file_size
from mdbundle.models.dao.archive_dao import ArchiveDAO
from mdbundle.models.errors import BundleError
from mdbundle.references import check_references

EXIT_OK = 0
EXIT_MISSING_REFERENCES = 1
EXIT_ERROR = 2


def _collect_files(paths: list[Path]) -> list[Path]:
    """Expand directories into their files, sorted for a stable archive order"""
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(sorted(p for p in path.rglob("*") if p.is_file()))
        else:
            files.append(path)
    return files


def _pack(args: argparse.Namespace) -> int:
    markdown_path = Path(args.markdown)
    bundle = Bundle(readme=markdown_path.read_text(encoding="utf-8"))

    asset_paths = [Path(p) for p in args.assets]
    if not asset_paths:
        # Same layout unpack writes, so unpack -> edit -> pack round-trips
        asset_paths = [
            markdown_path.parent / kind.folder
            for kind in AssetKind
            if (markdown_path.parent / kind.folder).is_dir()
        ]

    for file_path in _collect_files(asset_paths):
        _ = bundle.ingest_path(file_path)

    output = Path(args.output) if args.output else markdown_path.with_suffix(".zip")
    ArchiveDAO.save(bundle, output)
    print(
        f"Packed {len(bundle.images)} images and "
        + f"{len(bundle.attachments)} attachments into {output}"
    )
    return EXIT_OK


def _unpack(args: argparse.Namespace) -> int:
    archive_path = Path(args.archive)
    bundle = ArchiveDAO.load(archive_path)
    target_dir = Path(args.directory) if args.directory else archive_path.with_suffix("")
    target_dir.mkdir(parents=True, exist_ok=True)

    _ = (target_dir / ArchiveDAO.README_PATH).write_text(bundle.readme, encoding="utf-8")
    paths = ArchiveDAO.entry_paths(bundle)
    for kind in AssetKind:
        for asset in bundle.store_for(kind):
            destination = target_dir / paths[asset.asset_id]
            destination.parent.mkdir(parents=True, exist_ok=True)
            _ = destination.write_bytes(asset.data)

    print(f"Unpacked {bundle.asset_count()} assets into {target_dir}")
    return EXIT_OK


def _check(args: argparse.Namespace) -> int:
    bundle = ArchiveDAO.load(Path(args.archive))
    missing = check_references(bundle.readme, bundle)
    for reference, miss in missing:
        print(f"line {reference.line}: {miss.message()}")

    if missing:
        print(f"{len(missing)} unresolved references")
        return EXIT_MISSING_REFERENCES
    print("All references resolved")
    return EXIT_OK


def _list(args: argparse.Namespace) -> int:
    bundle = ArchiveDAO.load(Path(args.archive))
    paths = ArchiveDAO.entry_paths(bundle)
    for kind in AssetKind:
        for asset in bundle.store_for(kind):
            print(
                f"{paths[asset.asset_id]}\t{format_file_size(asset.size)}"
                + f"\t{asset.mime_type}"
            )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI"""
    parser = argparse.ArgumentParser(
        prog="mdbundle",
        description="Bundle a markdown document with its images and attachments.",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: the LOG_LEVEL setting).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    pack = subparsers.add_parser("pack", help="Create an archive.")
    pack.add_argument("markdown", help="Markdown file stored as README.md.")
    pack.add_argument(
        "assets",
        nargs="*",
        help="Asset files or directories. Defaults to the images/ and "
        + "attachments/ folders next to the markdown file.",
    )
    pack.add_argument(
        "-o",
        "--output",
        default=None,
        help="Archive path (default: the markdown path with a .zip suffix).",
    )
    pack.set_defaults(handler=_pack)

    unpack = subparsers.add_parser("unpack", help="Extract an archive.")
    unpack.add_argument("archive", help="Archive to extract.")
    unpack.add_argument(
        "-d",
        "--directory",
        default=None,
        help="Output directory (default: the archive path without its suffix).",
    )
    unpack.set_defaults(handler=_unpack)

    check = subparsers.add_parser("check", help="Report unresolved references.")
    check.add_argument("archive", help="Archive to check.")
    check.set_defaults(handler=_check)

    list_parser = subparsers.add_parser("ls", help="List the assets of an archive.")
    list_parser.add_argument("archive", help="Archive to list.")
    list_parser.set_defaults(handler=_list)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``mdbundle`` command; returns the exit status"""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    logger = logging.getLogger("CLI")
    logger.debug("Running %s", args.command)

    try:
        return args.handler(args)
    except BundleError as e:
        logger.error("%s", e)
    except OSError as e:
        logger.error("Could not access %s: %s", e.filename, e.strerror)
    return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
