"""Tests for the command-line interface"""

import zipfile
from pathlib import Path

from mdbundle.main import (
    EXIT_ERROR,
    EXIT_MISSING_REFERENCES,
    EXIT_OK,
    build_parser,
    main,
)
from mdbundle.models.bundle import Bundle
from mdbundle.models.dao.archive_dao import ArchiveDAO


def _write_bundle(path: Path, readme: str, images=(), attachments=()) -> Path:
    bundle = Bundle(readme=readme)
    for name, data in images:
        _ = bundle.add_image(name, data)
    for name, data in attachments:
        _ = bundle.add_attachment(name, data)
    ArchiveDAO.save(bundle, path)
    return path


class TestParser:
    """Tests for the argument parser"""

    def test_pack_arguments(self):
        args = build_parser().parse_args(["pack", "doc.md", "a.png", "-o", "out.zip"])
        assert args.command == "pack"
        assert args.markdown == "doc.md"
        assert args.assets == ["a.png"]
        assert args.output == "out.zip"

    def test_unpack_defaults(self):
        args = build_parser().parse_args(["unpack", "bundle.zip"])
        assert args.directory is None


class TestPack:
    """Tests for the pack command"""

    def test_pack_explicit_files(self, tmp_path: Path):
        """Test packing a markdown file with listed assets"""
        markdown = tmp_path / "doc.md"
        _ = markdown.write_text("![a](images/a.png)", encoding="utf-8")
        image = tmp_path / "a.png"
        _ = image.write_bytes(b"png")
        attachment = tmp_path / "data.csv"
        _ = attachment.write_bytes(b"1,2")
        output = tmp_path / "out.zip"

        status = main(["pack", str(markdown), str(image), str(attachment), "-o", str(output)])

        assert status == EXIT_OK
        with zipfile.ZipFile(output) as archive:
            assert sorted(archive.namelist()) == [
                "README.md",
                "attachments/data.csv",
                "images/a.png",
            ]

    def test_pack_uses_neighbouring_folders(self, tmp_path: Path):
        """Test that images/ and attachments/ next to the document are picked up"""
        markdown = tmp_path / "README.md"
        _ = markdown.write_text("doc", encoding="utf-8")
        (tmp_path / "images").mkdir()
        _ = (tmp_path / "images" / "b.gif").write_bytes(b"gif")
        (tmp_path / "attachments").mkdir()
        _ = (tmp_path / "attachments" / "c.txt").write_bytes(b"txt")

        status = main(["pack", str(markdown)])

        assert status == EXIT_OK
        bundle = ArchiveDAO.load(tmp_path / "README.zip")
        assert bundle.readme == "doc"
        assert bundle.images.names() == ["b.gif"]
        assert bundle.attachments.names() == ["c.txt"]

    def test_pack_missing_markdown(self, tmp_path: Path):
        status = main(["pack", str(tmp_path / "missing.md")])
        assert status == EXIT_ERROR


class TestUnpack:
    """Tests for the unpack command"""

    def test_unpack_writes_layout(self, tmp_path: Path):
        """Test that unpack writes README.md, images/ and attachments/"""
        archive = _write_bundle(
            tmp_path / "bundle.zip",
            "hello",
            images=[("a.png", b"1"), ("a.png", b"2")],
            attachments=[("notes.txt", b"notes")],
        )
        target = tmp_path / "out"

        status = main(["unpack", str(archive), "-d", str(target)])

        assert status == EXIT_OK
        assert (target / "README.md").read_text(encoding="utf-8") == "hello"
        assert (target / "images" / "a.png").read_bytes() == b"1"
        assert (target / "images" / "a-2.png").read_bytes() == b"2"
        assert (target / "attachments" / "notes.txt").read_bytes() == b"notes"

    def test_unpack_then_pack_round_trips(self, tmp_path: Path):
        """Test that an unpacked folder packs back into the same entries"""
        archive = _write_bundle(
            tmp_path / "bundle.zip",
            "![a](images/a.png)",
            images=[("a.png", b"img")],
            attachments=[("b.bin", b"bin")],
        )
        target = tmp_path / "work"
        assert main(["unpack", str(archive), "-d", str(target)]) == EXIT_OK

        repacked = tmp_path / "repacked.zip"
        assert main(["pack", str(target / "README.md"), "-o", str(repacked)]) == EXIT_OK

        with zipfile.ZipFile(archive) as original, zipfile.ZipFile(repacked) as copy:
            assert sorted(original.namelist()) == sorted(copy.namelist())

    def test_unpack_corrupt_archive(self, tmp_path: Path):
        """Test that a corrupt archive gives the error exit status"""
        broken = tmp_path / "broken.zip"
        _ = broken.write_bytes(b"nope")

        assert main(["unpack", str(broken)]) == EXIT_ERROR


class TestCheck:
    """Tests for the check command"""

    def test_all_resolved(self, tmp_path: Path, capsys):
        archive = _write_bundle(
            tmp_path / "ok.zip", "![a](images/a.png)", images=[("a.png", b"1")]
        )

        assert main(["check", str(archive)]) == EXIT_OK
        assert "All references resolved" in capsys.readouterr().out

    def test_missing_reference(self, tmp_path: Path, capsys):
        archive = _write_bundle(tmp_path / "bad.zip", "intro\n![b](images/b.png)")

        assert main(["check", str(archive)]) == EXIT_MISSING_REFERENCES
        out = capsys.readouterr().out
        assert "line 2: Image not found: images/b.png" in out


class TestList:
    """Tests for the ls command"""

    def test_list_assets(self, tmp_path: Path, capsys):
        archive = _write_bundle(
            tmp_path / "list.zip",
            "",
            images=[("a.png", b"\x89PNG\r\n\x1a\n")],
            attachments=[("big.bin", b"0" * 2048)],
        )

        assert main(["ls", str(archive)]) == EXIT_OK
        lines = capsys.readouterr().out.splitlines()
        assert lines == [
            "images/a.png\t8 B\timage/png",
            "attachments/big.bin\t2.0 KB\tapplication/octet-stream",
        ]
