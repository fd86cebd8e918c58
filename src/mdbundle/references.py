"""
Resolution of markdown image and link targets against a bundle's assets.

Targets written by hand or pasted from elsewhere rarely match an asset path
exactly: they may be URL-encoded, carry a leading ``./`` or extra folders,
or have markdown punctuation stuck to them. Resolution cleans the target
once and then tries a fixed, ordered list of match predicates:

1. the target is the canonical path (``images/cat.png``)
2. the target is the bare name (``cat.png``)
3. the target ends with the canonical path (``./images/cat.png``)
4. the target ends with the bare name (``../pics/cat.png``)
5. the target equals the name with markdown punctuation removed
6. the target ends with the canonical path of that punctuation-free name

Suffix predicates only match on a ``/`` boundary. The first predicate that
matches any asset wins; within a predicate, store order decides.
A miss is returned as an AssetNotFound value, never raised.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable
from urllib.parse import unquote

from mdbundle.models.asset import Asset, AssetKind
from mdbundle.models.bundle import Bundle

STRAY_CHARACTERS: str = "![]()\\"
_STRAY_TABLE = str.maketrans("", "", STRAY_CHARACTERS)

_LINK_PATTERN = re.compile(r"(!?)\[([^\[\]]*)\]\(([^)\n]*)\)")
_CODE_SPAN_PATTERN = re.compile(r"`[^`\n]*`")
_FENCE_PATTERN = re.compile(r"^\s{0,3}(```|~~~)")
_TITLE_PATTERN = re.compile(r"""\s+(?:"[^"]*"|'[^']*')\s*$""")
_EXTERNAL_PATTERN = re.compile(r"^(?:[a-zA-Z][a-zA-Z0-9+.-]*:|//|#)")
_DESTINATION_ESCAPES: dict[str, str] = {
    char: f"%{ord(char):02X}" for char in "% ()[]!\\"
}


@dataclass(frozen=True)
class AssetNotFound:
    """A reference that matched no asset, with the cleaned target for display"""

    target: str
    kind: AssetKind

    @property
    def found(self) -> bool:
        return False

    def message(self) -> str:
        noun = "Image" if self.kind is AssetKind.IMAGE else "Attachment"
        return f"{noun} not found: {self.target}"


@dataclass(frozen=True)
class Reference:
    """An inline image or link found in a markdown document"""

    kind: AssetKind
    text: str
    target: str
    line: int


def strip_stray(value: str) -> str:
    """Remove markdown punctuation that leaked into a target or a name"""
    return value.translate(_STRAY_TABLE).strip()


def clean_target(raw_target: str) -> str:
    """
    Normalize a raw markdown target before matching.

    Literal punctuation is stripped before URL-decoding, so an encoded
    ``%28`` survives as a real parenthesis in the file name.
    """
    return unquote(strip_stray(raw_target or "")).strip()


def _ends_with_segment(target: str, suffix: str) -> bool:
    return target == suffix or target.endswith("/" + suffix)


# (target, name, canonical path) -> matched
MatchPredicate = Callable[[str, str, str], bool]


def _cleaned_path(target: str, name: str, path: str) -> bool:
    folder = path[: -len(name)]
    return _ends_with_segment(target, folder + strip_stray(name))


MATCH_PREDICATES: list[tuple[str, MatchPredicate]] = [
    ("exact_path", lambda target, name, path: target == path),
    ("exact_name", lambda target, name, path: target == name),
    ("path_suffix", lambda target, name, path: _ends_with_segment(target, path)),
    ("name_suffix", lambda target, name, path: _ends_with_segment(target, name)),
    ("cleaned_name", lambda target, name, path: target == strip_stray(name)),
    ("cleaned_path", _cleaned_path),
]


def _resolve(
    raw_target: str, assets: Iterable[Asset], kind: AssetKind
) -> Asset | AssetNotFound:
    logger = logging.getLogger("References")
    target = clean_target(raw_target)
    candidates = [(asset, f"{kind.folder}/{asset.name}") for asset in assets]
    if target:
        for predicate_name, predicate in MATCH_PREDICATES:
            for asset, path in candidates:
                if predicate(target, asset.name, path):
                    logger.debug(
                        "%r resolved to %s by %s",
                        raw_target,
                        asset.asset_id,
                        predicate_name,
                    )
                    return asset
    logger.debug("%r did not resolve", raw_target)
    return AssetNotFound(target=target, kind=kind)


def resolve_image(raw_target: str, images: Iterable[Asset]) -> Asset | AssetNotFound:
    """Match an image target against image assets"""
    return _resolve(raw_target, images, AssetKind.IMAGE)


def resolve_attachment(
    raw_href: str, attachments: Iterable[Asset]
) -> Asset | AssetNotFound:
    """Match a link href against attachment assets"""
    return _resolve(raw_href, attachments, AssetKind.ATTACHMENT)


def _split_destination(destination: str) -> str:
    """Drop angle brackets and an optional title from a link destination"""
    destination = destination.strip()
    if destination.startswith("<") and ">" in destination:
        return destination[1 : destination.index(">")]
    return _TITLE_PATTERN.sub("", destination)


def find_references(markdown: str) -> list[Reference]:
    """
    Extract the inline images and local links of a markdown document.

    Fenced code blocks, code spans and external URLs are skipped.
    """
    references: list[Reference] = []
    in_fence = False
    for line_number, line in enumerate(markdown.splitlines(), start=1):
        if _FENCE_PATTERN.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue

        for match in _LINK_PATTERN.finditer(_CODE_SPAN_PATTERN.sub("", line)):
            bang, text, destination = match.groups()
            target = _split_destination(destination)
            if not target or _EXTERNAL_PATTERN.match(target):
                continue
            kind = AssetKind.IMAGE if bang else AssetKind.ATTACHMENT
            references.append(Reference(kind, text, target, line_number))
    return references


def check_references(
    markdown: str, bundle: Bundle
) -> list[tuple[Reference, AssetNotFound]]:
    """
    Resolve every reference of a document and return the misses.

    Links are only reported when they point into ``attachments/``; other
    relative links are ordinary links, not assets.
    """
    missing: list[tuple[Reference, AssetNotFound]] = []
    for reference in find_references(markdown):
        if reference.kind is AssetKind.IMAGE:
            result = resolve_image(reference.target, bundle.images)
        else:
            result = resolve_attachment(reference.target, bundle.attachments)
            if isinstance(result, AssetNotFound) and (
                AssetKind.ATTACHMENT.folder + "/" not in result.target
            ):
                continue
        if isinstance(result, AssetNotFound):
            missing.append((reference, result))
    return missing


def _escape_destination(name: str) -> str:
    """Percent-encode the characters that would end or confuse a destination"""
    return "".join(_DESTINATION_ESCAPES.get(char, char) for char in name)


def image_markdown(asset: Asset) -> str:
    """Markdown snippet that embeds an image asset"""
    return f"![{asset.name}]({asset.kind.folder}/{_escape_destination(asset.name)})"


def attachment_markdown(asset: Asset) -> str:
    """Markdown snippet that links to an attachment asset"""
    return f"[{asset.name}]({asset.kind.folder}/{_escape_destination(asset.name)})"
