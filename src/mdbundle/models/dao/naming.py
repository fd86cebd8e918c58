"""Collision-free archive names for the assets of one namespace"""

import posixpath
from typing import Iterable

from mdbundle.models.asset import Asset


def suffixed_name(name: str, counter: int) -> str:
    """Insert ``-counter`` before the extension: photo.png -> photo-2.png"""
    stem, ext = posixpath.splitext(name)
    return f"{stem}-{counter}{ext}"


def resolve_names(assets: Iterable[Asset]) -> dict[str, str]:
    """
    Map every asset_id to a name that is unique within the given assets.

    Assets are processed in iteration order. The first asset to claim a
    display name keeps it unchanged; every later asset with the same name
    gets the lowest free ``-N`` suffix, starting at 2. A candidate that is
    some other asset's own display name is never handed out, so assets
    whose names were already unique are never renamed.

    Returns:
        dict of asset_id -> resolved name, in the same order as the input
    """
    ordered = list(assets)
    taken: set[str] = {asset.name for asset in ordered}
    claimed: set[str] = set()
    resolved: dict[str, str] = {}

    for asset in ordered:
        if asset.name not in claimed:
            claimed.add(asset.name)
            resolved[asset.asset_id] = asset.name
            continue

        counter = 2
        candidate = suffixed_name(asset.name, counter)
        while candidate in taken:
            counter += 1
            candidate = suffixed_name(asset.name, counter)
        taken.add(candidate)
        claimed.add(candidate)
        resolved[asset.asset_id] = candidate

    return resolved
