"""Reading and writing backup ZIP containers.

An archive holds one manifest document (``backup.json``) and a reserved
``images/`` folder of named asset blobs. Archives re-zipped by desktop tools
often wrap everything in one top-level folder; that folder is stripped.
"""

from __future__ import annotations

import io
import json
import zlib
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import PurePosixPath
from typing import TYPE_CHECKING
from zipfile import ZIP_DEFLATED, BadZipFile, ZipFile, ZipInfo

from plantkeep.config.backup import ASSET_FOLDER, MANIFEST_NAME

from .errors import StructuralError

if TYPE_CHECKING:
    from collections.abc import Mapping

log = getLogger(__name__)

_METADATA_DIRS = {"__MACOSX"}
# CRC mismatch, broken deflate stream, truncated data, encrypted or
# unsupported compression.
_READ_ERRORS = (BadZipFile, zlib.error, EOFError, RuntimeError, NotImplementedError)


@dataclass(slots=True)
class ExtractedArchive:
    """Manifest bytes plus the asset blobs keyed by name.

    ``unreadable_assets`` names image members whose payload could not be
    decompressed; they are left out of ``assets``.
    """

    manifest: bytes
    assets: dict[str, bytes] = field(default_factory=dict[str, bytes])
    unreadable_assets: list[str] = field(default_factory=list[str])


def extract_archive(
    data: bytes,
    *,
    max_bytes: int | None = None,
    max_expanded_bytes: int | None = None,
) -> ExtractedArchive:
    """Unpack ``data`` into its manifest and assets.

    Raises :class:`StructuralError` if the container cannot be opened, holds an
    unsafe path, has no readable manifest, the manifest is not a JSON document,
    or the members would expand past ``max_expanded_bytes``. A damaged image
    member is skipped and reported in ``unreadable_assets``.
    """

    if max_bytes is not None and len(data) > max_bytes:
        raise StructuralError(
            f"Backup archive is {len(data)} bytes, larger than the {max_bytes} byte limit"
        )

    try:
        archive = ZipFile(io.BytesIO(data))
    except BadZipFile as exc:
        raise StructuralError("The uploaded file is not a valid ZIP archive.") from exc

    with archive:
        members: dict[PurePosixPath, ZipInfo] = {}
        for info in archive.infolist():
            if info.is_dir():
                continue
            normalized = _normalize_member(info)
            if normalized is not None:
                members[normalized] = info

        prefix = _resolve_root(members)
        if prefix is None:
            raise StructuralError(f"{MANIFEST_NAME} not found in backup archive")

        manifest_info = members[prefix / MANIFEST_NAME]
        asset_dir = prefix / ASSET_FOLDER
        asset_members = {
            path.name: info for path, info in members.items() if path.parent == asset_dir
        }
        if max_expanded_bytes is not None:
            expanded = manifest_info.file_size + sum(
                info.file_size for info in asset_members.values()
            )
            if expanded > max_expanded_bytes:
                raise StructuralError(
                    f"Backup archive expands to {expanded} bytes, larger than the "
                    f"{max_expanded_bytes} byte limit"
                )

        try:
            manifest = archive.read(manifest_info)
        except _READ_ERRORS as exc:
            raise StructuralError(f"{MANIFEST_NAME} could not be read: {exc}") from exc

        result = ExtractedArchive(manifest=manifest)
        for name, info in asset_members.items():
            try:
                result.assets[name] = archive.read(info)
            except _READ_ERRORS as exc:
                log.warning("Skipping unreadable asset %s: %s", name, exc)
                result.unreadable_assets.append(name)

    try:
        json.loads(manifest)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise StructuralError(f"{MANIFEST_NAME} is not valid JSON: {exc}") from exc

    return result


def build_archive(manifest: Mapping[str, object], assets: Mapping[str, bytes]) -> bytes:
    """Serialise ``manifest`` and ``assets`` into the backup container format."""

    buffer = io.BytesIO()
    with ZipFile(buffer, mode="w", compression=ZIP_DEFLATED) as archive:
        archive.writestr(MANIFEST_NAME, json.dumps(manifest, indent=2, default=str))
        for name in sorted(assets):
            if "/" in name or "\\" in name:
                raise ValueError(f"Asset names must not contain path separators: {name!r}")
            archive.writestr(f"{ASSET_FOLDER}/{name}", assets[name])
    return buffer.getvalue()


def _normalize_member(info: ZipInfo) -> PurePosixPath | None:
    name = info.filename.replace("\\", "/")
    parts: list[str] = []
    for part in name.split("/"):
        if not part or part == ".":
            continue
        if part in _METADATA_DIRS:
            return None
        if part == "..":
            raise StructuralError("Backup archive contains unsafe paths.")
        parts.append(part)
    if not parts:
        return None
    return PurePosixPath(*parts)


def _resolve_root(members: Mapping[PurePosixPath, ZipInfo]) -> PurePosixPath | None:
    root = PurePosixPath()
    if root / MANIFEST_NAME in members:
        return root
    top_level = {path.parts[0] for path in members if len(path.parts) > 1}
    if len(top_level) == 1:
        wrapped = PurePosixPath(next(iter(top_level)))
        if wrapped / MANIFEST_NAME in members:
            return wrapped
    return None
