"""Asset store keeping plant photos on the local filesystem."""

from __future__ import annotations

from logging import getLogger
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from plantkeep.domain.backup.errors import PersistenceError

if TYPE_CHECKING:
    from uuid import UUID

log = getLogger(__name__)


class FileSystemAssetStore:
    """Store blobs as ``{root}/{user_id}/{name}``.

    The returned reference is the path relative to ``root`` using forward
    slashes, which keeps references portable across machines.
    """

    def __init__(self, root: Path) -> None:
        self.root = root.expanduser().resolve()

    def save(self, user_id: UUID, name: str, data: bytes) -> str:
        if not name or "/" in name or "\\" in name or name in {".", ".."}:
            raise PersistenceError(f"Invalid asset name {name!r}")
        target = self.root / str(user_id) / name
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp = target.with_name(f".{name}.tmp")
            tmp.write_bytes(data)
            tmp.replace(target)
        except OSError as exc:
            raise PersistenceError(f"Could not write asset {name!r}: {exc}") from exc
        log.debug("Stored asset %s (%s bytes)", target, len(data))
        return f"{user_id}/{name}"

    def load(self, reference: str) -> bytes | None:
        path = self._resolve(reference)
        if path is None or not path.is_file():
            return None
        try:
            return path.read_bytes()
        except OSError as exc:
            log.warning("Could not read asset %s: %s", reference, exc)
            return None

    def _resolve(self, reference: str) -> Path | None:
        parts = PurePosixPath(reference).parts
        if not parts or any(part in {"..", "/"} for part in parts):
            return None
        path = self.root.joinpath(*parts)
        return path if path.is_relative_to(self.root) else None


if TYPE_CHECKING:
    from plantkeep.domain.ports.assets import AssetStore

    _store_check: AssetStore = FileSystemAssetStore(Path())
