"""Asset store adapters."""

from __future__ import annotations

from .filesystem import FileSystemAssetStore

__all__ = ["FileSystemAssetStore"]
