"""Asset storage interface used to resolve logical references to files."""

import shutil
from pathlib import Path
from typing import Protocol


class AssetStore(Protocol):
    """Path resolution and existence checks for configuration references."""

    def resolve(self, ref: str) -> Path: ...

    def exists(self, path: Path) -> bool: ...

    def make_dirs(self, path: Path) -> None: ...

    def remove(self, path: Path) -> None: ...


class FilesystemAssetStore:
    """AssetStore backed by the local filesystem, rooted at a workspace directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def resolve(self, ref: str) -> Path:
        """Resolve a reference; absolute references are returned unchanged."""
        path = Path(ref).expanduser()
        if path.is_absolute():
            return path
        return (self.root / path).resolve()

    def exists(self, path: Path) -> bool:
        return Path(path).is_file()

    def make_dirs(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def remove(self, path: Path) -> None:
        target = Path(path)
        if target.is_dir():
            shutil.rmtree(target)
        elif target.exists():
            target.unlink()
