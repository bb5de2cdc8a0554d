"""Content-addressed local artifact store for deployable payloads."""

import hashlib
import shutil
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol, Union

CHUNK_SIZE = 1024 * 1024
FINGERPRINT_LENGTH = 16


@dataclass(frozen=True)
class Bundle:
    """Opaque handle to a packaged payload."""

    destination: str

    @property
    def fingerprint(self) -> str:
        """Content-derived name used to detect whether a redeploy is needed."""
        return PurePosixPath(self.destination).name


class ArtifactResolver(Protocol):
    """Maps a bundle handle to a local filesystem path."""

    def resolve_artifact(self, destination: str) -> Path:
        ...


def file_digest(path: Path) -> str:
    """sha256 of a file, read in chunks."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


class LocalArtifactStore:
    """Stores payload files under ``root`` by content hash."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def put(self, path: Union[str, Path]) -> Bundle:
        """
        Store a payload file and return its bundle.

        Unchanged content always yields the same bundle, so re-running a
        deployment with the same payload is a no-op.
        """
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Payload not found: {path}")

        name = file_digest(path)[:FINGERPRINT_LENGTH] + path.suffix
        self.root.mkdir(parents=True, exist_ok=True)
        stored = self.root / name
        if not stored.exists():
            shutil.copyfile(path, stored)

        return Bundle(destination=f"artifacts/{name}")

    def resolve_artifact(self, destination: str) -> Path:
        """Resolve a bundle handle to the stored file."""
        stored = self.root / PurePosixPath(destination).name
        if not stored.is_file():
            raise FileNotFoundError(f"Artifact not found: {destination}")
        return stored
