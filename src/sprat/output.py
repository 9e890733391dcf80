"""
The writer: persisting compiled artifacts under an output directory.
"""
from __future__ import annotations

import shutil
import typing as t
from pathlib import Path, PurePosixPath

if t.TYPE_CHECKING:
    from .core import CompiledArtifact


def normalize_output_path(output_path: str) -> str:
    """
    Convert an artifact's output path to a canonical relative form, used both
    for writing and for detecting collisions.
    """
    parts = [p for p in PurePosixPath(output_path).parts if p not in ('/', '.')]
    if '..' in parts:
        raise ValueError(f'output path {output_path!r} escapes the output directory')
    return '/'.join(parts)


def purge(path: Path):
    """
    Remove every child of the directory @path, keeping the directory itself.
    """
    if not path.exists():
        return
    for child in path.iterdir():
        if child.is_dir():
            shutil.rmtree(child)
        else:
            child.unlink()


class FileSystemWriter:
    """
    Writes artifacts beneath @output_dir, creating directories as needed.
    """
    def __init__(self, output_dir: Path):
        self.output_dir = output_dir

    def target(self, artifact: CompiledArtifact) -> Path:
        return self.output_dir / normalize_output_path(artifact.output_path)

    def write(self, artifact: CompiledArtifact) -> Path:
        target = self.target(artifact)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(artifact.data)
        return target
