"""Reading and writing ``.miz`` archives.

A ``.miz`` is a zip file whose ``mission`` entry holds the serialized mission
table. Repacking writes a new archive with the patched ``mission``, any files
from a ``repack/`` directory next to the input, and every original entry that
was not replaced.
"""
from __future__ import annotations

import io
import logging
import shutil
import zipfile
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from miz_repacker.errors import RepackError

LOGGER = logging.getLogger(__name__)

MISSION_ENTRY = "mission"
REPACK_DIR = "repack"
COMPRESS_LEVEL = 9


def read_mission(miz_path: Path) -> str:
    """Return the decoded ``mission`` entry of a ``.miz`` archive."""
    with zipfile.ZipFile(miz_path, "r") as z:
        data = z.read(MISSION_ENTRY)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise RepackError(f"mission entry of {miz_path} is not UTF-8 text") from exc


def splice_filename(path: Path, suffix: str) -> Path:
    """``Mission.miz`` + ``night`` -> ``Mission_night.miz`` (same directory)."""
    if not path.suffix:
        raise RepackError(f"File extension missing: {path}")
    return path.with_name(f"{path.stem}_{suffix}{path.suffix}")


def iter_repack_files(repack_dir: Path) -> Iterator[tuple[str, Path]]:
    """Yield ``(archive name, file path)`` for every file under ``repack_dir``."""
    if not repack_dir.is_dir():
        return
    for fs_path in sorted(repack_dir.rglob("*")):
        if fs_path.is_file():
            yield fs_path.relative_to(repack_dir).as_posix(), fs_path


class MizWriter:
    """Zip writer that keeps the first entry written under each name."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.added: set[str] = set()
        self._zip = zipfile.ZipFile(
            path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=COMPRESS_LEVEL
        )

    def __enter__(self) -> "MizWriter":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._zip.close()

    def add(self, name: str, data: BinaryIO) -> bool:
        """Copy ``data`` into the archive as ``name``. Returns False for duplicates."""
        name = name.replace("\\", "/")
        if name in self.added:
            LOGGER.debug("Skipping duplicate entry %s", name)
            return False
        self.added.add(name)
        with self._zip.open(name, "w") as dst:
            shutil.copyfileobj(data, dst)
        return True


def write_miz(
    out_path: Path,
    mission: str,
    source: Path,
    repack_dir: Optional[Path] = None,
) -> list[str]:
    """Write a new archive at ``out_path`` based on ``source``.

    Order matters, since only the first entry for a name is kept: the patched
    mission, then ``repack_dir`` files, then the original entries.

    Returns:
        Names of all entries written.
    """
    with MizWriter(out_path) as writer:
        writer.add(MISSION_ENTRY, io.BytesIO(mission.encode("utf-8")))

        if repack_dir is not None and repack_dir.is_dir():
            LOGGER.info("-> Repacking files from %s directory", repack_dir.name)
            for name, fs_path in iter_repack_files(repack_dir):
                with fs_path.open("rb") as fh:
                    if writer.add(name, fh):
                        LOGGER.info("   Repacked %s", name)

        with zipfile.ZipFile(source, "r") as src:
            for info in src.infolist():
                if info.is_dir():
                    continue
                with src.open(info) as fh:
                    writer.add(info.filename, fh)

        return sorted(writer.added)
