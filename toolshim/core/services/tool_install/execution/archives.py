"""
Archive extraction - unpack a downloaded release asset.

The format is sniffed from the first bytes of the file, never from its
name. gzip and bzip2 streams are decompressed and sniffed again, since
they usually wrap a tar. Every regular file is written flat into the
destination directory under its base name.

Every file is written to a temp file, made executable (0755) and renamed
into place. A member that shares the archive's own name therefore
replaces it only once fully written, while the archive is still read
from the open file.

Failure behaviour:
    - a file that fails part way is removed, so a failed single-file
      gzip/bzip2 decompression writes nothing
    - tar and zip members written before an error stay on disk
      (``ArchiveError.files_written``)
    - an unrecognised format is not an error, ``extracted`` is False
"""

from __future__ import annotations

import bz2
import gzip
import io
import logging
import os
import shutil
import tarfile
import tempfile
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

from toolshim.core.errors import ArchiveError

logger = logging.getLogger(__name__)

SNIFF_SIZE = 512
EXTRACTED_FILE_MODE = 0o755

GZIP = "gzip"
BZIP2 = "bzip2"
TAR = "tar"
ZIP = "zip"
UNKNOWN = "unknown"

_GZIP_MAGIC = b"\x1f\x8b\x08"
_BZIP2_MAGIC = b"BZh"
_ZIP_MAGICS = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")
_TAR_MAGIC = b"ustar"
_TAR_MAGIC_OFFSET = 257

# gzip header flag bits (RFC 1952)
_FEXTRA = 0x04
_FNAME = 0x08

_DECODE_ERRORS = (tarfile.TarError, zipfile.BadZipFile, EOFError, zlib.error, OSError)

_TAR_TYPE_NAMES = {
    tarfile.SYMTYPE: "symlink",
    tarfile.LNKTYPE: "hard link",
    tarfile.CHRTYPE: "character device",
    tarfile.BLKTYPE: "block device",
    tarfile.FIFOTYPE: "fifo",
}


# ═══════════════════════════════════════════════════════════════════
#  Sniffing
# ═══════════════════════════════════════════════════════════════════


class SniffedStream(io.RawIOBase):
    """A stream whose first bytes were already read for sniffing.

    Replays ``head`` before reading on from ``stream``, so a consumer
    sees the full stream from offset zero.
    """

    def __init__(self, head: bytes, stream: BinaryIO) -> None:
        super().__init__()
        self.head = head
        self._pending = memoryview(head)
        self._stream = stream

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self._pending:
            n = min(len(buffer), len(self._pending))
            buffer[:n] = self._pending[:n]
            self._pending = self._pending[n:]
            return n
        data = self._stream.read(len(buffer))
        if not data:
            return 0
        buffer[: len(data)] = data
        return len(data)


def classify(head: bytes) -> str:
    """Name the format that a block of leading bytes belongs to."""
    if head.startswith(_GZIP_MAGIC):
        return GZIP
    if head.startswith(_BZIP2_MAGIC):
        return BZIP2
    if head.startswith(_ZIP_MAGICS):
        return ZIP
    if head[_TAR_MAGIC_OFFSET:_TAR_MAGIC_OFFSET + len(_TAR_MAGIC)] == _TAR_MAGIC:
        return TAR
    return UNKNOWN


def _read_head(stream: BinaryIO, size: int) -> bytes:
    chunks: list[bytes] = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def sniff_stream(stream: BinaryIO) -> tuple[SniffedStream, str]:
    """Read up to 512 bytes, classify them, and return a replaying stream.

    An empty stream is ``unknown``.
    """
    head = _read_head(stream, SNIFF_SIZE)
    kind = classify(head)
    logger.debug("sniffed %d bytes as %s", len(head), kind)
    return SniffedStream(head, stream), kind


def gzip_member_name(head: bytes) -> str | None:
    """The original file name stored in a gzip header, if any."""
    if len(head) < 10 or not head.startswith(_GZIP_MAGIC):
        return None
    flags = head[3]
    if not flags & _FNAME:
        return None
    pos = 10
    if flags & _FEXTRA:
        if len(head) < pos + 2:
            return None
        pos += 2 + int.from_bytes(head[pos:pos + 2], "little")
    end = head.find(b"\x00", pos)
    if end < 0:
        return None
    name = os.path.basename(head[pos:end].decode("latin-1"))
    return name or None


def derived_output_name(source: Path, suffixes: tuple[str, ...]) -> str:
    """Source file name with a compression suffix removed."""
    name = source.name
    for suffix in suffixes:
        if name.lower().endswith(suffix) and len(name) > len(suffix):
            return name[: -len(suffix)]
    return name + ".out"


# ═══════════════════════════════════════════════════════════════════
#  Results
# ═══════════════════════════════════════════════════════════════════


@dataclass
class ExtractionResult:
    """What ``extract_file`` did."""

    extracted: bool
    files: list[Path] = field(default_factory=list)
    format: str = UNKNOWN

    def to_dict(self) -> dict:
        return {
            "extracted": self.extracted,
            "files": [str(f) for f in self.files],
            "format": self.format,
        }


class _FlatWriter:
    """Writes archive members by base name into one directory."""

    def __init__(self, dest_dir: Path) -> None:
        self.dest_dir = dest_dir
        self.files: list[Path] = []

    def target(self, member_name: str) -> Path:
        path = self.dest_dir / os.path.basename(member_name.rstrip("/"))
        if path in self.files:
            logger.warning("%s appears more than once in the archive, keeping the last one", path.name)
            self.files.remove(path)
        return path

    def write(self, member_name: str, source: BinaryIO) -> Path:
        path = self.target(member_name)
        logger.debug("saving %s to %s", member_name, path)
        fd, tmp_name = tempfile.mkstemp(prefix=".toolshim-", dir=self.dest_dir)
        try:
            with os.fdopen(fd, "wb") as out:
                shutil.copyfileobj(source, out)
            os.chmod(tmp_name, EXTRACTED_FILE_MODE)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        self.files.append(path)
        return path


# ═══════════════════════════════════════════════════════════════════
#  Per-format extraction
# ═══════════════════════════════════════════════════════════════════


def _extract_tar(stream: BinaryIO, writer: _FlatWriter) -> None:
    logger.debug("extracting tar")
    with tarfile.open(fileobj=stream, mode="r|") as archive:
        for member in archive:
            if member.isdir():
                logger.debug("skipping directory %s", member.name)
                continue
            if not member.isreg():
                type_name = _TAR_TYPE_NAMES.get(member.type, repr(member.type))
                raise ArchiveError(
                    f"aborting extraction, unsupported entry type {type_name} "
                    f"for {member.name!r} in tar file",
                    writer.files,
                )
            source = archive.extractfile(member)
            with source:
                writer.write(member.name, source)
    logger.debug("end of tar file")


def _extract_compressed(
    decompressed: BinaryIO,
    writer: _FlatWriter,
    output_name: str,
) -> None:
    inner, kind = sniff_stream(decompressed)
    if kind == TAR:
        _extract_tar(inner, writer)
        return
    logger.debug("nothing to unarchive, saving the decompressed file as %s", output_name)
    writer.write(output_name, inner)


def _extract_zip(path: Path, writer: _FlatWriter) -> None:
    logger.debug("extracting zip")
    with zipfile.ZipFile(path) as archive:
        for info in archive.infolist():
            if info.filename.endswith("/"):
                logger.debug("skipping directory %s", info.filename)
                continue
            with archive.open(info) as source:
                writer.write(info.filename, source)


# ═══════════════════════════════════════════════════════════════════
#  Entry point
# ═══════════════════════════════════════════════════════════════════


def extract_file(path: str | Path, dest_dir: str | Path | None = None) -> ExtractionResult:
    """Decompress and unarchive ``path`` into ``dest_dir``.

    Args:
        path: File to extract.
        dest_dir: Output directory (default: the directory of ``path``).
            Created with mode 0700 if missing.

    Returns:
        ExtractionResult; ``extracted`` is False for a file that is not
        an archive or compressed stream.

    Raises:
        ArchiveError: If the content is truncated or corrupt, or a tar
            entry is not a regular file or directory.
        OSError: If ``path`` cannot be opened.
    """
    source = Path(path).resolve()
    dest = Path(dest_dir).resolve() if dest_dir is not None else source.parent
    logger.debug("extracting %s into %s", source, dest)
    dest.mkdir(mode=0o700, parents=True, exist_ok=True)
    writer = _FlatWriter(dest)

    with open(source, "rb") as fh:
        stream, kind = sniff_stream(fh)
        if kind == UNKNOWN:
            logger.debug("nothing to extract from %s, unknown file type", source.name)
            return ExtractionResult(extracted=False, format=UNKNOWN)

        try:
            if kind == GZIP:
                logger.debug("decompressing gzip")
                name = gzip_member_name(stream.head) or derived_output_name(
                    source, (".gz", ".gzip")
                )
                with gzip.GzipFile(fileobj=stream, mode="rb") as decompressed:
                    _extract_compressed(decompressed, writer, name)
            elif kind == BZIP2:
                logger.debug("decompressing bzip2")
                name = derived_output_name(source, (".bz2",))
                with bz2.BZ2File(stream, mode="rb") as decompressed:
                    _extract_compressed(decompressed, writer, name)
            elif kind == TAR:
                _extract_tar(stream, writer)
            else:
                _extract_zip(source, writer)
        except ArchiveError:
            raise
        except _DECODE_ERRORS as e:
            raise ArchiveError(
                f"Cannot extract {kind} file {source.name}: {e}", writer.files
            ) from e

    logger.info("extracted %d file(s) from %s (%s)", len(writer.files), source.name, kind)
    return ExtractionResult(extracted=True, files=list(writer.files), format=kind)
