"""
Content-addressed palette cache.

A palette is keyed by a 32-bit FNV-1a hash over the image's identity (resolved
path, size, modification time) and every config field that changes the
palette. Records are small fixed-layout binary files named by the key in hex.

Record layout (little endian):

    header   3s B B      magic b"PAL", record version, accent count
    color    3B x i f    r, g, b, pad, vibrancy (int32), luminance (float32)

followed by background, foreground and the accents, one color each.
"""

from pathlib import Path
import contextlib
import logging
import os
import struct
import tempfile

from color_metrics import Color, Palette
from pal_config import Config


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193

RECORD_MAGIC = b"PAL"
RECORD_VERSION = 1
HEADER = struct.Struct("<3sBB")
COLOR = struct.Struct("<3Bxif")


class CacheWriteFailure(OSError):
    """A palette record could not be persisted."""


# =============================================================================
# Key derivation
# =============================================================================

def fnv1a_32(data: bytes, h: int = FNV_OFFSET_BASIS) -> int:
    """32-bit FNV-1a hash, optionally continuing from a previous accumulator."""
    for byte in data:
        h ^= byte
        h = (h * FNV_PRIME) & 0xFFFFFFFF
    return h


def key_fields(image_path: str | Path, config: Config) -> list[bytes]:
    """Byte encodings of everything the cache key depends on, in hash order."""
    path = Path(image_path).resolve()
    st = path.stat()
    return [
        os.fsencode(path),
        struct.pack("<q", st.st_size),
        struct.pack("<q", st.st_mtime_ns),
        struct.pack("<i", config.accent_count),
        struct.pack("<f", config.saturation),
        # method and format share one byte: (method << 1) | format
        struct.pack("<B", (int(config.method) << 1) | int(config.format)),
    ]


def cache_key(image_path: str | Path, config: Config) -> int:
    """
    Hash the image's file state and the output-affecting config.

    Fields are fed in order through a single FNV-1a accumulator. Cosmetic
    flags (show_bg_fg, silent) are not part of the key.

    Raises:
        OSError: If the image cannot be stat'ed
    """
    h = FNV_OFFSET_BASIS
    for field_bytes in key_fields(image_path, config):
        h = fnv1a_32(field_bytes, h)
    return h


# =============================================================================
# Record encoding
# =============================================================================

def pack_color(color: Color) -> bytes:
    return COLOR.pack(color.r, color.g, color.b, color.vibrancy, color.luminance)


def unpack_color(buf: bytes, offset: int) -> Color:
    r, g, b, vibrancy, luminance = COLOR.unpack_from(buf, offset)
    return Color(r, g, b, vibrancy, luminance)


def encode_record(palette: Palette) -> bytes:
    parts = [HEADER.pack(RECORD_MAGIC, RECORD_VERSION, len(palette.accents))]
    parts.extend(pack_color(c) for c in palette.colors())
    return b"".join(parts)


def decode_record(buf: bytes) -> Palette | None:
    """Parse a record, or return None if it is malformed in any way."""
    if len(buf) < HEADER.size:
        return None
    magic, version, count = HEADER.unpack_from(buf, 0)
    if magic != RECORD_MAGIC or version != RECORD_VERSION:
        return None
    if len(buf) != HEADER.size + (count + 2) * COLOR.size:
        return None

    colors = [unpack_color(buf, HEADER.size + i * COLOR.size) for i in range(count + 2)]
    return Palette(background=colors[0], foreground=colors[1], accents=tuple(colors[2:]))


# =============================================================================
# Store
# =============================================================================

class CacheStore:
    """Palette records in a single directory, one file per key."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def path_for(self, key: int) -> Path:
        return self.directory / f"{key:08X}"

    def lookup(self, key: int) -> Palette | None:
        """Return the cached palette for key, treating any anomaly as a miss."""
        path = self.path_for(key)
        try:
            buf = path.read_bytes()
        except OSError:
            return None

        palette = decode_record(buf)
        if palette is None:
            logger.debug("Ignoring corrupt cache record %s (%d bytes)", path, len(buf))
        return palette

    def store(self, key: int, palette: Palette) -> None:
        """
        Write a record atomically (temp file, then rename).

        Raises:
            CacheWriteFailure: If the directory or file cannot be written
        """
        path = self.path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{path.name}.", suffix=".tmp")
        except OSError as e:
            raise CacheWriteFailure(f"Could not write cache record {path}: {e}") from e

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(encode_record(palette))
            os.replace(tmp_name, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise CacheWriteFailure(f"Could not write cache record {path}: {e}") from e
