"""Streaming gzip compression for backup payloads

A stored payload that does not decompress cleanly (bad header, failed CRC,
truncation or trailing bytes) raises IntegrityError; compression failures
raise BackupIOError.

The stream helpers are async generators: each pulls one chunk from its
source, transforms it and yields the result, so a pipeline such as
``store.write_payload(name, compress_stream(iter_chunks(data)))`` only
holds one chunk per stage in memory.
"""

import asyncio
import zlib
from typing import AsyncIterable, AsyncIterator

from gofr_dr.exceptions import BackupIOError, ConfigurationError, IntegrityError

# wbits for the gzip container (header + CRC trailer)
GZIP_WBITS = 16 + zlib.MAX_WBITS
DEFAULT_LEVEL = 9
DEFAULT_CHUNK_SIZE = 64 * 1024


def _check_level(level: int) -> int:
    if not 0 <= level <= 9:
        raise ConfigurationError(
            f"Compression level must be between 0 and 9, got {level}",
            details={"level": level},
        )
    return level


def _check_complete(decompressor) -> None:
    if not decompressor.eof:
        raise IntegrityError("Decompression failed: compressed stream is truncated")
    if decompressor.unused_data:
        raise IntegrityError(
            "Decompression failed: unexpected data after the compressed stream",
            details={"trailing_bytes": len(decompressor.unused_data)},
        )


async def iter_chunks(data: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Yield ``data`` in slices, giving other tasks a turn between slices."""
    view = memoryview(data)
    for offset in range(0, len(view), chunk_size):
        yield bytes(view[offset:offset + chunk_size])
        await asyncio.sleep(0)


async def compress_stream(
    chunks: AsyncIterable[bytes], level: int = DEFAULT_LEVEL
) -> AsyncIterator[bytes]:
    """Gzip-compress an async stream of chunks."""
    compressor = zlib.compressobj(_check_level(level), zlib.DEFLATED, GZIP_WBITS)
    try:
        async for chunk in chunks:
            out = compressor.compress(chunk)
            if out:
                yield out
        tail = compressor.flush()
    except zlib.error as e:
        raise BackupIOError(f"Compression failed: {e}") from e
    if tail:
        yield tail


async def decompress_stream(chunks: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
    """Gunzip an async stream of chunks.

    Raises:
        IntegrityError: On corrupt input or a stream that ends early
    """
    decompressor = zlib.decompressobj(GZIP_WBITS)
    try:
        async for chunk in chunks:
            out = decompressor.decompress(chunk)
            if out:
                yield out
        tail = decompressor.flush()
    except zlib.error as e:
        raise IntegrityError(f"Decompression failed: {e}") from e
    if tail:
        yield tail
    _check_complete(decompressor)


async def collect(chunks: AsyncIterable[bytes]) -> bytes:
    """Drain an async byte stream into one bytes object."""
    parts = []
    async for chunk in chunks:
        parts.append(chunk)
    return b"".join(parts)


def compress(data: bytes, level: int = DEFAULT_LEVEL) -> bytes:
    """One-shot gzip compression."""
    compressor = zlib.compressobj(_check_level(level), zlib.DEFLATED, GZIP_WBITS)
    try:
        return compressor.compress(data) + compressor.flush()
    except zlib.error as e:
        raise BackupIOError(f"Compression failed: {e}") from e


def decompress(data: bytes) -> bytes:
    """One-shot gzip decompression."""
    decompressor = zlib.decompressobj(GZIP_WBITS)
    try:
        out = decompressor.decompress(data) + decompressor.flush()
    except zlib.error as e:
        raise IntegrityError(f"Decompression failed: {e}") from e
    _check_complete(decompressor)
    return out
