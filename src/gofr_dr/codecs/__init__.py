"""Payload codecs: AES-256-GCM encryption and streaming gzip compression."""

from gofr_dr.codecs.compression import (
    collect,
    compress,
    compress_stream,
    decompress,
    decompress_stream,
    iter_chunks,
)
from gofr_dr.codecs.crypto import CryptoCodec, decrypt, derive_key, encrypt

__all__ = [
    "CryptoCodec",
    "encrypt",
    "decrypt",
    "derive_key",
    "compress",
    "decompress",
    "compress_stream",
    "decompress_stream",
    "iter_chunks",
    "collect",
]
