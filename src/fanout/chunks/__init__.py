"""
Package: chunks
Description: Addressing and seeding of cached token chunks.
"""

from .address import ChunkAddressBuilder, ChunkKey, split_into_chunks, synthesize_chunks

__all__ = [
    "ChunkAddressBuilder",
    "ChunkKey",
    "split_into_chunks",
    "synthesize_chunks",
]
