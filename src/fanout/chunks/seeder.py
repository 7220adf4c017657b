"""
Module: seeder.py
Description: Seeds the token chunk cache.

Writes chunk_count chunks of chunk_size random tokens for one provider,
platform and severity, e.g. to prepare load tests of flow ALL.
"""

from typing import List

from fanout.chunks.address import ChunkAddressBuilder, ChunkKey, synthesize_chunks
from fanout.storage.chunk_store import ChunkStore
from fanout.utils.logger import get_logger

logger = get_logger(__name__)


class ChunkSeeder:
    """Writes synthesized token chunks to a chunk store."""

    def __init__(self, store: ChunkStore, builder: ChunkAddressBuilder = None):
        self.store = store
        self.builder = builder or ChunkAddressBuilder()

    async def seed(
        self,
        provider: str,
        platform: str,
        severity: str,
        chunk_count: int,
        chunk_size: int,
        token_length: int = 64
    ) -> List[ChunkKey]:
        """
        Write the chunks, one after another in index order.

        Returns:
            Keys of the written chunks
        """
        written = []
        for key, tokens in synthesize_chunks(
            self.builder, provider, platform, severity, chunk_count, chunk_size, token_length
        ):
            await self.store.put_tokens(key.path, tokens)
            written.append(key)

        logger.info(
            "Seeded token chunks",
            provider=provider,
            platform=platform,
            severity=severity,
            chunk_count=len(written),
            chunk_size=chunk_size
        )

        return written
