"""
Module: address.py
Description: Deterministic storage addresses for token chunks.

A chunk is addressed by provider, platform, severity and a 1-based
sequence index. The caller allocates indices; the builder keeps no
counter state.

Key Components:
- ChunkKey: Composite chunk address rendering to a storage path
- ChunkAddressBuilder: Builds keys, listing prefixes and key plans
- synthesize_chunks(): Generates full chunks of random tokens
- split_into_chunks(): Groups existing tokens, last chunk may be short
"""

import secrets
import string
from typing import Iterator, List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fanout.utils.batch_helpers import chunk_list

TOKEN_ALPHABET = string.ascii_letters + string.digits


class ChunkKey(BaseModel):
    """
    Address of one chunk.

    Renders to "{provider}/{platform}/{severity}/{sequence_index}.json".
    Path segments may not contain '/', so distinct keys never share a path.
    """

    model_config = ConfigDict(frozen=True)

    provider: str = Field(..., min_length=1)
    platform: str = Field(..., min_length=1)
    severity: str = Field(..., min_length=1)
    sequence_index: int = Field(..., ge=1)

    @field_validator('provider', 'platform', 'severity')
    @classmethod
    def validate_segment(cls, v: str) -> str:
        """Segments are single path components."""
        if "/" in v:
            raise ValueError("chunk key segments must not contain '/'")
        if v.strip() != v:
            raise ValueError("chunk key segments must not have surrounding whitespace")
        return v

    @property
    def path(self) -> str:
        return f"{self.provider}/{self.platform}/{self.severity}/{self.sequence_index}.json"

    def __str__(self) -> str:
        return self.path


class ChunkAddressBuilder:
    """Builds chunk keys for a (provider, platform, severity) triple."""

    def build_key(self, provider: str, platform: str, severity: str, index: int) -> ChunkKey:
        """
        Build the key of chunk `index` (1-based) for a triple.

        Raises:
            pydantic.ValidationError: If a segment is invalid or index < 1
        """
        return ChunkKey(
            provider=provider,
            platform=platform,
            severity=severity,
            sequence_index=index,
        )

    def prefix(self, provider: str, platform: str, severity: str) -> str:
        """Listing prefix shared by every chunk of a triple."""
        # index 1 only validates the segments
        key = self.build_key(provider, platform, severity, 1)
        return f"{key.provider}/{key.platform}/{key.severity}/"

    def plan(self, provider: str, platform: str, severity: str, chunk_count: int) -> List[ChunkKey]:
        """Keys 1..chunk_count for a triple, in index order."""
        if chunk_count < 1:
            raise ValueError("chunk_count must be at least 1")
        return [
            self.build_key(provider, platform, severity, index)
            for index in range(1, chunk_count + 1)
        ]


def random_token(length: int) -> str:
    """Random alphanumeric token used to seed device caches."""
    if length < 1:
        raise ValueError("token length must be at least 1")
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def synthesize_chunks(
    builder: ChunkAddressBuilder,
    provider: str,
    platform: str,
    severity: str,
    chunk_count: int,
    chunk_size: int,
    token_length: int = 64,
) -> Iterator[Tuple[ChunkKey, List[str]]]:
    """
    Yield exactly chunk_count chunks of exactly chunk_size random tokens.

    Tokens are generated on demand, so every chunk is full.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")

    for key in builder.plan(provider, platform, severity, chunk_count):
        yield key, [random_token(token_length) for _ in range(chunk_size)]


def split_into_chunks(
    builder: ChunkAddressBuilder,
    provider: str,
    platform: str,
    severity: str,
    tokens: Sequence[str],
    chunk_size: int,
) -> List[Tuple[ChunkKey, List[str]]]:
    """
    Group existing tokens into addressed chunks.

    Every chunk holds chunk_size tokens except the last, which holds the
    remainder when the token count is not a multiple of chunk_size.
    """
    return [
        (builder.build_key(provider, platform, severity, index), group)
        for index, group in enumerate(chunk_list(tokens, chunk_size), start=1)
    ]
