"""
Module: chunk_store.py
Description: S3 storage of cached device token chunks.

Provides operations for writing, reading and listing token chunks in
S3. A chunk body is a JSON array of token strings.

Key Components:
- ChunkStore: Protocol of the chunk storage collaborator
- S3ChunkStore: boto3 implementation
- ChunkListing: One page of chunk keys with its continuation token

Dependencies: boto3, botocore, json, typing
Author: Fan-out Platform Team
"""

import json
from typing import List, Optional, Protocol

import boto3
from botocore.exceptions import ClientError
from pydantic import BaseModel

from fanout.errors import DownstreamError
from fanout.utils.logger import get_logger

logger = get_logger(__name__)


class ChunkListing(BaseModel):
    """One page of chunk keys."""

    keys: List[str]
    continuation_token: Optional[str] = None


class ChunkStore(Protocol):
    """Persists and retrieves token chunks by key."""

    bucket_name: str

    async def put_tokens(self, key: str, tokens: List[str]) -> None:
        ...

    async def get_tokens(self, key: str) -> List[str]:
        ...

    async def list_keys(self, prefix: str, continuation_token: Optional[str] = None) -> ChunkListing:
        ...


class S3ChunkStore:
    """
    S3 client for token chunk operations.

    Attributes:
        bucket_name: Name of the chunk bucket
        s3: boto3 S3 client

    Example:
        >>> store = S3ChunkStore(bucket_name="device-cache-chunks")
        >>> await store.put_tokens("dwd/fcm/Severe/1.json", ["tok-a", "tok-b"])
        >>> await store.get_tokens("dwd/fcm/Severe/1.json")
        ['tok-a', 'tok-b']
    """

    def __init__(self, bucket_name: str, page_size: int = 1000):
        """
        Initialize S3 chunk store.

        Args:
            bucket_name: Name of the chunk bucket
            page_size: Maximum keys returned per listing page

        Raises:
            ValueError: If bucket_name is empty or invalid
        """
        if not bucket_name or not isinstance(bucket_name, str):
            raise ValueError("bucket_name must be a non-empty string")

        self.bucket_name = bucket_name
        self.page_size = page_size
        self.s3 = boto3.client('s3')

        logger.info("S3 chunk store initialized", bucket_name=bucket_name)

    async def put_tokens(self, key: str, tokens: List[str]) -> None:
        """
        Write a chunk.

        Raises:
            DownstreamError: If the S3 operation fails
        """
        if not key or not isinstance(key, str):
            raise ValueError("key must be a non-empty string")

        try:
            self.s3.put_object(
                Bucket=self.bucket_name,
                Key=key,
                ContentType='application/json',
                Body=json.dumps(tokens).encode('utf-8')
            )

            logger.debug("Chunk written to S3", key=key, count=len(tokens), bucket_name=self.bucket_name)

        except ClientError as e:
            logger.error(
                "Failed to write chunk to S3",
                key=key,
                bucket_name=self.bucket_name,
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise DownstreamError(f"Failed to write chunk '{key}'") from e

    async def get_tokens(self, key: str) -> List[str]:
        """
        Read a chunk.

        Returns:
            Tokens of the chunk, in stored order

        Raises:
            DownstreamError: If the S3 operation fails or the body is not
                a JSON array of strings
        """
        if not key or not isinstance(key, str):
            raise ValueError("key must be a non-empty string")

        try:
            response = self.s3.get_object(Bucket=self.bucket_name, Key=key)
            body = response['Body'].read()

        except ClientError as e:
            logger.error(
                "Failed to read chunk from S3",
                key=key,
                bucket_name=self.bucket_name,
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise DownstreamError(f"Failed to read chunk '{key}'") from e

        try:
            tokens = json.loads(body)
        except ValueError as e:
            raise DownstreamError(f"Chunk '{key}' is not valid JSON") from e

        if not isinstance(tokens, list) or not all(isinstance(t, str) for t in tokens):
            raise DownstreamError(f"Chunk '{key}' is not a JSON array of strings")

        logger.debug("Chunk read from S3", key=key, count=len(tokens), bucket_name=self.bucket_name)

        return tokens

    async def list_keys(self, prefix: str, continuation_token: Optional[str] = None) -> ChunkListing:
        """
        List one page of chunk keys under a prefix.

        Args:
            prefix: Listing prefix, e.g. "dwd/fcm/Severe/"
            continuation_token: Token of the previous page

        Raises:
            DownstreamError: If the S3 operation fails
        """
        params = {
            'Bucket': self.bucket_name,
            'Prefix': prefix,
            'StartAfter': prefix,
            'MaxKeys': self.page_size,
        }
        if continuation_token:
            params['ContinuationToken'] = continuation_token

        try:
            response = self.s3.list_objects_v2(**params)

        except ClientError as e:
            logger.error(
                "Failed to list chunks in S3",
                prefix=prefix,
                bucket_name=self.bucket_name,
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise DownstreamError(f"Failed to list chunks under '{prefix}'") from e

        listing = ChunkListing(
            keys=[item['Key'] for item in response.get('Contents', [])],
            continuation_token=response.get('NextContinuationToken'),
        )

        logger.debug(
            "Chunks listed from S3",
            prefix=prefix,
            count=len(listing.keys),
            has_more=listing.continuation_token is not None
        )

        return listing
