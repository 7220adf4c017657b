"""
Module: storage
Description: Package initialization for the persistence collaborators.

This package contains the storage implementations used by the handlers:
- chunk_store: S3 storage of token chunks
- credentials: Secrets Manager database credentials
- pool: Lazily built process resources and the Postgres pool
- devices: Device table upsert/delete
- batch_protocol: DynamoDB protocol of fan-out batches

All storage operations follow async interfaces for consistency.
"""

__all__ = []
