"""
Module: sqs.py
Description: SQS client for fan-out queue operations.

Handles publishing fan-out messages to the platform queues and batch
completion notices to the protocol queue.
"""

from typing import List, Optional, Tuple

from aioboto3 import Session
from botocore.exceptions import BotoCoreError, ClientError

from fanout.errors import DownstreamError
from fanout.utils.batch_helpers import validate_batch_size
from fanout.utils.logger import get_logger

logger = get_logger(__name__)

# SQS limit for SendMessageBatch
MAX_BATCH_ENTRIES = 10


class SQSClient:
    """
    SQS client for fan-out queue operations.

    One client serves every queue of a process; the queue URL is passed
    per call.
    """

    def __init__(self, session: Optional[Session] = None):
        self.session = session or Session()

        logger.info("SQS client initialized")

    async def send_message(self, queue_url: str, body: str, entry_id: Optional[str] = None) -> str:
        """
        Send one message.

        Args:
            queue_url: Target queue URL
            body: Serialized message body
            entry_id: Identifier logged with the message (e.g. batch id)

        Returns:
            Message ID from SQS

        Raises:
            DownstreamError: If the SQS operation fails
            ValueError: If parameters are invalid
        """
        if not queue_url or not isinstance(queue_url, str):
            raise ValueError("queue_url must be a non-empty string")
        if not body or not isinstance(body, str):
            raise ValueError("body must be a non-empty string")

        try:
            async with self.session.client('sqs') as sqs:
                response = await sqs.send_message(QueueUrl=queue_url, MessageBody=body)

            message_id = response['MessageId']
            logger.info(
                "Message sent to SQS",
                entry_id=entry_id,
                message_id=message_id,
                queue_url=queue_url
            )

            return message_id

        except ClientError as e:
            logger.error(
                "Failed to send message to SQS",
                entry_id=entry_id,
                queue_url=queue_url,
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise DownstreamError(f"Failed to send message to {queue_url}") from e

        except BotoCoreError as e:
            logger.error(
                "Failed to reach SQS",
                entry_id=entry_id,
                queue_url=queue_url,
                error=str(e)
            )
            raise DownstreamError(f"Failed to send message to {queue_url}: {e}") from e

    async def send_message_batch(self, queue_url: str, entries: List[Tuple[str, str]]) -> List[str]:
        """
        Send up to ten messages in one request.

        Args:
            queue_url: Target queue URL
            entries: (entry id, serialized body) pairs; ids unique per call

        Returns:
            Message IDs of the sent entries, in entry order

        Raises:
            DownstreamError: If the request fails or any entry is rejected
            ValueError: If the batch is empty or too large
        """
        if not queue_url or not isinstance(queue_url, str):
            raise ValueError("queue_url must be a non-empty string")
        validate_batch_size(entries, MAX_BATCH_ENTRIES)

        try:
            async with self.session.client('sqs') as sqs:
                response = await sqs.send_message_batch(
                    QueueUrl=queue_url,
                    Entries=[
                        {'Id': entry_id, 'MessageBody': body}
                        for entry_id, body in entries
                    ]
                )

        except ClientError as e:
            logger.error(
                "Failed to send message batch to SQS",
                queue_url=queue_url,
                entry_count=len(entries),
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise DownstreamError(f"Failed to send message batch to {queue_url}") from e

        except BotoCoreError as e:
            logger.error(
                "Failed to reach SQS",
                queue_url=queue_url,
                entry_count=len(entries),
                error=str(e)
            )
            raise DownstreamError(f"Failed to send message batch to {queue_url}: {e}") from e

        failed = response.get('Failed', [])
        if failed:
            logger.error(
                "SQS rejected batch entries",
                queue_url=queue_url,
                failed_ids=[f.get('Id') for f in failed],
                entry_count=len(entries)
            )
            raise DownstreamError(f"{len(failed)} of {len(entries)} entries rejected by {queue_url}")

        sent = {s['Id']: s['MessageId'] for s in response.get('Successful', [])}

        logger.info("Message batch sent to SQS", queue_url=queue_url, entry_count=len(entries))

        return [sent.get(entry_id, "") for entry_id, _ in entries]
