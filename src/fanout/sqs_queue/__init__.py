"""
Package: sqs_queue
Description: SQS message queue operations for the fan-out pipeline.

Provides an async client for publishing fan-out batches to the
platform queues and completion notices to the batch protocol queue.
"""
