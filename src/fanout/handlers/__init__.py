"""
Package: handlers
Description: Lambda entry points.

- device_updates.handler: device registration queue
- notification_queuer.handler: alert notifications
- push_sender.handler: push fan-out queues
- batch_protocol.handler: batch completion queue
"""
