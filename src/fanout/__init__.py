"""
Package: fanout
Description: Queue-triggered handlers of the alert notification fan-out.

Device updates, notification queuing, push sending and the batch
protocol all run through the same batch dispatcher: each SQS record
is routed to the strategy of its operation tag, and only failed
records are reported back for redelivery.
"""

__version__ = "0.1.0"
