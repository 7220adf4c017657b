"""
Package: delivery
Description: Push delivery for the fan-out pipeline.

Provides the push gateway client and retry logic for handling
transient gateway failures.
"""
