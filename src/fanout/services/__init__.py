"""
Package: services
Description: Use cases composed from routing, storage and queue clients.
"""
