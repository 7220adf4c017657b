"""
Package: config
Description: Environment-based handler configuration.
"""
