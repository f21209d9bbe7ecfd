"""Store layer.

This package is the single owner of aggregator state: the bounded record
store with its source-activity map, the staging area that makes in-flight
submissions durable, the main store file, and startup recovery.
"""
