"""
Shared helpers: block utilities, metrics, file I/O and sample payloads.
"""
