"""
Link Download Domain

Downloads a newline separated list of URLs with a fixed worker pool,
naming each file by the MD5 of its URL.
"""

__all__ = ["downloader"]
