"""
HTTP Layer.

This package handles all communication with the remote package index and
catalog sites.
"""

from .client import HttpClient

__all__ = ["HttpClient"]
