"""
Storage Layer.

This package handles local persistence: the INI configuration file and
copying downloaded corpora into the output tree.
"""

from .config_manager import ConfigManager
from .corpus_copy import copy_corpus

__all__ = ["ConfigManager", "copy_corpus"]
