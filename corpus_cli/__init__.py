"""
corpus-cli: fetch and assemble code corpora with a bounded pool of concurrent
downloads and a slotted, line-by-line progress log.
"""

__version__ = "0.3.0"
