"""
contextchunker: context-preserving chunking of documentation for vector stores.
"""

__version__ = "0.1.0"
