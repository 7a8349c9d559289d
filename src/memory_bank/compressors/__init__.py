"""Compressors for token-bounded context items."""

from memory_bank.compressors.base import Compressor, resolve_target
from memory_bank.compressors.extractive import ExtractiveCompressor, TruncationCompressor

__all__ = ["Compressor", "ExtractiveCompressor", "TruncationCompressor", "resolve_target"]
