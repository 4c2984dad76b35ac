"""Verified source retrieval from Etherscan.

Public API:
    EtherscanClient — fetches source files and parses them into class entities
    SourceParser — interface for Solidity parsers
    SourceFile — one (code, filename) pair
"""

from .base import SourceFile, SourceParser
from .client import EtherscanClient

__all__ = ["EtherscanClient", "SourceFile", "SourceParser"]
