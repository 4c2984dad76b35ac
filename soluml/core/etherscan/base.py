"""Source file container and the parser interface.

Turning Solidity text into class entities is delegated to a parser
implementation supplied by the caller; this module only defines the
contract the Etherscan client relies on.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from ..diagrams.models import ClassEntity


@dataclass
class SourceFile:
    """One verified Solidity source file."""
    code: str
    filename: str


class SourceParser(ABC):
    """Abstract base for Solidity source parsers.

    Subclasses implement parse_source(), returning one ClassEntity per
    contract, interface or library declared in the file with
    ``code_path`` set to the filename.
    """

    @abstractmethod
    def parse_source(self, source_text: str, filename: str) -> List[ClassEntity]:
        """Parse Solidity source into class entities.

        Args:
            source_text: Solidity source code
            filename: Path of the file within its source bundle

        Returns:
            List of ClassEntity objects
        """
        ...
