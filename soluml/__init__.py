"""soluml: class diagrams for Solidity contracts."""
