"""Source parsers."""

from gaslens.static.parsers.solidity import SolidityPatternScanner, parse_declarations, scan

__all__ = ["SolidityPatternScanner", "parse_declarations", "scan"]
