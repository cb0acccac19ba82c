"""gaslens - static gas-cost analysis and optimization hints for Solidity."""

__version__ = "0.1.0"
