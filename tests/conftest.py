"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from gaslens.config import GasLensConfig
from gaslens.static.analyzer import GasAnalyzer
from gaslens.static.cache import ResultCache

COUNTER_SOURCE = """contract Counter {
    uint256 public count;

    function increment() public {
        count += 1;
    }

    function get() public view returns (uint256) {
        return count;
    }
}
"""

REGISTRY_SOURCE = """contract Registry {
    address[] public members;
    uint256 public total;

    function sweep() external {
        for (uint256 i = 0; i < members.length; i++) {
            total += 1;
        }
    }
}
"""

PACKING_SOURCE = """contract Packed {
    uint128 a;
    uint256 b;
    uint128 c;
}
"""

PAYER_SOURCE = """interface IToken {
    function transfer(address to, uint256 amount) external returns (bool);
}

contract Payer {
    IToken public token;

    function pay(address to, uint256 amount) external {
        token.transfer(to, amount);
        payable(to).transfer(amount);
        (bool ok, ) = to.call{value: amount}("");
        require(ok);
    }
}
"""

VAULT_SOURCE = """// SPDX-License-Identifier: MIT
pragma solidity ^0.8.20;

interface IERC20 {
    function transfer(address to, uint256 amount) external returns (bool);
}

/// @notice Toy vault used across the test suite
contract Vault {
    uint128 public totalDeposits;
    uint256 public fee = 3;
    uint128 public reserve;
    address public owner;
    bool public paused;
    uint256[] public holders;
    mapping(address => uint256) public balances;
    IERC20 public token;
    uint256 public constant MAX_FEE = 100;

    event Deposited(address indexed account, uint256 amount);

    modifier onlyOwner() {
        require(msg.sender == owner, "not owner");
        _;
    }

    constructor(IERC20 _token) {
        owner = msg.sender;
        token = _token;
    }

    function deposit(uint256 amount) public {
        require(!paused, "paused");
        balances[msg.sender] += amount;
        totalDeposits += uint128(amount);
        holders.push(amount);
        emit Deposited(msg.sender, amount);
    }

    function distribute() external onlyOwner {
        for (uint256 i = 0; i < holders.length; i++) {
            reserve += 1;
            for (uint256 j = 0; j < 3; j++) {
                balances[owner] += j;
            }
        }
    }

    function sumFirst() public pure returns (uint256 total) {
        for (uint256 i = 0; i < 5; i++) {
            total += i;
        }
    }

    function payout(address to, uint256 amount) external onlyOwner {
        uint256[] memory amounts = new uint256[](2);
        amounts[0] = amount;
        token.transfer(to, amount);
        payable(to).transfer(amount);
    }

    function setPaused(bool value) external onlyOwner {
        paused = value;
    }
}
"""


class FakeClock:
    """Manually advanced clock for cache tests."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def counter_source() -> str:
    """Contract with one storage variable and two public functions."""
    return COUNTER_SOURCE


@pytest.fixture
def registry_source() -> str:
    """Contract whose loop bound is a storage array length."""
    return REGISTRY_SOURCE


@pytest.fixture
def packing_source() -> str:
    """Contract with badly ordered sub-slot variables."""
    return PACKING_SOURCE


@pytest.fixture
def payer_source() -> str:
    """Contract making external calls of every kind."""
    return PAYER_SOURCE


@pytest.fixture
def vault_source() -> str:
    """Larger contract exercising every detector."""
    return VAULT_SOURCE


@pytest.fixture
def clock() -> FakeClock:
    """Manually advanced clock."""
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> ResultCache:
    """Result cache driven by the fake clock."""
    return ResultCache(ttl=60.0, clock=clock)


@pytest.fixture
def config() -> GasLensConfig:
    """Default configuration."""
    return GasLensConfig()


@pytest.fixture
def analyzer(cache: ResultCache) -> GasAnalyzer:
    """Analyzer with an injected cache."""
    return GasAnalyzer(cache=cache)


@pytest.fixture
def contract_file(tmp_path: Path) -> Path:
    """Vault contract written to a temporary file."""
    path = tmp_path / "Vault.sol"
    path.write_text(VAULT_SOURCE)
    return path
