"""Tests for the gas analyzer facade."""

import threading
from pathlib import Path

import pytest

from gaslens.config import GasLensConfig
from gaslens.models.report import AnalysisResult
from gaslens.models.static import ScanResult
from gaslens.static.analyzer import GasAnalyzer, analyze_source, apply_optimization
from gaslens.static.applicator import ApplyError
from gaslens.static.cache import ResultCache
from gaslens.static.parsers.solidity import SolidityPatternScanner


class CountingScanner(SolidityPatternScanner):
    """Scanner that counts how often it runs and can be held back."""

    def __init__(self, release: threading.Event | None = None) -> None:
        self.calls = 0
        self.release = release
        self._lock = threading.Lock()

    def scan_source(self, source: str) -> ScanResult:
        with self._lock:
            self.calls += 1
        if self.release is not None:
            self.release.wait(timeout=5)
        return super().scan_source(source)


@pytest.fixture
def scanner() -> CountingScanner:
    """Counting scanner."""
    return CountingScanner()


@pytest.fixture
def counting_analyzer(cache: ResultCache, scanner: CountingScanner) -> GasAnalyzer:
    """Analyzer whose scanner runs can be counted."""
    return GasAnalyzer(cache=cache, scanner=scanner)


class TestGasAnalyzer:
    """Test suite for GasAnalyzer."""

    def test_registry_result(self, analyzer: GasAnalyzer, registry_source: str) -> None:
        """Test totals, suggestions and derived numbers for a small contract."""
        result = analyzer.analyze(registry_source, "Registry.sol")

        assert result.contract_name == "Registry"
        assert result.total_gas_cost == 92200
        assert result.function_breakdown == {"sweep": 92200}
        assert [o.id for o in result.optimizations] == ["GL-201@6:9", "GL-102@6:9"]
        assert result.total_savings == 18900 + 63900
        assert result.optimized_gas_cost == 92200 - 82800
        assert result.cost_model_version == "heuristic-v1"

    def test_savings_follow_configured_loop_iterations(self, registry_source: str) -> None:
        """Test that rule savings use the same iteration estimate as the totals."""
        result = GasAnalyzer(GasLensConfig(loop_iterations=2)).analyze(registry_source)
        by_rule = {o.rule_id: o for o in result.optimizations}
        header_reads = sum(
            e.total_cost for e in result.estimates if e.line == 6 and e.operation_name == "SLOAD"
        )

        assert result.total_gas_cost == 200 + 2 * 2100 + 2 * (2100 + 5000)
        assert header_reads == 4200
        assert by_rule["GL-201"].savings == 2100
        assert by_rule["GL-201"].savings <= header_reads
        assert by_rule["GL-102"].savings == 7100
        assert result.optimized_gas_cost == result.total_gas_cost - 9200

    def test_total_is_sum_of_estimates(self, analyzer: GasAnalyzer, vault_source: str) -> None:
        """Test the total and the per-function breakdown bound."""
        result = analyzer.analyze(vault_source)

        assert result.total_gas_cost == sum(e.total_cost for e in result.estimates)
        assert sum(result.function_breakdown.values()) <= result.total_gas_cost
        assert result.total_savings == sum(o.savings for o in result.optimizations)
        assert result.optimized_gas_cost == max(0, result.total_gas_cost - result.total_savings)

    def test_breakdown_lists_every_function(self, analyzer: GasAnalyzer, vault_source: str) -> None:
        """Test that functions without costed constructs appear with zero."""
        result = analyzer.analyze(vault_source)

        assert set(result.function_breakdown) == {
            "transfer",
            "onlyOwner",
            "constructor",
            "deposit",
            "distribute",
            "sumFirst",
            "payout",
            "setPaused",
        }
        assert result.function_breakdown["transfer"] == 0
        # 'fee = 3' is a deployment cost outside every function
        assert result.total_gas_cost - sum(result.function_breakdown.values()) == 20000

    def test_heatmap_intensity(self, analyzer: GasAnalyzer, vault_source: str) -> None:
        """Test that intensities are normalized to the costliest line."""
        heatmap = analyzer.analyze(vault_source).heatmap_data

        assert heatmap
        assert all(0.0 <= p.intensity <= 1.0 for p in heatmap)
        assert max(p.intensity for p in heatmap) == 1.0
        assert [p.line for p in heatmap] == sorted(p.line for p in heatmap)

    def test_single_public_pure_function(self, analyzer: GasAnalyzer) -> None:
        """Test that one public pure function yields exactly one visibility suggestion."""
        source = "contract M {\n    function twice(uint256 x) public pure returns (uint256) {\n        return x * 2;\n    }\n}\n"

        result = analyzer.analyze(source)

        assert [o.rule_id for o in result.optimizations] == ["GL-001"]

    def test_empty_source(self, analyzer: GasAnalyzer) -> None:
        """Test that empty text gives an empty result."""
        result = analyzer.analyze("")

        assert result == AnalysisResult(cost_model_version="heuristic-v1")

    @pytest.mark.parametrize(
        "source",
        [
            "contract Broken { function f( {",
            "}}}} {{ for while (",
            "contract A { uint256 x; function f() public { x = ",
            '"unterminated',
        ],
    )
    def test_malformed_source_does_not_raise(self, analyzer: GasAnalyzer, source: str) -> None:
        """Test that analysis degrades instead of failing."""
        result = analyzer.analyze(source)

        assert result.total_gas_cost >= 0
        assert result.optimized_gas_cost >= 0

    def test_deterministic(self, vault_source: str) -> None:
        """Test that independent analyzers agree."""
        assert GasAnalyzer().analyze(vault_source) == GasAnalyzer().analyze(vault_source)


class TestCaching:
    """Test suite for cached analysis through the facade."""

    def test_unchanged_text_is_not_rescanned(
        self, counting_analyzer: GasAnalyzer, scanner: CountingScanner, counter_source: str
    ) -> None:
        """Test that a repeat call returns the cached result."""
        first = counting_analyzer.analyze(counter_source, "Counter.sol")
        second = counting_analyzer.analyze(counter_source, "Counter.sol")

        assert first is second
        assert scanner.calls == 1

    def test_changed_text_is_rescanned(
        self, counting_analyzer: GasAnalyzer, scanner: CountingScanner, counter_source: str
    ) -> None:
        """Test that any edit produces a new result."""
        counting_analyzer.analyze(counter_source, "Counter.sol")
        edited = counter_source.replace("count += 1", "count += 2")
        counting_analyzer.analyze(edited, "Counter.sol")

        assert scanner.calls == 2
        assert len(counting_analyzer.cache) == 1

    def test_expiry(
        self, counting_analyzer: GasAnalyzer, scanner: CountingScanner, clock, counter_source: str
    ) -> None:
        """Test that results are recomputed after the ttl."""
        counting_analyzer.analyze(counter_source)
        clock.advance(61)
        counting_analyzer.analyze(counter_source)

        assert scanner.calls == 2

    def test_invalidate(
        self, counting_analyzer: GasAnalyzer, scanner: CountingScanner, counter_source: str
    ) -> None:
        """Test dropping one document's results."""
        counting_analyzer.analyze(counter_source, "Counter.sol")
        counting_analyzer.analyze(counter_source, "Other.sol")
        counting_analyzer.invalidate("Counter.sol")
        counting_analyzer.analyze(counter_source, "Counter.sol")
        counting_analyzer.analyze(counter_source, "Other.sol")

        assert scanner.calls == 3

    def test_clear_cache(
        self, counting_analyzer: GasAnalyzer, scanner: CountingScanner, counter_source: str
    ) -> None:
        """Test dropping every result."""
        counting_analyzer.analyze(counter_source)
        counting_analyzer.clear_cache()
        counting_analyzer.analyze(counter_source)

        assert scanner.calls == 2

    def test_concurrent_calls_share_one_scan(self, counter_source: str) -> None:
        """Test that simultaneous requests for the same text scan once."""
        release = threading.Event()
        scanner = CountingScanner(release)
        analyzer = GasAnalyzer(scanner=scanner)
        results = []

        def worker() -> None:
            results.append(analyzer.analyze(counter_source, "Counter.sol"))

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for thread in threads:
            thread.start()
        release.set()
        for thread in threads:
            thread.join(timeout=5)

        assert scanner.calls == 1
        assert len(results) == 5
        assert all(r is results[0] for r in results)

    def test_ttl_from_config(self) -> None:
        """Test that the private cache uses the configured ttl."""
        analyzer = GasAnalyzer(GasLensConfig(cache_ttl_seconds=5))

        assert analyzer.cache.ttl == 5.0

    def test_uncached_helper(self, counter_source: str) -> None:
        """Test the module-level helper."""
        assert analyze_source(counter_source).total_gas_cost == 9200


class TestApplyOptimization:
    """Test suite for applying suggestions through the facade."""

    def test_apply_then_reanalyze(self, analyzer: GasAnalyzer, registry_source: str) -> None:
        """Test that an applied rewrite does not raise the estimate."""
        before = analyzer.analyze(registry_source, "Registry.sol")
        suggestion = before.optimizations[0]

        rewritten = analyzer.apply_optimization(suggestion, registry_source)
        after = analyzer.analyze(rewritten, "Registry.sol")

        assert isinstance(rewritten, str)
        assert after.total_gas_cost == 73300
        assert after.total_gas_cost <= before.total_gas_cost
        assert "GL-201" not in {o.rule_id for o in after.optimizations}

    def test_apply_storage_caching_then_reanalyze(self, analyzer: GasAnalyzer, registry_source: str) -> None:
        """Test that moving storage access out of a loop lowers the estimate by its savings."""
        before = analyzer.analyze(registry_source, "Registry.sol")
        suggestion = next(o for o in before.optimizations if o.rule_id == "GL-102")

        rewritten = analyzer.apply_optimization(suggestion, registry_source)
        after = analyzer.analyze(rewritten, "Registry.sol")

        assert "total = totalCached;" in rewritten
        assert after.total_gas_cost == 92200 - 63900
        assert after.total_gas_cost <= before.total_gas_cost
        assert "GL-102" not in {o.rule_id for o in after.optimizations}

    def test_apply_calldata_rewrite(self, analyzer: GasAnalyzer) -> None:
        """Test that a visibility fix also moves memory parameters to calldata."""
        source = "contract C {\n    function f(uint256[] memory xs) public {}\n}\n"
        suggestion = analyzer.analyze(source).optimizations[0]

        rewritten = analyzer.apply_optimization(suggestion, source)

        assert "function f(uint256[] calldata xs) external {}" in rewritten
        assert analyzer.analyze(rewritten).optimizations == []

    def test_visibility_fix(self, analyzer: GasAnalyzer, counter_source: str) -> None:
        """Test applying a visibility suggestion."""
        suggestion = analyzer.analyze(counter_source).optimizations[0]

        rewritten = apply_optimization(suggestion, counter_source)

        assert "function increment() external {" in rewritten
        assert len(analyzer.analyze(rewritten).optimizations) == 1

    def test_stale_suggestion(self, analyzer: GasAnalyzer, counter_source: str) -> None:
        """Test that edits between analyze and apply are detected."""
        suggestion = analyzer.analyze(counter_source).optimizations[0]
        edited = "// header\n" + counter_source

        assert analyzer.apply_optimization(suggestion, edited) is ApplyError.STALE_RANGE
        assert edited == "// header\n" + counter_source

    def test_every_suggestion_matches_its_source(self, analyzer: GasAnalyzer, vault_source: str) -> None:
        """Test that every suggestion applies to the text it came from."""
        result = analyzer.analyze(vault_source)

        for suggestion in result.optimizations:
            rewritten = analyzer.apply_optimization(suggestion, vault_source)
            assert isinstance(rewritten, str), suggestion.id
            assert analyzer.analyze(rewritten).total_gas_cost >= 0


@pytest.mark.slow
class TestVaultEndToEnd:
    """End to end analysis of the vault contract."""

    def test_analyze_file(self, contract_file: Path) -> None:
        """Test file analysis across every rule."""
        result = GasAnalyzer().analyze_file(contract_file)

        assert result.contract_name == "Vault"
        assert {o.rule_id for o in result.optimizations} == {"GL-001", "GL-101", "GL-102", "GL-201"}
        assert len({o.id for o in result.optimizations}) == len(result.optimizations)
        assert result.function_breakdown["distribute"] > result.function_breakdown["deposit"]

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing file raises."""
        with pytest.raises(FileNotFoundError):
            GasAnalyzer().analyze_file(tmp_path / "Missing.sol")
