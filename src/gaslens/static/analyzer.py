"""Gas analyzer for Solidity source.

This module provides the main entry point for analysis: it runs the pattern
scanner, cost aggregator, rule engine and heatmap projector over a source
text and caches the combined result by content fingerprint.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Union

from gaslens.config import GasLensConfig
from gaslens.models.report import AnalysisResult
from gaslens.models.rules import OptimizationSuggestion
from gaslens.models.static import ScanResult
from gaslens.rules.executors import RuleExecutor
from gaslens.static.aggregator import CostAggregator
from gaslens.static.applicator import ApplyError, apply
from gaslens.static.cache import ResultCache, make_key
from gaslens.static.cost_model import default_cost_model
from gaslens.static.heatmap import project
from gaslens.static.parsers.solidity import SolidityPatternScanner

logger = logging.getLogger(__name__)

DEFAULT_CACHE_KEY = "<source>"


class GasAnalyzer:
    """Static gas analyzer.

    The cache is injected rather than shared process-wide; analyzers built
    without one get a private cache. Analysis itself is synchronous and never
    raises on malformed source.
    """

    def __init__(
        self,
        config: GasLensConfig | None = None,
        cache: ResultCache | None = None,
        scanner: SolidityPatternScanner | None = None,
    ) -> None:
        """Initialize the analyzer.

        Args:
            config: Optional configuration
            cache: Result cache, defaults to a private cache using the config's TTL
            scanner: Pattern scanner, replaceable for tests
        """
        self.config = config or GasLensConfig()
        self.cache = cache if cache is not None else ResultCache(ttl=self.config.cache_ttl_seconds)
        self.scanner = scanner or SolidityPatternScanner()
        self.aggregator = CostAggregator(self.config, default_cost_model)
        self.executor = RuleExecutor(self.config)

    def analyze(self, source: str, cache_key: str = DEFAULT_CACHE_KEY) -> AnalysisResult:
        """Analyze source text, reusing a cached result when the text is unchanged.

        Concurrent calls for the same key and text share one computation.

        Args:
            source: Solidity source code
            cache_key: Document identifier the result is cached under

        Returns:
            AnalysisResult for ``source``
        """
        key = make_key(cache_key, source)
        return self.cache.get_or_compute(key, lambda: self.compute(source))

    def analyze_file(self, file_path: Path | str, cache_key: str | None = None) -> AnalysisResult:
        """Analyze a Solidity file.

        Args:
            file_path: Path to the Solidity file
            cache_key: Document identifier, defaults to the path

        Returns:
            AnalysisResult for the file's content

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        path = Path(file_path) if isinstance(file_path, str) else file_path

        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {path}")

        source = path.read_text(encoding="utf-8")
        return self.analyze(source, cache_key or str(path))

    def compute(self, source: str) -> AnalysisResult:
        """Run the full pipeline without consulting the cache.

        Args:
            source: Solidity source code

        Returns:
            Fresh AnalysisResult
        """
        started = time.perf_counter()

        scan = self.scanner.scan_source(source)
        for warning in scan.parse_warnings:
            logger.warning("Partial scan: %s", warning)

        aggregation = self.aggregator.aggregate(scan.constructs)
        optimizations = self.executor.execute(scan.constructs, source)
        total_savings = sum(o.savings for o in optimizations)

        result = AnalysisResult(
            estimates=tuple(aggregation.estimates),
            optimizations=tuple(optimizations),
            total_gas_cost=aggregation.total_gas_cost,
            total_savings=total_savings,
            optimized_gas_cost=max(0, aggregation.total_gas_cost - total_savings),
            function_breakdown=aggregation.function_breakdown,
            heatmap_data=tuple(project(aggregation.estimates)),
            contract_name=self._main_contract(scan),
            cost_model_version=self.aggregator.cost_model.version,
        )

        logger.debug(
            "Analyzed %d constructs, %d suggestions in %.1f ms",
            len(scan.constructs),
            len(optimizations),
            (time.perf_counter() - started) * 1000,
        )
        return result

    @staticmethod
    def _main_contract(scan: ScanResult) -> str | None:
        # Interfaces and libraries only name the result when nothing else is declared
        for name in scan.contract_names:
            if scan.declared_types.get(name) == "contract":
                return name
        return scan.contract_names[0] if scan.contract_names else None

    def apply_optimization(
        self, suggestion: OptimizationSuggestion, source: str
    ) -> Union[str, ApplyError]:
        """Apply a suggestion to source text.

        Does not re-analyze; call :meth:`analyze` on the returned text.

        Args:
            suggestion: Suggestion to apply
            source: Current source text

        Returns:
            Rewritten text, or ``ApplyError.STALE_RANGE``
        """
        return apply(suggestion, source)

    def clear_cache(self) -> None:
        """Drop every cached result."""
        self.cache.clear()

    def invalidate(self, cache_key: str) -> None:
        """Drop cached results of one document.

        Args:
            cache_key: Document identifier passed to :meth:`analyze`, or a full key
        """
        self.cache.invalidate(cache_key)


def analyze_source(source: str, config: GasLensConfig | None = None) -> AnalysisResult:
    """Analyze Solidity source without caching.

    Args:
        source: Solidity source code
        config: Optional configuration

    Returns:
        AnalysisResult for ``source``
    """
    return GasAnalyzer(config).compute(source)


def apply_optimization(suggestion: OptimizationSuggestion, source: str) -> Union[str, ApplyError]:
    """Apply a suggestion to source text.

    Args:
        suggestion: Suggestion to apply
        source: Current source text

    Returns:
        Rewritten text, or ``ApplyError.STALE_RANGE``
    """
    return apply(suggestion, source)
