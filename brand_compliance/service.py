"""
Compliance Service

Public entry point. Combines linguistic analysis and rule evaluation into a
single ComplianceResult and owns caching, batch fan-out and timeouts.

Flow per request:
1. Validate inputs (InvalidInput)
2. Result cache lookup by (snapshot version, content hash, context hash)
3. FeatureBundle (cached by snapshot version + content hash)
4. Analyzer checks, then rule evaluation against the cached RuleSet
5. Merge violations, de-duplicated by (type, context)
"""

import asyncio
import logging
import threading
import time
from datetime import datetime, timezone
from functools import lru_cache, partial
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from . import __version__
from .analyzer import FeatureBundle, LinguisticAnalyzer
from .cache import CacheBackend, MemoryCache, RedisCache
from .config import Settings, get_settings
from .errors import InvalidInput, ServiceTimeout
from .models import BrandSnapshot, ComplianceConfig, coerce_brand, coerce_config, content_hash
from .remediation import auto_fix, predict_violations
from .results import (
    AutoFixResult,
    BatchItemResult,
    ComplianceResult,
    PredictedIssue,
    Violation,
)
from .rules import CompiledRule, RuleCompiler, RuleEngine

logger = logging.getLogger(__name__)


SEVERITY_RANK = {"critical": 0, "high": 1, "medium": 2, "low": 3}


def merge_violations(*groups: Iterable[Violation]) -> List[Violation]:
    """Merge violation lists, keeping the first of each (type, context), most severe first."""
    seen = set()
    merged = []
    for group in groups:
        for violation in group:
            if violation.key in seen:
                continue
            seen.add(violation.key)
            merged.append(violation)
    return sorted(merged, key=lambda v: SEVERITY_RANK.get(v.severity, len(SEVERITY_RANK)))


def log_late_outcome(label: str, future: "asyncio.Future[Any]") -> None:
    """Consume the outcome of a worker that finished after its caller timed out."""
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.warning(f"Compliance check for {label} failed after timing out: {type(error).__name__}: {error}")
    else:
        logger.debug(f"Compliance check for {label} finished after timing out")


class ComplianceService:
    """
    Brand compliance orchestrator.

    Usage:
        service = ComplianceService()
        result = await service.validate_content(content, brand, {"content_type": "email"})
        print(result.is_compliant, result.score_percent)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        result_cache: Optional[CacheBackend] = None,
        feature_cache: Optional[CacheBackend] = None,
        compiler: Optional[RuleCompiler] = None,
        analyzer: Optional[LinguisticAnalyzer] = None,
    ):
        self.settings = settings or get_settings()
        self.analyzer = analyzer or LinguisticAnalyzer(settings=self.settings)
        self.compiler = compiler or RuleCompiler(settings=self.settings)
        self.feature_cache = feature_cache if feature_cache is not None else MemoryCache(
            max_entries=512, default_ttl=self.settings.RESULT_CACHE_TTL
        )
        self.result_cache = result_cache if result_cache is not None else self._default_result_cache()

        self._dynamic_rules: List[Tuple[Optional[str], CompiledRule]] = []
        self._lock = threading.Lock()

        logger.info(
            f"ComplianceService initialized (engine {__version__}, "
            f"result cache: {type(self.result_cache).__name__ if self.result_cache else 'disabled'})"
        )

    def _default_result_cache(self) -> Optional[CacheBackend]:
        if not self.settings.RESULT_CACHE_ENABLED:
            return None
        if self.settings.REDIS_URL:
            return RedisCache(url=self.settings.REDIS_URL, namespace=self.settings.CACHE_NAMESPACE)
        return MemoryCache(max_entries=1024)

    # =========================================================================
    # DYNAMIC RULES
    # =========================================================================

    def add_dynamic_rule(self, definition: Any, brand_id: Optional[str] = None) -> CompiledRule:
        """
        Register a session-scoped rule.

        Args:
            definition: Guideline fields with an optional "evaluator" callable
            brand_id: Restrict the rule to one brand (all brands when None)
        """
        rule = self.compiler.compile_dynamic(definition)
        with self._lock:
            self._dynamic_rules.append((brand_id, rule))
        logger.info(f"Registered dynamic rule {rule.id} for {brand_id or 'all brands'}")
        return rule

    def _dynamic_rules_for(self, brand_id: str) -> List[CompiledRule]:
        with self._lock:
            return [rule for scope, rule in self._dynamic_rules if scope is None or scope == brand_id]

    def build_engine(self, brand: Any) -> RuleEngine:
        """Rule engine for a brand with this session's dynamic rules applied."""
        brand = coerce_brand(brand)
        engine = RuleEngine(brand, compiler=self.compiler, analyzer=self.analyzer, settings=self.settings)
        for rule in self._dynamic_rules_for(brand.id):
            engine.add_dynamic_rule(rule)
        return engine

    # =========================================================================
    # VALIDATION
    # =========================================================================

    async def validate_content(self, content: str, brand: Any, config: Any = None) -> ComplianceResult:
        """
        Validate content against a brand.

        Raises:
            InvalidInput: Malformed content, brand or config
            ServiceTimeout: Evaluation exceeded the request timeout
        """
        worker, brand, config = self._start(content, brand, config)
        return await self._wait(worker, brand, config)

    def _start(
        self, content: Any, brand: Any, config: Any
    ) -> Tuple["asyncio.Future[ComplianceResult]", BrandSnapshot, ComplianceConfig]:
        """Validate inputs and start the evaluation in a worker thread."""
        if not isinstance(content, str):
            raise InvalidInput(f"Content must be a string, got {type(content).__name__}", field="content")
        brand = coerce_brand(brand)
        config = coerce_config(config)
        worker = asyncio.ensure_future(asyncio.to_thread(self._evaluate, content, brand, config))
        return worker, brand, config

    async def _wait(
        self,
        worker: "asyncio.Future[ComplianceResult]",
        brand: BrandSnapshot,
        config: ComplianceConfig,
    ) -> ComplianceResult:
        timeout = config.timeout or self.settings.REQUEST_TIMEOUT
        try:
            return await asyncio.wait_for(asyncio.shield(worker), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"Compliance check for {brand.id} timed out after {timeout}s")
            worker.add_done_callback(partial(log_late_outcome, brand.id))
            raise ServiceTimeout(f"Compliance check exceeded {timeout}s", timeout=timeout) from e

    async def batch_validate(
        self,
        items: Iterable[Union[str, Dict[str, Any]]],
        brand: Any,
        config: Any = None,
        max_concurrency: Optional[int] = None,
    ) -> List[BatchItemResult]:
        """
        Validate many items with bounded concurrency.

        Args:
            items: Strings or {"id", "content"} mappings
            brand: Brand shared by every item
            config: Config shared by every item
            max_concurrency: Ceiling on simultaneous evaluations

        Returns:
            One BatchItemResult per item, in input order. Item failures are
            captured per item and never fail the batch.
        """
        brand = coerce_brand(brand)
        config = coerce_config(config)
        limit = max_concurrency if max_concurrency is not None else self.settings.MAX_CONCURRENCY
        if limit < 1:
            raise InvalidInput(f"max_concurrency must be at least 1, got {limit}", field="max_concurrency")

        semaphore = asyncio.Semaphore(limit)

        async def run(item_id: str, content: Any) -> BatchItemResult:
            # A slot stays held until the worker thread finishes, even after
            # the item has timed out.
            await semaphore.acquire()
            worker = None
            try:
                worker, _, _ = self._start(content, brand, config)
                result = await self._wait(worker, brand, config)
                return BatchItemResult(id=item_id, result=result)
            except Exception as e:
                logger.warning(f"Batch item {item_id} failed: {type(e).__name__}: {e}")
                return BatchItemResult(id=item_id, error=str(e), error_type=type(e).__name__)
            finally:
                if worker is None or worker.done():
                    semaphore.release()
                else:
                    worker.add_done_callback(lambda _: semaphore.release())

        tasks = []
        for index, item in enumerate(items):
            if isinstance(item, dict):
                item_id = str(item.get("id", index))
                content = item.get("content")
            else:
                item_id = str(index)
                content = item
            tasks.append(run(item_id, content))

        logger.info(f"Batch validating {len(tasks)} items for {brand.id} (concurrency {limit})")
        return list(await asyncio.gather(*tasks))

    def _evaluate(self, content: str, brand: BrandSnapshot, config: ComplianceConfig) -> ComplianceResult:
        start_time = time.time()
        dynamic_rules = self._dynamic_rules_for(brand.id)

        cache_key = None
        if config.use_cache and self.result_cache is not None and not dynamic_rules:
            cache_key = f"result:{brand.snapshot_version}:{content_hash(content)}:{config.context_hash()}"
            cached = self.result_cache.get(cache_key)
            if cached:
                logger.debug(f"Result cache hit for {brand.id}")
                result = ComplianceResult.from_dict(cached)
                result.processing["cached"] = True
                return result

        features = self._features(brand, content)
        report = self.analyzer.validate(brand, content, config, features=features)

        engine = self.build_engine(brand)
        evaluation = engine.evaluate(content, config.to_context(), features=features)

        violations = merge_violations(engine.violations(evaluation), report.violations)

        result = ComplianceResult(
            is_compliant=evaluation.is_compliant,
            score=evaluation.score,
            brand_alignment_score=features.alignment_score,
            violations=violations,
            suggestions=report.suggestions,
            rule_conflicts=[c.to_dict() for c in evaluation.rule_conflicts],
            passed=[o.to_dict() for o in evaluation.passed],
            failed=[o.to_dict() for o in evaluation.failed],
            warnings=[o.to_dict() for o in evaluation.warnings],
            overridden=[o.to_dict() for o in evaluation.overridden],
            features=features.to_dict(),
            processing={
                "duration": round(time.time() - start_time, 4),
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "engine_version": __version__,
                "analyzer": self.analyzer.model_id,
                "cached": False,
                "brand_id": brand.id,
                "rules_version": engine.ruleset.version,
                "rules_evaluated": evaluation.rules_evaluated,
                "rules_skipped": len(evaluation.skipped),
                "rule_errors": list(evaluation.errors),
                "degraded_aspects": list(features.degraded_aspects),
            },
        )

        if cache_key:
            self.result_cache.put(cache_key, result.to_dict(), ttl=self.settings.RESULT_CACHE_TTL)

        logger.debug(
            f"Checked content for {brand.id}: compliant={result.is_compliant} "
            f"score={result.score_percent} violations={len(violations)}"
        )
        return result

    def _features(self, brand: BrandSnapshot, content: str) -> FeatureBundle:
        key = f"features:{brand.snapshot_version}:{content_hash(content)}"
        cached = self.feature_cache.get(key)
        if isinstance(cached, dict):
            return FeatureBundle.from_dict(cached)

        features = self.analyzer.analyze(brand, content)
        self.feature_cache.put(key, features.to_dict(), ttl=self.settings.RESULT_CACHE_TTL)
        return features

    # =========================================================================
    # PREDICTION & REMEDIATION
    # =========================================================================

    def predict_violations(self, content: str, brand: Any, config: Any = None) -> List[PredictedIssue]:
        """Fast pre-check for live-typing feedback."""
        brand = coerce_brand(brand)
        config = coerce_config(config)
        ruleset = self.build_engine(brand).ruleset
        return predict_violations(
            content,
            brand,
            config,
            analyzer=self.analyzer,
            ruleset=ruleset,
            settings=self.settings,
        )

    def auto_fix(
        self,
        content: str,
        violations: Union[ComplianceResult, Iterable[Union[Violation, Dict[str, Any]]]],
        brand: Any,
    ) -> AutoFixResult:
        """Best-effort remediation for mechanically fixable violations."""
        brand = coerce_brand(brand)
        if isinstance(violations, ComplianceResult):
            violations = violations.violations
        return auto_fix(content, violations, brand)


@lru_cache
def get_service() -> ComplianceService:
    """Get or create the shared service instance."""
    return ComplianceService()


def validate(content: str, brand: Any, config: Any = None) -> ComplianceResult:
    """
    Synchronous entry point.

    Must not be called from inside a running event loop; use
    ComplianceService.validate_content there.
    """
    return asyncio.run(get_service().validate_content(content, brand, config))
