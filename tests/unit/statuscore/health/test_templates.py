"""Tests for metric template expansion and threshold resolution."""

import pytest

from statuscore.definitions.schema import FlagMetricDefinition, MetricTemplate
from statuscore.errors import ConfigurationError
from statuscore.health.flags import Comparison
from statuscore.health.templates import (
    FlagRegistry,
    expand_query,
    resolve_threshold,
)


@pytest.fixture
def templates():
    return {
        "api_slow": MetricTemplate(
            query="stats.timers.api.$environment.$service.mean", op="gt", threshold=500
        ),
    }


def _flag(environments, template="api_slow", service="compute", name="api-slow"):
    return FlagMetricDefinition.model_validate({
        "name": name,
        "service": service,
        "template": {"name": template},
        "environments": environments,
    })


class TestExpandQuery:
    """Literal $service / $environment substitution."""

    def test_substitutes_both_tokens(self):
        query = expand_query("a.$environment.$service.b", "compute", "production")
        assert query == "a.production.compute.b"

    def test_repeated_tokens(self):
        assert expand_query("$service-$service", "db", "prod") == "db-db"

    def test_no_recursive_substitution(self):
        """A value that looks like a token is not expanded again."""
        assert expand_query("x.$service", "$environment", "prod") == "x.$environment"

    def test_query_without_tokens_is_unchanged(self):
        assert expand_query("sumSeries(a.b)", "svc", "env") == "sumSeries(a.b)"


class TestResolveThreshold:
    def test_override_wins(self, templates):
        assert resolve_threshold(templates["api_slow"], 750) == 750

    def test_default_without_override(self, templates):
        assert resolve_threshold(templates["api_slow"], None) == 500

    def test_zero_override_is_kept(self, templates):
        assert resolve_threshold(templates["api_slow"], 0) == 0


class TestFlagRegistry:
    """Expansion of flag metric definitions per environment."""

    def test_one_flag_per_environment(self, templates):
        registry = FlagRegistry.build(
            templates,
            [_flag([{"name": "production", "threshold": 750}, {"name": "staging"}])],
            ["production", "staging"],
        )

        prod = registry.get("compute.api-slow", "production")
        staging = registry.get("compute.api-slow", "staging")
        assert prod.query == "stats.timers.api.production.compute.mean"
        assert prod.threshold == 750
        assert prod.op is Comparison.GREATER_THAN
        assert staging.query == "stats.timers.api.staging.compute.mean"
        assert staging.threshold == 500
        assert len(registry) == 1
        assert "compute.api-slow" in registry

    def test_missing_environment_returns_none(self, templates):
        registry = FlagRegistry.build(templates, [_flag([{"name": "production"}])], ["production", "staging"])
        assert registry.get("compute.api-slow", "staging") is None
        assert registry.get("unknown.flag", "production") is None

    def test_for_environment(self, templates):
        registry = FlagRegistry.build(
            templates,
            [
                _flag([{"name": "production"}]),
                _flag([{"name": "production"}, {"name": "staging"}], service="storage"),
            ],
            ["production", "staging"],
        )
        assert set(registry.for_environment("production")) == {"compute.api-slow", "storage.api-slow"}
        assert set(registry.for_environment("staging")) == {"storage.api-slow"}
        assert registry.services() == {"compute", "storage"}

    def test_resolved_metric_evaluates(self, templates):
        registry = FlagRegistry.build(templates, [_flag([{"name": "production"}])], ["production"])
        metric = registry.get("compute.api-slow", "production")
        assert metric.evaluate(750) is True
        assert metric.evaluate(None) is False

    def test_undeclared_template_is_configuration_error(self, templates):
        with pytest.raises(ConfigurationError, match="undeclared template 'missing'"):
            FlagRegistry.build(templates, [_flag([{"name": "production"}], template="missing")], ["production"])

    def test_undeclared_environment_is_configuration_error(self, templates):
        with pytest.raises(ConfigurationError) as exc_info:
            FlagRegistry.build(templates, [_flag([{"name": "qa"}])], ["production"])
        message = str(exc_info.value)
        assert "'qa'" in message
        assert "'compute'" in message
