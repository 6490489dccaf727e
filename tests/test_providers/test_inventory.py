"""
Tests for ucas/providers/inventory.py.

Covers:
  - JsonInventoryProvider parses accounts and resources
  - Resource entries inherit provider/region from their account
  - Missing file -> FileNotFoundError; malformed structure -> ValueError
  - Malformed account entries are skipped; the other accounts still load
  - ResourceResolver finds inventory resources and falls back to defaults
  - Inactive and failing accounts are skipped during resolution
"""

from __future__ import annotations

import json
import logging

import pytest

from ucas.config import InventoryConfig
from ucas.providers.base import InventoryProvider
from ucas.providers.inventory import JsonInventoryProvider, ResourceResolver


SNAPSHOT = {
    "accounts": [
        {
            "account_id": "aws-dev",
            "provider": "AWS",
            "active": True,
            "default_region": "ap-northeast-2",
            "resources": [
                {"id": "i-1", "instance_type": "t3.medium", "state": "running",
                 "tags": {"env": "dev"}, "name": "api"},
                {"id": "i-2", "service": "EC2", "region": "us-west-2", "state": "stopped"},
            ],
        },
        {
            "account_id": "gcp-1",
            "provider": "GCP",
            "active": False,
            "resources": [{"id": "gce-9", "service": "GCE", "state": "RUNNING"}],
        },
    ]
}


@pytest.fixture
def snapshot_path(tmp_path):
    path = tmp_path / "inventory.json"
    path.write_text(json.dumps(SNAPSHOT), encoding="utf-8")
    return path


class TestJsonInventoryProvider:
    def test_satisfies_protocol(self, snapshot_path):
        assert isinstance(JsonInventoryProvider(snapshot_path), InventoryProvider)

    def test_lists_accounts(self, snapshot_path):
        accounts = JsonInventoryProvider(snapshot_path).list_accounts()
        assert [a.account_id for a in accounts] == ["aws-dev", "gcp-1"]
        assert accounts[1].active is False

    def test_resources_inherit_account_fields(self, snapshot_path):
        provider = JsonInventoryProvider(snapshot_path)
        account = provider.list_accounts()[0]
        first, second = provider.list_resources(account)
        assert first.provider == "AWS"
        assert first.region == "ap-northeast-2"
        assert first.service == "EC2"
        assert first.name == "api"
        assert second.region == "us-west-2"

    def test_region_falls_back_to_provider_default(self, snapshot_path):
        provider = JsonInventoryProvider(snapshot_path, default_region="eu-central-1")
        gcp = provider.list_accounts()[1]
        assert provider.list_resources(gcp)[0].region == "eu-central-1"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            JsonInventoryProvider(tmp_path / "absent.json").list_accounts()

    def test_accounts_must_be_a_list(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"accounts": {"a": 1}}', encoding="utf-8")
        with pytest.raises(ValueError):
            JsonInventoryProvider(path).list_accounts()

    @pytest.mark.parametrize(
        "bad_block",
        [
            {"provider": "AWS", "resources": []},                # no account_id
            {"account_id": "   ", "provider": "AWS"},            # blank account_id
            {"account_id": "x", "provider": ["AWS"]},            # provider not a string
            "not-an-object",
        ],
    )
    def test_malformed_account_skipped(self, tmp_path, caplog, bad_block):
        path = tmp_path / "inventory.json"
        path.write_text(json.dumps({"accounts": [bad_block, SNAPSHOT["accounts"][0]]}), encoding="utf-8")
        with caplog.at_level(logging.WARNING, logger="ucas.providers.inventory"):
            accounts = JsonInventoryProvider(path).list_accounts()
        assert [a.account_id for a in accounts] == ["aws-dev"]
        assert "#0" in caplog.text
        assert [r.id for r in JsonInventoryProvider(path).list_resources(accounts[0])] == ["i-1", "i-2"]

    def test_malformed_account_does_not_hide_others_from_ranking(self, tmp_path):
        from ucas.config import SimulationConfig
        from ucas.providers.static import EstimatedMetricsProvider, StaticPricingProvider
        from ucas.recommendations.ranker import RecommendationRanker
        from ucas.rules.catalog import RuleCatalog
        from ucas.simulation.generator import ScenarioGenerator

        path = tmp_path / "inventory.json"
        path.write_text(json.dumps({"accounts": [
            {"provider": "AWS", "resources": []},
            {"account_id": "good", "provider": "AWS",
             "resources": [{"id": "i-1", "state": "running"}]},
        ]}), encoding="utf-8")
        ranker = RecommendationRanker(
            ScenarioGenerator(SimulationConfig(), StaticPricingProvider(), EstimatedMetricsProvider()),
            JsonInventoryProvider(path),
            RuleCatalog.empty(),
        )
        assert [r.id for r in ranker.discover_resources()] == ["i-1"]

    def test_bundled_snapshot_parses(self):
        from ucas.config import resolve_path

        provider = JsonInventoryProvider(resolve_path("data/inventory/inventory.json"))
        accounts = provider.list_accounts()
        assert accounts
        assert all(provider.list_resources(a) is not None for a in accounts)


class TestResourceResolver:
    def test_resolves_known_resource(self, snapshot_path):
        resolver = ResourceResolver(JsonInventoryProvider(snapshot_path), InventoryConfig())
        resource = resolver.resolve("i-1")
        assert resource.instance_type == "t3.medium"
        assert resource.region == "ap-northeast-2"

    def test_unknown_id_gets_default_descriptor(self, snapshot_path):
        resolver = ResourceResolver(JsonInventoryProvider(snapshot_path), InventoryConfig())
        resource = resolver.resolve("i-404")
        assert resource.id == "i-404"
        assert (resource.provider, resource.service, resource.region) == ("AWS", "EC2", "us-east-1")
        assert resource.project == "default"
        assert resource.tags == {"env": "dev"}
        assert resource.instance_type is None

    def test_inactive_account_not_indexed(self, snapshot_path):
        resolver = ResourceResolver(JsonInventoryProvider(snapshot_path), InventoryConfig())
        assert resolver.resolve("gce-9").service == "EC2"

    def test_no_inventory(self):
        resolver = ResourceResolver(None, InventoryConfig(default_region="ap-northeast-2"))
        assert resolver.resolve("i-1").region == "ap-northeast-2"

    def test_failing_account_is_skipped(self, make_inventory, resource_factory):
        inventory = make_inventory(
            {"broken": [resource_factory("i-1")], "ok": [resource_factory("i-2", instance_type="m5.large")]},
            failing=frozenset({"broken"}),
        )
        resolver = ResourceResolver(inventory, InventoryConfig())
        assert resolver.resolve("i-2").instance_type == "m5.large"
        assert resolver.resolve("i-1").instance_type is None

    def test_malformed_account_does_not_block_resolution(self, tmp_path):
        path = tmp_path / "inventory.json"
        path.write_text(json.dumps({"accounts": [
            {"active": True},
            {"account_id": "good", "provider": "AWS",
             "resources": [{"id": "i-7", "instance_type": "m5.large"}]},
        ]}), encoding="utf-8")
        resolver = ResourceResolver(JsonInventoryProvider(path), InventoryConfig())
        assert resolver.resolve("i-7").instance_type == "m5.large"

    def test_index_built_once(self, make_inventory, resource_factory):
        inventory = make_inventory({"a": [resource_factory("i-1")]})
        resolver = ResourceResolver(inventory, InventoryConfig())
        resolver.resolve_all(["i-1", "i-2", "i-3"])
        assert inventory.listed == ["a"]

    def test_index_is_per_resolver(self, snapshot_path):
        provider = JsonInventoryProvider(snapshot_path)
        first = ResourceResolver(provider, InventoryConfig())
        assert first.resolve("i-1").instance_type == "t3.medium"

        refreshed = json.loads(json.dumps(SNAPSHOT))
        refreshed["accounts"][0]["resources"][0]["instance_type"] = "m5.large"
        snapshot_path.write_text(json.dumps(refreshed), encoding="utf-8")

        assert first.resolve("i-1").instance_type == "t3.medium"
        assert ResourceResolver(provider, InventoryConfig()).resolve("i-1").instance_type == "m5.large"
