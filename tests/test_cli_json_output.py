from __future__ import annotations

import json
import logging

import pytest

import home_enrichment.__main__ as cli
from home_enrichment.cache import ClimateCache, PropertyCache
from home_enrichment.orchestrator import EnrichmentOrchestrator
from home_enrichment.schema import ProviderResult


class Census:
    name = "census"
    configured = True

    async def lookup_by_address(self, query):
        return ProviderResult.hit({"year_built": 1915, "property_type": "Town House"}, self.name)


class Estimate:
    name = "climate-estimate"
    configured = True

    async def lookup_by_zip(self, zip_code, state=None):
        return ProviderResult.hit({"state": "CA", "storm_frequency": "moderate"}, self.name)


@pytest.fixture()
def fake_orchestrator(monkeypatch):
    seen = {}

    def build(settings=None, *, client=None, db_path=None):
        seen["db_path"] = db_path
        return EnrichmentOrchestrator(
            PropertyCache(":memory:"),
            ClimateCache(":memory:"),
            [Census()],
            [Estimate()],
            attach_climate=False,
        )

    monkeypatch.setattr(cli, "build_orchestrator", build)
    root = logging.getLogger("he")
    saved = (root.level, list(root.handlers), root.propagate)
    yield seen
    root.setLevel(saved[0])
    root.handlers[:] = saved[1]
    root.propagate = saved[2]


def test_property_command_prints_profile_and_home(fake_orchestrator, capsys):
    code = cli.main(
        [
            "--db",
            "ignored.sqlite",
            "property",
            "--address",
            "1 Main St",
            "--city",
            "San Jose",
            "--state",
            "California",
            "--zip",
            "95112",
        ]
    )
    out = json.loads(capsys.readouterr().out)
    assert code == 0
    assert fake_orchestrator["db_path"] == "ignored.sqlite"
    assert out["found"] is True
    assert out["sources"] == ["census"]
    assert out["home"] == {"year_built": 1915, "home_type": "townhouse"}


def test_climate_command_prints_recommendations(fake_orchestrator, capsys):
    code = cli.main(["climate", "--zip", "95112"])
    out = json.loads(capsys.readouterr().out)
    assert code == 0
    assert out["data"]["zip"] == "95112"
    assert out["data"]["storm_frequency"] == "moderate"
    assert isinstance(out["recommendations"], list)


def test_missing_subcommand_exits():
    with pytest.raises(SystemExit):
        cli.main([])
