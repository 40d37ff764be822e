"""
CLI Tests
"""

import json

import pytest

from entity_graph.cli import build_parser, main

from tests.fixtures import bundle, funding_gap_bundle


@pytest.fixture
def dataset(tmp_path):
    def write(data):
        path = tmp_path / "bundle.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)
    return write


class TestCommands:

    def test_tools(self, capsys):
        assert main(["tools"]) == 0
        names = [t["name"] for t in json.loads(capsys.readouterr().out)]
        assert len(names) == 7

    def test_stats(self, dataset, capsys):
        assert main(["stats", dataset(bundle())]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["import"]["entitiesRegistered"] == 4
        assert out["import"]["relationshipsSkipped"] == 1
        assert out["registry"]["totalRelationships"] == 3

    def test_stats_with_failures_exits_nonzero(self, dataset, capsys):
        data = bundle()
        data["entities"] = [{"id": "broken"}]
        assert main(["stats", dataset(data)]) == 1
        out = json.loads(capsys.readouterr().out)
        assert out["import"]["failures"]["entities"][0]["sourceId"] == "broken"

    def test_run_tool(self, dataset, capsys):
        path = dataset(funding_gap_bundle())
        assert main(["run", path, "calculate_funding_gap", "--params", '{"fundingMultiplier": 2}']) == 0
        assert json.loads(capsys.readouterr().out)["gap"] == -3_000_000

    def test_run_bad_json(self, dataset, capsys):
        assert main(["run", dataset(bundle()), "filter_entities", "--params", "{sector"]) == 2
        assert "not valid JSON" in capsys.readouterr().err

    def test_run_unknown_tool(self, dataset, capsys):
        assert main(["run", dataset(bundle()), "teleport"]) == 1
        assert "Unknown tool: teleport" in capsys.readouterr().err

    def test_missing_dataset(self, tmp_path, capsys):
        assert main(["stats", str(tmp_path / "missing.json")]) == 1
        assert capsys.readouterr().err.startswith("[!]")

    def test_layout(self, dataset, capsys):
        assert main(["layout", dataset(bundle()), "--cluster-by", "entity_type", "--ticks", "5"]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["ticks"] == 5
        assert len(out["clusters"]) == 4


class TestParser:

    def test_serve_defaults(self):
        args = build_parser().parse_args(["serve"])
        assert (args.host, args.port, args.dataset, args.reload) == ("127.0.0.1", 8000, None, False)

    def test_rejects_unknown_cluster_dimension(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["layout", "x.json", "--cluster-by", "colour"])
