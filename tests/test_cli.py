"""Tests for the command-line snapshot."""

import json
import logging

import pytest

from research_feed import cli
from research_feed import config as config_module
from research_feed.config import FeedConfig

RECORDS = [
    {
        "id": "1",
        "symbol": "AAPL",
        "assetType": "stock",
        "timestamp": "2026-10-14T14:00:00Z",
        "riskRewardRatio": 2.0,
    },
    {
        "id": "2",
        "symbol": "BTC",
        "assetType": "crypto",
        "timestamp": "2026-10-15T14:00:00Z",
        "probabilityBand": "A",
    },
    {
        "id": "3",
        "symbol": "TSLA",
        "outcomeStatus": "hit_target",
        "timestamp": "2026-10-13T14:00:00Z",
        "realizedPnL": 120.0,
    },
    {"id": "4"},
]


@pytest.fixture(autouse=True)
def fixed_config(monkeypatch):
    monkeypatch.setattr(config_module, "_config", FeedConfig())


@pytest.fixture
def ideas_file(tmp_path):
    path = tmp_path / "ideas.json"
    path.write_text(json.dumps(RECORDS))
    return path


def test_json_output(ideas_file, capsys):
    assert cli.main([str(ideas_file), "--sort", "timestamp"]) == 0

    out = json.loads(capsys.readouterr().out)
    assert [idea["symbol"] for idea in out["active"]] == ["BTC", "AAPL"]
    assert [idea["symbol"] for idea in out["closed"]] == ["TSLA"]
    assert out["filter_state"]["sort_by"] == "timestamp"


def test_filters_are_applied(ideas_file, capsys):
    assert cli.main([str(ideas_file), "--grade", "A", "--asset-type", "crypto"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert [group["label"] for group in out["groups"]] == ["crypto"]


def test_wrapped_payload(tmp_path, capsys):
    path = tmp_path / "payload.json"
    path.write_text(json.dumps({"setups": RECORDS}))
    assert cli.main([str(path)]) == 0
    assert json.loads(capsys.readouterr().out)["outcome_counts"]["closed"] == 1


def test_table_output(ideas_file, capsys):
    assert cli.main([str(ideas_file), "--format", "table", "--status-filter", "all"]) == 0

    out = capsys.readouterr().out
    assert "Active: 2  Closed: 1" in out
    assert "== stock" in out
    assert "== crypto" in out
    assert "TSLA" in out


def test_page_argument(ideas_file, capsys):
    assert cli.main([str(ideas_file), "--page", "stock=5"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["page_state"]["stock"] == 1


def test_missing_file_returns_error(tmp_path, capsys):
    assert cli.main([str(tmp_path / "nope.json")]) == 1
    assert "Error" in capsys.readouterr().err


def test_invalid_json_returns_error(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    assert cli.main([str(path)]) == 1


def test_payload_without_list_returns_error(tmp_path):
    path = tmp_path / "empty.json"
    path.write_text(json.dumps({"count": 0}))
    assert cli.main([str(path)]) == 1


def test_bad_page_argument_exits(ideas_file):
    with pytest.raises(SystemExit):
        cli.main([str(ideas_file), "--page", "stock"])


def test_invalid_choice_exits(ideas_file):
    with pytest.raises(SystemExit):
        cli.main([str(ideas_file), "--grade", "Z"])


def test_parse_pages():
    assert cli.parse_pages(["stock=2", "crypto=10"]) == {"stock": 2, "crypto": 10}
    assert cli.parse_pages(None) == {}
    with pytest.raises(ValueError):
        cli.parse_pages(["=3"])


def test_logging_stays_on_package_logger(ideas_file, capsys, package_logger):
    root_handlers = list(logging.getLogger().handlers)

    assert cli.main([str(ideas_file)]) == 0

    json.loads(capsys.readouterr().out)
    assert logging.getLogger().handlers == root_handlers
    assert len(package_logger.handlers) == 1
