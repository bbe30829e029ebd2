"""Tests for the command line sync."""

import json
from unittest.mock import patch

import pytest

from pipedrive_api.sync import persist_tokens_callback, sync


@pytest.fixture
def mock_write_record():
    with patch("pipedrive_api.sync.write_record") as mock:
        yield mock


def test_sync_writes_records_per_entity(credentials, mock_request, make_response, mock_write_record):
    mock_request.side_effect = [
        make_response(200, {"success": True, "data": [{"id": 1}, {"id": 2}]}),
        make_response(200, {"success": True, "data": [{"id": 9}]}),
    ]

    sync(dict(credentials, entities=["call_logs", "webhooks"]))

    assert [call.args for call in mock_write_record.call_args_list] == [
        ("call_logs", {"id": 1}),
        ("call_logs", {"id": 2}),
        ("webhooks", {"id": 9}),
    ]


def test_sync_rejects_unknown_entities(credentials):
    with pytest.raises(ValueError, match="unknown entities"):
        sync(dict(credentials, entities=["leads"]))


def test_refreshed_tokens_reach_config_file(credentials, mock_request, make_response, mock_write_record, tmp_path):
    config_path = tmp_path / "config.json"
    config = dict(credentials, entities=["call_logs"])
    config_path.write_text(json.dumps(config))
    mock_request.side_effect = [
        make_response(401),
        make_response(200, {"access_token": "new-access", "refresh_token": "new-refresh"}),
        make_response(200, {"success": True, "data": [{"id": 1}]}),
    ]

    sync(config, config_path=str(config_path))

    stored = json.loads(config_path.read_text())
    assert stored["access_token"] == "new-access"
    assert stored["refresh_token"] == "new-refresh"
    assert config["refresh_token"] == "new-refresh"
    mock_write_record.assert_called_once_with("call_logs", {"id": 1})


def test_persist_callback_without_path_updates_config_only():
    config = {"access_token": "a", "refresh_token": "r"}

    persist_tokens_callback(config)({"access_token": "b"})

    assert config == {"access_token": "b", "refresh_token": "r"}


def test_record_counts_are_per_sync_run(credentials, mock_request, make_response, mock_write_record):
    mock_request.side_effect = lambda *args, **kwargs: make_response(
        200, {"success": True, "data": [{"id": 1}]}
    )
    config = dict(credentials, entities=["call_logs"])

    first = sync(config)
    second = sync(config)

    assert first == {"call_logs": 1}
    assert second == {"call_logs": 1}


def test_persist_replaces_config_file(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"access_token": "a", "refresh_token": "r"}))
    config = json.loads(config_path.read_text())

    persist_tokens_callback(config, str(config_path))({"access_token": "b", "refresh_token": "s"})

    assert json.loads(config_path.read_text()) == {"access_token": "b", "refresh_token": "s"}
    assert [path.name for path in tmp_path.iterdir()] == ["config.json"]


def test_failed_persist_leaves_config_file_intact(tmp_path):
    config_path = tmp_path / "config.json"
    original = json.dumps({"access_token": "a", "refresh_token": "r"})
    config_path.write_text(original)
    config = {"access_token": "a", "refresh_token": "r", "unserializable": object()}

    with pytest.raises(TypeError):
        persist_tokens_callback(config, str(config_path))({"access_token": "b"})

    assert config_path.read_text() == original
    assert [path.name for path in tmp_path.iterdir()] == ["config.json"]
