import json
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from report_relay import app as cli
from report_relay import settings
from report_relay.config import load_tenant
from report_relay.errors import TransportError

runner = CliRunner()


def tenant_entry(key, title, channels=("twitter",), active=True):
    return {
        "key": key,
        "providers": {"sue": {"system": key, "id": 1}},
        "config": {
            "active": active,
            "maxQueueSize": 5,
            "processDelaySeconds": 0,
            "statsTitle": title,
            "channels": list(channels),
        },
    }


@pytest.fixture
def source():
    source = MagicMock()
    source.search.return_value = []
    return source


@pytest.fixture
def env(tmp_path, monkeypatch, source):
    tenants_file = tmp_path / "tenants.json"
    tenants_file.write_text(json.dumps([
        tenant_entry("md", "Neue MD-Meldungen"),
        tenant_entry("hal", "Neue HAL-Meldungen"),
        tenant_entry("off", "Inactive", active=False),
    ]))
    monkeypatch.setattr(settings, "TENANTS_FILE", tenants_file)
    monkeypatch.setattr(settings, "DATABASE_URL", None)
    monkeypatch.setattr(settings, "SLACK_WEBHOOK_URL", None)
    monkeypatch.setattr(settings, "AWS_S3_BUCKET_NAME", None)
    monkeypatch.setattr(cli, "load_tenant", lambda path, key: load_tenant(
        path, key, tenants_dir=tmp_path / "tenants", archive_dir=tmp_path / "archive"
    ))
    monkeypatch.setattr(cli, "add_tenant_log_file", lambda tenant_dir, command: None)
    monkeypatch.setattr(cli, "_install_signal_handlers", lambda: None)

    tenants = []

    def make_source(tenant):
        tenants.append(tenant)
        return source

    monkeypatch.setattr(cli, "SourceClient", make_source)
    return tenants


def test_sync_runs_for_selected_tenant(env, source, tmp_path):
    result = runner.invoke(cli.app, ["sync", "--tenant", "hal"])

    assert result.exit_code == 0
    assert [t.key for t in env] == ["hal"]
    assert (tmp_path / "tenants" / "hal" / "messages" / "all-messages.json").is_file()
    source.search.assert_called_once()


def test_sync_exits_1_when_search_fails(env, source):
    source.search.side_effect = TransportError("portal down")

    result = runner.invoke(cli.app, ["sync", "--tenant", "md"])

    assert result.exit_code == 1


def test_unknown_tenant_exits_1(env):
    result = runner.invoke(cli.app, ["sync", "--tenant", "nowhere"])

    assert result.exit_code == 1
    assert env == []


def test_inactive_tenant_exits_1(env):
    assert runner.invoke(cli.app, ["sync", "--tenant", "off"]).exit_code == 1


def test_tenant_flag_is_required(env):
    result = runner.invoke(cli.app, ["sync"])

    assert result.exit_code != 0
    assert env == []


@pytest.mark.parametrize("channel", ["mastodon", "myspace"])
def test_publish_to_unconfigured_channel_exits_1(env, channel):
    result = runner.invoke(cli.app, ["publish", "--tenant", "md", "--channel", channel])

    assert result.exit_code == 1


def test_publish_without_credentials_exits_1(env, monkeypatch):
    monkeypatch.setattr(settings, "TWITTER_API_KEY", None)

    result = runner.invoke(cli.app, ["publish", "--tenant", "md", "--channel", "twitter"])

    assert result.exit_code == 1


def test_stats_uses_selected_tenant_title(env):
    result = runner.invoke(cli.app, ["stats", "--tenant", "hal"])

    assert result.exit_code == 0
    assert "Neue HAL-Meldungen" in result.output
    assert "Neue MD-Meldungen" not in result.output
