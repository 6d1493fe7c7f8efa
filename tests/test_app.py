import json
import logging
from unittest.mock import MagicMock

import pytest

from abifetch import app
from abifetch.config import load_settings
from abifetch.errors import ConfigError, RetriesExhausted
from abifetch.models import Campaign
from abifetch.retry import RetryingFetcher

ABI = [{"type": "function", "name": "get_campaigns", "inputs": [], "outputs": []}]
ENV = {
    "ETHERSCAN_API_KEY": "KEY",
    "CONTRACT_ADDRESS": "0x5fbdb2315678afecb367f032d93f642f64180aa3",
    "PRIVATE_KEY": "0x01",
    "FETCH_BACKOFF_MS": "0",
}


def _fetcher(*statuses_and_bodies):
    session = MagicMock()
    session.request.side_effect = [
        MagicMock(status_code=s, text=b) for s, b in statuses_and_bodies
    ]
    return RetryingFetcher(session=session, sleep=lambda s: None)


def _ok_body():
    return json.dumps({"status": "1", "message": "OK", "result": json.dumps(ABI)})


def test_run_fetches_saves_and_connects(tmp_path, caplog):
    out = tmp_path / "contractABI.json"
    client = MagicMock(address="0xWallet", contract_address="0xContract")
    client.get_campaigns.return_value = [
        Campaign(0, "0xA", "Wells", "d", 100, 1900000000, "", ["0xC"], [40]),
    ]
    connect_fn = MagicMock(return_value=client)
    args = app.parse_args(["--out", str(out), "--campaigns"])

    with caplog.at_level(logging.INFO):
        rc = app.run(load_settings(ENV), args, fetcher=_fetcher((502, ""), (200, _ok_body())),
                     connect_fn=connect_fn)

    assert rc == 0
    assert json.loads(out.read_text()) == ABI
    connect_fn.assert_called_once_with(
        "https://sepolia-rollup.arbitrum.io/rpc", ENV["CONTRACT_ADDRESS"], ABI, "0x01"
    )
    assert "Using wallet address: 0xWallet" in caplog.text
    assert "collected=40/100" in caplog.text


def test_skip_connect(tmp_path):
    connect_fn = MagicMock()
    args = app.parse_args(["--out", str(tmp_path / "a.json"), "--skip-connect"])
    assert app.run(load_settings(ENV), args, fetcher=_fetcher((200, _ok_body())),
                   connect_fn=connect_fn) == 0
    connect_fn.assert_not_called()


def test_run_propagates_exhausted_retries(tmp_path):
    args = app.parse_args(["--out", str(tmp_path / "a.json")])
    settings = load_settings({**ENV, "FETCH_RETRIES": "2"})
    with pytest.raises(RetriesExhausted):
        app.run(settings, args, fetcher=_fetcher((503, ""), (503, "")))
    assert not (tmp_path / "a.json").exists()


def test_run_requires_api_key(tmp_path):
    args = app.parse_args(["--out", str(tmp_path / "a.json")])
    with pytest.raises(ConfigError):
        app.run(load_settings({"CONTRACT_ADDRESS": "0xabc"}), args, fetcher=MagicMock())


def test_main_returns_1_on_error(monkeypatch, caplog):
    def boom(settings, args):
        raise ConfigError("No ETHERSCAN_API_KEY env var set")

    monkeypatch.setattr(app, "load_settings", lambda: load_settings({}))
    monkeypatch.setattr(app, "run", boom)
    assert app.main([]) == 1
    assert "No ETHERSCAN_API_KEY env var set" in caplog.text


def test_main_returns_1_on_malformed_private_key(monkeypatch, tmp_path):
    env = {**ENV, "PRIVATE_KEY": "YOUR_PRIVATE_KEY", "ABI_PATH": str(tmp_path / "a.json")}
    monkeypatch.setattr(app, "load_settings", lambda: load_settings(env))
    monkeypatch.setattr(app, "get_contract_abi", lambda *a, **kw: ABI)
    assert app.main([]) == 1
    assert (tmp_path / "a.json").exists()


def test_campaign_deadline_beyond_time_t_logged_raw(tmp_path, caplog):
    client = MagicMock(address="0xWallet", contract_address="0xContract")
    client.get_campaigns.return_value = [
        Campaign(0, "0xA", "Forever", "d", 100, 2**64, "", ["0xC"], [25]),
    ]
    args = app.parse_args(["--out", str(tmp_path / "a.json"), "--campaigns"])

    with caplog.at_level(logging.INFO):
        rc = app.run(load_settings(ENV), args, fetcher=_fetcher((200, _ok_body())),
                     connect_fn=MagicMock(return_value=client))

    assert rc == 0
    assert f"deadline={2**64}" in caplog.text
    assert "(25%)" in caplog.text
