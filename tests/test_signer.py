"""Tests for request signing."""

import binascii

import pytest

from coinbase_pro.config import Credentials
from coinbase_pro.signer import sign, websocket_auth

from conftest import KEY, PASSPHRASE, SECRET, TIMESTAMP


def _expected(signature):
    return {
        "CB-ACCESS-KEY": KEY,
        "CB-ACCESS-SIGN": signature,
        "CB-ACCESS-TIMESTAMP": "1573653521.402",
        "CB-ACCESS-PASSPHRASE": PASSPHRASE,
    }


def test_sign_with_body():
    body = {
        "from": "86602c68-306a-4500-ac73-4ce56a91d83c",
        "to": "e87429d3-f0a7-4f28-8dff-8dd93d383de1",
        "currency": "ETH",
        "amount": 100,
    }
    headers = sign("POST", "/profiles/transfer", SECRET, KEY, PASSPHRASE, TIMESTAMP, body=body)
    assert headers == _expected("xBQCYBLmE0rX9tKUzNL4vgeuX7kIlpMdqILMftUiFzU=")


def test_sign_empty_object_body():
    headers = sign("GET", "/accounts", SECRET, KEY, PASSPHRASE, TIMESTAMP, body={})
    assert headers == _expected("kfsE0njHsT+XDlLurLW2XjZxeHaDtReZbYLMpGf7Cyo=")


def test_sign_empty_string_body():
    headers = sign("GET", "/users/self/verify", SECRET, KEY, PASSPHRASE, TIMESTAMP, body="")
    assert headers == _expected("EMszpon/Yv43GqmRLemmJgTBB2i5YRWnKV0+gXUe8Xc=")


def test_sign_no_body_matches_empty_string():
    assert sign("GET", "/accounts", SECRET, KEY, PASSPHRASE, TIMESTAMP) == sign(
        "GET", "/accounts", SECRET, KEY, PASSPHRASE, TIMESTAMP, body=None
    )
    headers = sign("GET", "/accounts", SECRET, KEY, PASSPHRASE, TIMESTAMP)
    assert headers["CB-ACCESS-SIGN"] == "7fF/Orhb4TQmCJ+nQ3f/q25/4ZU3kwDGCkOr/JyG4jA="


def test_sign_is_deterministic():
    first = sign("GET", "/accounts", SECRET, KEY, PASSPHRASE, TIMESTAMP, body={})
    for _ in range(3):
        assert sign("GET", "/accounts", SECRET, KEY, PASSPHRASE, TIMESTAMP, body={}) == first


def test_sign_query_string():
    expected = "XHf2DGwvmHqp7ziOGh0KtOApc1YL+kqH/DHhpr12nRs="
    headers = sign(
        "GET", "/accounts/abc/ledger", SECRET, KEY, PASSPHRASE, TIMESTAMP, query="?limit=10"
    )
    assert headers["CB-ACCESS-SIGN"] == expected

    from_url = sign(
        "GET",
        "https://api.pro.coinbase.com/accounts/abc/ledger?limit=10",
        SECRET,
        KEY,
        PASSPHRASE,
        TIMESTAMP,
    )
    assert from_url["CB-ACCESS-SIGN"] == expected


def test_sign_string_timestamp():
    headers = sign("GET", "/users/self/verify", SECRET, KEY, PASSPHRASE, "1573653521.402")
    assert headers["CB-ACCESS-SIGN"] == "EMszpon/Yv43GqmRLemmJgTBB2i5YRWnKV0+gXUe8Xc="


def test_sign_malformed_secret():
    with pytest.raises(binascii.Error):
        sign("GET", "/accounts", "not base64!", KEY, PASSPHRASE, TIMESTAMP)


def test_websocket_auth():
    credentials = Credentials(key=KEY, secret=SECRET, passphrase=PASSPHRASE)
    assert websocket_auth(credentials, TIMESTAMP) == {
        "key": KEY,
        "signature": "EMszpon/Yv43GqmRLemmJgTBB2i5YRWnKV0+gXUe8Xc=",
        "timestamp": "1573653521.402",
        "passphrase": PASSPHRASE,
    }


def test_websocket_auth_uses_current_time(monkeypatch):
    monkeypatch.setattr("coinbase_pro.signer.time.time", lambda: TIMESTAMP)
    credentials = Credentials(key=KEY, secret=SECRET, passphrase=PASSPHRASE)
    fields = websocket_auth(credentials)
    assert fields["timestamp"] == "1573653521.402"
    assert fields["signature"] == "EMszpon/Yv43GqmRLemmJgTBB2i5YRWnKV0+gXUe8Xc="
