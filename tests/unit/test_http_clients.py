"""
Unit Tests: ProductClient / IdentityClient

requests jest mockowany, tenacity bez czekania miedzy probami.
"""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import requests
from tenacity import wait_none

from app.domain.errors import NotFoundError, UpstreamError, ValidationError
from app.services.identity_client import IdentityClient
from app.services.product_client import ProductClient


@pytest.fixture(autouse=True)
def no_wait(monkeypatch):
    monkeypatch.setattr(ProductClient._get.retry, "wait", wait_none())
    monkeypatch.setattr(IdentityClient._post.retry, "wait", wait_none())


def response(status_code, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    if status_code >= 500:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return resp


VASE = {"id": 1, "slug": "vase-01", "title": "Ceramic Vase", "price": "49.99", "currency": "usd"}


def test_fetch_product_maps_payload():
    with patch("app.services.product_client.requests.get", return_value=response(200, VASE)) as get:
        product = ProductClient(base_url="http://products.test/").fetch_product("vase-01")

    get.assert_called_once_with("http://products.test/products/vase-01", timeout=2)
    assert product == {
        "id": 1,
        "slug": "vase-01",
        "title": "Ceramic Vase",
        "price": Decimal("49.99"),
        "currency": "USD",
    }


def test_fetch_product_404_is_not_found():
    with patch("app.services.product_client.requests.get", return_value=response(404)) as get:
        with pytest.raises(NotFoundError):
            ProductClient(base_url="http://products.test").fetch_product("missing")
    assert get.call_count == 1


def test_fetch_product_retries_server_errors():
    replies = [response(503), response(502), response(200, VASE)]
    with patch("app.services.product_client.requests.get", side_effect=replies) as get:
        product = ProductClient(base_url="http://products.test").fetch_product("vase-01")
    assert get.call_count == 3
    assert product["id"] == 1


def test_fetch_product_gives_up_after_three_attempts():
    with patch("app.services.product_client.requests.get", side_effect=requests.ConnectionError("down")) as get:
        with pytest.raises(UpstreamError):
            ProductClient(base_url="http://products.test").fetch_product("vase-01")
    assert get.call_count == 3


def test_fetch_product_rejects_malformed_payload():
    bad = {"id": 1, "slug": "vase-01", "title": "Vase", "price": "-1", "currency": "USD"}
    with patch("app.services.product_client.requests.get", return_value=response(200, bad)):
        with pytest.raises(UpstreamError):
            ProductClient(base_url="http://products.test").fetch_product("vase-01")


def test_identity_verify_ok():
    with patch("app.services.identity_client.requests.post", return_value=response(200, {"ok": True})) as post:
        assert IdentityClient(base_url="http://id.test").verify("a@b.com", "123456") == {"ok": True}
    post.assert_called_once_with(
        "http://id.test/api/public/verify", json={"email": "a@b.com", "code": "123456"}, timeout=5
    )


def test_identity_rejected_code():
    with patch("app.services.identity_client.requests.post", return_value=response(401, {})):
        with pytest.raises(ValidationError):
            IdentityClient(base_url="http://id.test").verify("a@b.com", "000000")


def test_identity_upstream_down():
    with patch("app.services.identity_client.requests.post", side_effect=requests.Timeout("slow")):
        with pytest.raises(UpstreamError):
            IdentityClient(base_url="http://id.test").verify("a@b.com", "123456")
