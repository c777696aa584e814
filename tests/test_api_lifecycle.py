from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from wsjtx_bridge import metrics
from wsjtx_bridge.api.app import create_app
from wsjtx_bridge.api.config import BridgeConfig
from wsjtx_bridge.net.router import BridgeRouter


def _cfg(**kw) -> BridgeConfig:
    base = dict(
        mode="dev",
        udp_host="127.0.0.1",
        udp_port=0,
        http_host="127.0.0.1",
        http_port=0,
        bridge_id="WSJTX-WEB",
        static_dir="/nonexistent-ui-dir",
        cors_origins=(),
    )
    base.update(kw)
    return BridgeConfig(**base)


def test_create_app_start_udp_false_binds_nothing() -> None:
    app = create_app(cfg=_cfg(), start_udp=False)
    assert isinstance(app.state.router, BridgeRouter)
    assert app.state.router.bridge_id == "WSJTX-WEB"

    with TestClient(app) as client:
        assert app.state.udp_transport is None
        body = client.get("/v1/health").json()
        assert body["ok"] is True
        assert body["udp_bound"] is False
        assert body["peer"] is None
        assert body["sessions"] == 0


def test_create_app_start_udp_true_binds_and_releases() -> None:
    app = create_app(cfg=_cfg(bridge_id="SHACK-1"), start_udp=True)

    with TestClient(app) as client:
        assert app.state.udp_transport is not None
        body = client.get("/v1/health").json()
        assert body["udp_bound"] is True
        assert body["bridge_id"] == "SHACK-1"

    assert app.state.udp_transport is None


def test_metrics_hidden_unless_enabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WSJTX_BRIDGE_METRICS_ENABLED", raising=False)
    app = create_app(cfg=_cfg(), start_udp=False)
    with TestClient(app) as client:
        r = client.get("/v1/metrics")
        assert r.status_code == 404


def test_metrics_exposed_when_enabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WSJTX_BRIDGE_METRICS_ENABLED", "1")
    metrics.inc_counter("datagrams_received", 3)
    app = create_app(cfg=_cfg(), start_udp=False)
    with TestClient(app) as client:
        r = client.get("/v1/metrics")
        assert r.status_code == 200
        assert "# TYPE wsjtx_bridge_datagrams_received counter" in r.text
        assert "wsjtx_bridge_datagrams_received 3" in r.text


def test_static_ui_is_served_from_root(tmp_path) -> None:
    (tmp_path / "index.html").write_text("<html>bridge ui</html>", encoding="utf-8")
    app = create_app(cfg=_cfg(static_dir=str(tmp_path)), start_udp=False)
    with TestClient(app) as client:
        r = client.get("/")
        assert r.status_code == 200
        assert "bridge ui" in r.text
        # API routes still win over the mount
        assert client.get("/v1/health").json()["ok"] is True


def test_prod_mode_hides_docs() -> None:
    with TestClient(create_app(cfg=_cfg(mode="prod"), start_udp=False)) as client:
        assert client.get("/docs").status_code == 404
    with TestClient(create_app(cfg=_cfg(mode="dev"), start_udp=False)) as client:
        assert client.get("/docs").status_code == 200


def test_request_id_header_is_echoed() -> None:
    with TestClient(create_app(cfg=_cfg(), start_udp=False)) as client:
        r = client.get("/v1/health", headers={"x-request-id": "abc123"})
        assert r.headers.get("x-request-id") == "abc123"
