"""End-to-end tests for the HTTP surface via FastAPI TestClient."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest


def _client(cfg):
    pytest.importorskip("httpx")  # required by fastapi/starlette TestClient
    from fastapi.testclient import TestClient

    from webtestserver.web.app import create_app

    return TestClient(create_app(cfg))


@pytest.fixture
def root(app_config) -> Path:
    return app_config.paths.root_dir


class TestReads:
    def test_get_ts_file_is_binary(self, client, root: Path) -> None:
        (root / "tests" / "cases").mkdir(parents=True)
        (root / "tests" / "cases" / "foo.ts").write_text("let x = 1;")

        resp = client.get("/tests/cases/foo.ts")

        assert resp.status_code == 200
        assert resp.content == b"let x = 1;"
        assert resp.headers["content-type"] == "binary"

    def test_get_directory_lists_recursively(self, client, root: Path) -> None:
        (root / "tests" / "cases" / "nested").mkdir(parents=True)
        (root / "tests" / "cases" / "a.ts").write_text("a")
        (root / "tests" / "cases" / "nested" / "b.ts").write_text("b")
        (root / "tests" / "other.ts").write_text("not listed")

        resp = client.get("/tests/cases/?")

        assert resp.status_code == 200
        assert resp.text == "tests/cases/a.ts,tests/cases/nested/b.ts"

    def test_missing_file_is_500_with_message(self, client) -> None:
        resp = client.get("/tests/missing.js")
        assert resp.status_code == 500
        assert "No such file or directory" in resp.text
        assert resp.headers["content-type"] == "text/javascript"

    def test_grep_serves_results_page(self, client, root: Path) -> None:
        (root / "tests").mkdir()
        (root / "tests" / "webTestResults.html").write_text("<html></html>")

        resp = client.get("/tests/webTestResults.html?grep=parser")

        assert resp.status_code == 200
        assert resp.text == "<html></html>"
        assert resp.headers["content-type"] == "text/html"

    def test_resolve(self, client) -> None:
        resp = client.get("/tests/cases/conformance/a.ts?resolve")
        assert resp.status_code == 200
        assert resp.text == "tests/cases/conformance/a.ts"

    def test_resolve_without_marker(self, client) -> None:
        resp = client.get("/lib/a.ts?resolve")
        assert resp.status_code == 500
        assert "Marker folder 'tests' not found" in resp.text


class TestWrites:
    def test_write_then_read_round_trip(self, client, root: Path) -> None:
        payload = bytes(range(256))
        resp = client.post("/out/deep/data.js?action=write", content=payload)
        assert resp.status_code == 200
        assert resp.content == b""

        resp = client.get("/out/deep/data.js")
        assert resp.status_code == 200
        assert resp.content == payload
        assert resp.headers["content-type"] == "text/javascript"

    def test_append_to_existing_empty_file(self, client, root: Path) -> None:
        (root / "out").mkdir()
        (root / "out" / "result.txt").write_text("")

        resp = client.post("/out/result.txt?action=append", content=b"hello")
        assert resp.status_code == 200

        assert client.get("/out/result.txt").text == "hello"

    def test_append_to_missing_file_fails(self, client, root: Path) -> None:
        resp = client.post("/out/result.txt?action=append", content=b"hello")
        assert resp.status_code == 500
        assert not (root / "out" / "result.txt").exists()

    def test_append_on_directory_is_unknown(self, client) -> None:
        resp = client.post("/out/results?action=append", content=b"hello")
        assert resp.status_code == 404
        assert resp.content == b""

    def test_write_and_delete_directory(self, client, root: Path) -> None:
        assert client.post("/out?action=write").status_code == 200
        assert (root / "out").is_dir()

        again = client.post("/out?action=write")
        assert again.status_code == 500
        assert again.text == "Already exists: out"

        assert client.post("/out?action=delete").status_code == 200
        assert not (root / "out").exists()

    def test_delete_non_empty_directory(self, client, root: Path) -> None:
        (root / "out").mkdir()
        (root / "out" / "keep.txt").write_text("x")

        resp = client.post("/out?action=delete")
        assert resp.status_code == 500
        assert (root / "out" / "keep.txt").exists()

        assert client.post("/out?action=delete&recursive").status_code == 200
        assert not (root / "out").exists()

    def test_delete_file(self, client, root: Path) -> None:
        (root / "a.txt").write_text("x")
        assert client.post("/a.txt?action=DELETE").status_code == 200
        assert not (root / "a.txt").exists()

    def test_delete_missing_is_idempotent(self, client) -> None:
        assert client.post("/nope.txt?action=delete").status_code == 200
        assert client.post("/nope?action=delete").status_code == 200

    def test_unexpected_os_error_is_500(self, client, monkeypatch) -> None:
        from webtestserver.core import fs_ops

        def _denied(path, data):
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr(fs_ops, "write_file", _denied)
        resp = client.post("/out/a.txt?action=write", content=b"x")
        assert resp.status_code == 500
        assert resp.text.startswith("PermissionError: ")


class TestBodyLimit:
    @pytest.fixture
    def small(self, make_config):
        return _client(make_config({"server": {"max_post_bytes": 10}}))

    def test_one_byte_over_is_413(self, small, root: Path) -> None:
        resp = small.post("/out/big.txt?action=write", content=b"x" * 11)
        assert resp.status_code == 413
        assert resp.headers["connection"] == "close"
        assert not (root / "out" / "big.txt").exists()

    def test_exactly_at_limit_is_accepted(self, small, root: Path) -> None:
        resp = small.post("/out/big.txt?action=write", content=b"x" * 10)
        assert resp.status_code == 200
        assert (root / "out" / "big.txt").read_bytes() == b"x" * 10


class TestUnknown:
    @pytest.mark.parametrize(
        ("method", "url"),
        [
            ("GET", "/a.txt?v=2"),
            ("POST", "/a.txt"),
            ("POST", "/a.txt?action=rename"),
            ("PUT", "/a.txt?action=write"),
            ("DELETE", "/a.txt"),
        ],
    )
    def test_unknown_shapes_are_404(self, client, method: str, url: str) -> None:
        resp = client.request(method, url)
        assert resp.status_code == 404
        assert resp.content == b""


class TestTrustBoundary:
    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")
    def test_confined_root_rejects_escape(self, make_config, tmp_path: Path) -> None:
        outside = tmp_path.parent / f"{tmp_path.name}-outside"
        outside.mkdir()
        (outside / "secret.txt").write_text("s")
        os.symlink(outside, tmp_path / "link")

        open_client = _client(make_config())
        assert open_client.get("/link/secret.txt").text == "s"

        confined = _client(make_config({"paths": {"confine_to_root": True}}))
        resp = confined.get("/link/secret.txt")
        assert resp.status_code == 403
        assert "escapes serving root" in resp.text


def test_verbose_logs_requests(make_config, capsys) -> None:
    from webtestserver.core.logging import VerbosityLevel, set_colors, set_verbosity

    set_colors(False)
    set_verbosity(VerbosityLevel.NORMAL)
    try:
        _client(make_config({"server": {"verbose": True}})).get("/x.js?grep=a")
        assert "[info] GET /x.js?grep=a" in capsys.readouterr().out

        _client(make_config()).get("/x.js")
        assert "GET /x.js" not in capsys.readouterr().out
    finally:
        set_colors(True)


@pytest.mark.skipif(sys.platform == "win32", reason="'?' and '#' are invalid in file names")
class TestEncodedNames:
    @pytest.mark.parametrize("name", ["a?b.txt", "a#b.txt"])
    def test_encoded_reserved_char_reads_file(self, client, root: Path, name: str) -> None:
        (root / name).write_text("payload")

        resp = client.get("/" + name.replace("?", "%3F").replace("#", "%23"))

        assert resp.status_code == 200
        assert resp.text == "payload"

    def test_encoded_name_write(self, client, root: Path) -> None:
        resp = client.post("/out/a%3Fb.txt?action=write", content=b"x")
        assert resp.status_code == 200
        assert (root / "out" / "a?b.txt").read_bytes() == b"x"


def test_slow_read_does_not_block_other_requests(app_config, root: Path, monkeypatch) -> None:
    httpx = pytest.importorskip("httpx")
    import asyncio
    import threading

    from webtestserver.core import fs_ops
    from webtestserver.web.app import create_app

    (root / "slow.txt").write_text("slow")
    (root / "fast.txt").write_text("fast")
    gate = threading.Event()
    real_read = fs_ops.read_file

    def _read(path):
        if path.name == "slow.txt":
            # Released only if fast.txt is served while this read is pending.
            return b"released" if gate.wait(timeout=5) else b"starved"
        data = real_read(path)
        gate.set()
        return data

    monkeypatch.setattr(fs_ops, "read_file", _read)

    async def _both():
        transport = httpx.ASGITransport(app=create_app(app_config))
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            slow = asyncio.create_task(ac.get("/slow.txt"))
            await asyncio.sleep(0.05)
            fast = await ac.get("/fast.txt")
            return await slow, fast

    slow, fast = asyncio.run(_both())

    assert fast.text == "fast"
    assert slow.text == "released"
