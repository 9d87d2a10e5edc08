"""
HTTP layer: submit, poll, cancel, overview, health, artifacts.
"""

import time

import pytest
from fastapi.testclient import TestClient

from clipqueue.jobs.in_process_queue import QueueConfig
from clipqueue.main import create_app
from fakes import FakeExecutor, never_finishes, raises_error, writes_video


PAYLOAD = {"image_url": "https://img.example/cat.png", "prompt": "gentle head turn"}


def _poll_until_terminal(client, operation_id, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        body = client.get(f"/api/v1/operations/{operation_id}").json()
        if body["status"] in ("completed", "failed"):
            return body
        time.sleep(0.01)
    raise AssertionError(f"operation {operation_id} did not finish")


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def client(executor, tmp_path):
    app = create_app(
        executor=executor,
        queue_config=QueueConfig(max_queue_size=2, operation_timeout=2.0),
        artifacts_dir=str(tmp_path / "artifacts"),
    )
    with TestClient(app) as test_client:
        yield test_client


class TestSubmitAndPoll:

    def test_submit_returns_operation_id_immediately(self, client):
        response = client.post("/api/v1/operations", json=PAYLOAD)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["queued"] is True
        assert body["status"] == "queued"
        assert body["position"] == 1
        assert body["operation_id"] in body["message"]

    def test_poll_until_completed_includes_video_url(self, client):
        operation_id = client.post("/api/v1/operations", json=PAYLOAD).json()["operation_id"]

        body = _poll_until_terminal(client, operation_id)

        assert body["status"] == "completed"
        assert body["video_url"] == "https://cdn.example/gentle head turn.mp4"
        assert body["cdn_url"] == body["video_url"]
        assert body["error"] is None

    def test_failed_operation_reports_error(self, client, executor):
        executor.behaviors["broken"] = raises_error
        operation_id = client.post(
            "/api/v1/operations", json={**PAYLOAD, "prompt": "broken"}
        ).json()["operation_id"]

        body = _poll_until_terminal(client, operation_id)

        assert body["status"] == "failed"
        assert body["error"] == "Generate button not found"
        assert "video_url" not in body

    def test_unknown_operation_is_404(self, client):
        assert client.get("/api/v1/operations/nope").status_code == 404

    @pytest.mark.parametrize("missing", ["image_url", "prompt"])
    def test_missing_required_field_is_422(self, client, missing):
        payload = {k: v for k, v in PAYLOAD.items() if k != missing}
        assert client.post("/api/v1/operations", json=payload).status_code == 422

    def test_full_queue_is_429(self, client, executor):
        executor.behaviors["block"] = never_finishes
        blocked = {**PAYLOAD, "prompt": "block"}
        assert client.post("/api/v1/operations", json=blocked).status_code == 200
        assert client.post("/api/v1/operations", json=blocked).status_code == 200

        response = client.post("/api/v1/operations", json=blocked)

        assert response.status_code == 429
        assert "Queue is full" in response.json()["detail"]


class TestCancel:

    def test_cancel_queued_operation(self, client, executor):
        executor.behaviors["block"] = never_finishes
        client.post("/api/v1/operations", json={**PAYLOAD, "prompt": "block"})
        second = client.post("/api/v1/operations", json=PAYLOAD).json()["operation_id"]

        response = client.delete(f"/api/v1/operations/{second}")

        assert response.status_code == 200
        body = client.get(f"/api/v1/operations/{second}").json()
        assert body["status"] == "failed"
        assert body["error"] == "cancelled by user"

    def test_cancel_unknown_is_404(self, client):
        assert client.delete("/api/v1/operations/nope").status_code == 404

    def test_cancel_finished_is_409(self, client):
        operation_id = client.post("/api/v1/operations", json=PAYLOAD).json()["operation_id"]
        _poll_until_terminal(client, operation_id)

        assert client.delete(f"/api/v1/operations/{operation_id}").status_code == 409


class TestOverviewAndHealth:

    def test_queue_overview(self, client):
        ids = [
            client.post("/api/v1/operations", json=PAYLOAD).json()["operation_id"]
            for _ in range(2)
        ]
        for operation_id in ids:
            _poll_until_terminal(client, operation_id)

        body = client.get("/api/v1/operations", params={"limit": 1}).json()

        assert body["queue_length"] == 0
        assert body["processing"] is False
        assert body["service_ready"] is True
        assert [o["operation_id"] for o in body["operations"]] == [ids[1]]

    def test_overview_limit_is_bounded(self, client):
        assert client.get("/api/v1/operations", params={"limit": 0}).status_code == 422

    def test_health_at_root_and_v1(self, client):
        for path in ("/health", "/api/v1/health"):
            body = client.get(path).json()
            assert body["available"] is False
            assert body["queue_length"] == 0
            assert body["processing"] is False

    def test_init_makes_service_available(self, client, executor):
        response = client.post("/api/v1/init")

        assert response.json() == {"success": True, "message": "Executor initialized"}
        assert client.get("/health").json()["available"] is True
        assert executor.init_calls == 1

    def test_init_reports_failure(self, tmp_path):
        app = create_app(executor=FakeExecutor(ready=False), artifacts_dir=str(tmp_path))
        with TestClient(app) as client:
            body = client.post("/api/v1/init").json()
        assert body["success"] is False


class TestArtifacts:

    def test_download_artifact_written_by_executor(self, client, executor):
        executor.behaviors["video"] = writes_video
        operation_id = client.post(
            "/api/v1/operations", json={**PAYLOAD, "prompt": "video"}
        ).json()["operation_id"]
        body = _poll_until_terminal(client, operation_id)
        assert body["video_url"] == f"/api/v1/operations/{operation_id}/artifacts/clip.mp4"
        assert body["cdn_url"] == "https://cdn.example/clip.mp4"

        response = client.get(body["video_url"])

        assert response.status_code == 200
        assert response.headers["content-type"] == "video/mp4"
        assert response.content.startswith(b"\x00\x00\x00\x18ftyp")

    def test_missing_artifact_is_404(self, client):
        assert client.get("/api/v1/operations/nope/artifacts/clip.mp4").status_code == 404

    def test_parent_directory_as_operation_id_is_404(self, client, tmp_path):
        (tmp_path / "secret.txt").write_text("do not serve")

        response = client.get("/api/v1/operations/%2E%2E/artifacts/secret.txt")

        assert response.status_code == 404
        assert b"do not serve" not in response.content

    def test_artifact_dir_without_operation_record_is_404(self, client, tmp_path):
        stray = tmp_path / "artifacts" / "stray-op"
        stray.mkdir(parents=True)
        (stray / "clip.mp4").write_bytes(b"data")

        response = client.get("/api/v1/operations/stray-op/artifacts/clip.mp4")

        assert response.status_code == 404


def test_routes_return_503_before_startup(tmp_path):
    app = create_app(executor=FakeExecutor(), artifacts_dir=str(tmp_path))
    client = TestClient(app)  # no context manager: lifespan never runs

    assert client.get("/api/v1/operations/abc").status_code == 503
    assert client.post("/api/v1/operations", json=PAYLOAD).status_code == 503


def test_shutdown_closes_executor(tmp_path):
    executor = FakeExecutor()
    app = create_app(executor=executor, artifacts_dir=str(tmp_path))
    with TestClient(app):
        pass
    assert executor.closed is True
