import pytest
from fastapi.testclient import TestClient

from conftest import FakeFetcher
from codepulse.config import Settings
from codepulse.errors import FetchError
from codepulse.main import create_app

REPO = "https://github.com/acme/widgets"


@pytest.fixture
def fetcher():
    return FakeFetcher({
        "README.md": "# Widgets\n",
        "src/app.js": "// entry point\neval(input);\n",
    })


@pytest.fixture
def client(tmp_path, fetcher):
    settings = Settings(
        database_url=f"sqlite:///{tmp_path / 'api.db'}",
        workers=1,
        backoff_base_seconds=0.0,
        rate_limit_enabled=False,
    )
    app = create_app(settings, fetcher=fetcher)
    with TestClient(app) as test_client:
        yield test_client


def submit(client, repo_url=REPO, requester_id="alice"):
    return client.post("/analyze", json={"repo_url": repo_url, "requester_id": requester_id})


def run_to_completion(client, repo_url=REPO, requester_id="alice") -> str:
    response = submit(client, repo_url, requester_id)
    assert response.status_code == 202
    job_id = response.json()["job_id"]
    client.app.state.scheduler.wait(job_id, timeout=30)
    return job_id


def test_health(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_submit_returns_202_with_job(client):
    response = submit(client)

    assert response.status_code == 202
    body = response.json()
    assert body["job_id"]
    assert body["status"] == "queued"
    assert body["redirect"] is False


def test_invalid_url_is_400(client):
    response = submit(client, repo_url="https://example.com/not/github")

    assert response.status_code == 400
    assert "Invalid GitHub URL" in response.json()["detail"]


def test_missing_requester_is_422(client):
    response = client.post("/analyze", json={"repo_url": REPO})

    assert response.status_code == 422


def test_full_flow_submit_poll_read(client):
    job_id = run_to_completion(client)

    status = client.get(f"/analyze/status/{job_id}").json()
    assert status["state"] == "completed"
    assert status["progress"] == 100
    report_id = status["report_id"]

    report = client.get(f"/reports/{report_id}", params={"requester_id": "alice"}).json()
    assert report["repo_name"] == "widgets"
    assert report["variant"] == "unknown"
    assert "Use of eval or exec style dynamic code execution" in report["result"]["per_category"]["security"]["issues"]

    listing = client.get("/reports", params={"requester_id": "alice"}).json()
    assert [item["report_id"] for item in listing] == [report_id]


def test_resubmit_redirects_to_existing_report(client):
    job_id = run_to_completion(client)
    report_id = client.get(f"/analyze/status/{job_id}").json()["report_id"]

    response = submit(client)

    assert response.status_code == 200
    body = response.json()
    assert body["redirect"] is True
    assert body["report_id"] == report_id
    assert body["job_id"] == job_id


def test_unknown_job_status_is_not_found_state(client):
    response = client.get("/analyze/status/does-not-exist")

    assert response.status_code == 200
    assert response.json()["state"] == "not_found"


def test_reports_are_scoped_to_requester(client):
    job_id = run_to_completion(client)
    report_id = client.get(f"/analyze/status/{job_id}").json()["report_id"]

    assert client.get(f"/reports/{report_id}", params={"requester_id": "mallory"}).status_code == 404
    assert client.get("/reports", params={"requester_id": "mallory"}).json() == []


def test_delete_allows_reanalysis(client):
    job_id = run_to_completion(client)
    report_id = client.get(f"/analyze/status/{job_id}").json()["report_id"]

    response = client.delete(f"/reports/{report_id}", params={"requester_id": "alice"})
    assert response.status_code == 200
    assert response.json()["status"] == "deleted"

    assert client.get(f"/reports/{report_id}", params={"requester_id": "alice"}).status_code == 404
    assert client.delete(f"/reports/{report_id}", params={"requester_id": "alice"}).status_code == 404
    assert submit(client).status_code == 202


class TestFailures:
    @pytest.fixture
    def fetcher(self):
        return FakeFetcher(failures=[FetchError(FetchError.NOT_FOUND, "Repository acme/widgets not found")])

    def test_failed_job_reports_reason(self, client):
        job_id = run_to_completion(client)

        status = client.get(f"/analyze/status/{job_id}").json()
        assert status["state"] == "failed"
        assert status["failure_reason"] == "Repository acme/widgets not found"
        assert status["report_id"] is None
