from fastapi.testclient import TestClient

from summon.errors import FetchError, UnsupportedTypeError
from summon.main import app
from summon.services.summoner import get_summoner


class FakeSummoner:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.urls = []

    async def fetch(self, url):
        self.urls.append(url)
        if self.error:
            raise self.error
        return self.result


def client_with(summoner):
    app.dependency_overrides[get_summoner] = lambda: summoner
    return TestClient(app)


def teardown_function():
    app.dependency_overrides.clear()


def test_thumbnails_endpoint_returns_record():
    summoner = FakeSummoner(result={
        "source": "http://www.example.com/",
        "type": "text/html",
        "thumbnails": ["http://www.example.com/a.jpg"],
    })
    client = client_with(summoner)

    response = client.get("/thumbnails", params={"url": "example.com"})

    assert response.status_code == 200
    assert response.json() == {
        "source": "http://www.example.com/",
        "type": "text/html",
        "thumbnails": ["http://www.example.com/a.jpg"],
    }
    assert summoner.urls == ["example.com"]


def test_fetch_error_maps_to_bad_gateway():
    client = client_with(FakeSummoner(error=FetchError("http://down.example.com/", "Network error")))

    response = client.get("/thumbnails", params={"url": "http://down.example.com/"})

    assert response.status_code == 502


def test_unsupported_type_maps_to_server_error():
    client = client_with(FakeSummoner(error=UnsupportedTypeError("html")))

    response = client.get("/thumbnails", params={"url": "http://example.com/"})

    assert response.status_code == 500


def test_missing_url_is_rejected():
    client = client_with(FakeSummoner())

    assert client.get("/thumbnails").status_code == 422


def test_health():
    client = TestClient(app)
    assert client.get("/health").json()["status"] == "ok"
