import httpx
import pytest

from factories import make_guide
from match_service.anonymize import generate_anonymous_id
from match_service.candidates import CandidateFetcher
from match_service.errors import StoreUnavailableError
from match_service.main import app
from match_service.models import TripRequestRecord
from match_service.services import MatchService


class _FailingService:
    async def find_matches(self, request):
        raise StoreUnavailableError("db down")


@pytest.fixture
async def client(session_factory, cache):
    app.state.session_factory = session_factory
    app.state.match_service = MatchService(CandidateFetcher(session_factory, cache))
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    del app.state.session_factory
    del app.state.match_service


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["service"] == "match-service"


async def test_matches_for_stored_request(client, session_factory, add_guides):
    await add_guides(
        make_guide("guide-a", institute="Sorbonne", languages=["French"], average_rating=4.0, reliability_badge="gold"),
        make_guide("guide-b", average_rating=None),
    )
    async with session_factory() as db:
        db.add(TripRequestRecord(
            id="req-1",
            city="Paris",
            dates={"start": "2025-07-01", "end": "2025-07-02"},
            interests=[],
            preferred_languages=["French"],
        ))
        await db.commit()

    resp = await client.post("/matches", json={"request_id": "req-1"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["count"] == 2
    first, second = body["matches"]
    assert first == {
        "anonymous_id": generate_anonymous_id("guide-a"),
        "university": "Sorbonne",
        "languages": ["French"],
        "trips_hosted": 0,
        "rating": 4.0,
        "badge": "gold",
        "score": 81.0,
    }
    assert second["rating"] is None
    assert second["badge"] == "none"
    assert "guide-a" not in resp.text


async def test_unknown_request_is_404(client):
    resp = await client.post("/matches", json={"request_id": "missing"})
    assert resp.status_code == 404


async def test_preview_with_no_guides_is_empty(client):
    resp = await client.post("/matches/preview", json={"city": "Atlantis", "dates": {"date": "2025-07-01"}})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "matches": [], "count": 0}


async def test_infrastructure_failure_is_503(client):
    app.state.match_service = _FailingService()
    resp = await client.post("/matches/preview", json={"city": "Paris", "dates": {"date": "2025-07-01"}})
    assert resp.status_code == 503
