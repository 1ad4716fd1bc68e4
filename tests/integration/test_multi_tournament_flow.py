import json

import pytest

from archery import create_app
from archery.cache import MemoryCache
from archery.errors import UpstreamFetchError
from archery.assembly import assemble_archery_data


def test_shared_archer_across_tournaments(results_client):
    data = assemble_archery_data(results_client, ["100", "200"])
    adam = data.archers["S-A"]
    # Different event-local ids (1 and 7) resolve to the same archer
    assert {tid: r.score for tid, r in adam.results.items()} == {"100": 16, "200": 27}
    # Event-local id 1 in event 5000 is somebody else
    assert data.archers["S-D"].full_name == "Dan Draw"
    assert "200" not in data.archers["S-C"].results


def test_failure_in_later_tournament_publishes_nothing(results_client, base_url):
    results_client.fetcher.session.routes.pop(f"{base_url}/events/5000")
    with pytest.raises(UpstreamFetchError) as exc:
        assemble_archery_data(results_client, ["100", "200"])
    assert exc.value.status == 404

    # Payloads fetched before the failure stay cached; a retry only needs the missing ones
    results_client.fetcher.session.routes[f"{base_url}/events/5000"] = {
        "id": 5000,
        "enm": "Winter Cup 18m",
        "cgs": [],
        "rps": {},
    }
    data = assemble_archery_data(results_client, ["100", "200"])
    assert set(data.archers) == {"S-A", "S-B", "S-C"}
    assert data.tournaments["200"].event.categories == {}


def test_prepopulated_cache_is_used_verbatim(monkeypatch, upstream, base_url, payloads):
    cache = MemoryCache()
    stale = dict(payloads[f"{base_url}/tournaments/100"], nm="Indoor Open (cached)")
    cache.setex("tournament_100", 3600, json.dumps(stale))

    monkeypatch.setenv("RESULTS_API_BASE", base_url)
    monkeypatch.setenv("TOURNAMENT_IDS", "100")
    app = create_app(cache=cache, session=upstream)
    with app.test_client() as c:
        body = c.get('/api/archers').get_json()
    assert body["tournaments"]["100"]["name"] == "Indoor Open (cached)"
    assert f"{base_url}/tournaments/100" not in upstream.calls
    assert sorted(upstream.calls) == sorted([f"{base_url}/events/4221", f"{base_url}/events/4221/scores"])


def test_tournament_order_follows_configuration(monkeypatch, upstream, base_url):
    monkeypatch.setenv("RESULTS_API_BASE", base_url + "/")
    monkeypatch.setenv("TOURNAMENT_IDS", " 200 ,, 100 ")
    app = create_app(cache=MemoryCache(), session=upstream)
    assert app.config["TOURNAMENT_IDS"] == ["200", "100"]
    with app.test_client() as c:
        body = c.get('/api/archers').get_json()
    assert list(body["tournaments"]) == ["200", "100"]
    # Registry insertion order follows first sighting
    assert list(body["archers"]) == ["S-D", "S-A", "S-B", "S-C"]
