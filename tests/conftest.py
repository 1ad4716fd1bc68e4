import copy
import pytest

BASE_URL = "http://results.test"


class FakeResponse:
    def __init__(self, payload=None, status_code=200, reason="OK", body_is_json=True):
        self._payload = payload
        self.status_code = status_code
        self.reason = reason
        self._body_is_json = body_is_json

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if not self._body_is_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return copy.deepcopy(self._payload)


class FakeSession:
    """Stand-in for ``requests.Session`` serving canned responses by URL."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        resp = self.routes.get(url)
        if isinstance(resp, Exception):
            raise resp
        if resp is None:
            return FakeResponse(None, status_code=404, reason="Not Found")
        if isinstance(resp, FakeResponse):
            return resp
        return FakeResponse(resp)


def participant(aid, first, last, uid):
    return {
        "aid": aid,
        "fnm": first,
        "lnm": last,
        "tgt": ["1A"],
        "tnl": [1],
        "cnd": "",
        "tm": "",
        "alt": "",
        "rtl": "",
        "tbs": "",
        "uid": uid,
    }


def tournament_payload(tid, name, event_id):
    return {"id": tid, "nm": name, "evs": [{"id": event_id, "dor": 1, "etp": "I", "enm": f"{name} 18m"}]}


@pytest.fixture()
def payloads():
    """Two tournaments; Adam (S-A) shoots both under different event-local ids.

    Event 5000 reuses event-local id 1 for a different archer than event 4221.
    """
    return {
        f"{BASE_URL}/tournaments/100": tournament_payload(100, "Indoor Open", 4221),
        f"{BASE_URL}/events/4221": {
            "id": 4221,
            "enm": "Indoor Open 18m",
            "etp": "I",
            "dor": 1,
            "cgs": [
                {"nm": "Barebow Senior Men", "dor": 1, "ars": [{"aid": 1}, {"aid": 2}]},
                {"nm": "Barebow Senior Women", "dor": 2, "ars": [{"aid": 3}]},
            ],
            "rps": {
                "1": participant(1, "Adam", "Archer", "S-A"),
                "2": participant(2, "Ben", "Bowman", "S-B"),
                "3": participant(3, "Cara", "Quiver", "S-C"),
            },
        },
        f"{BASE_URL}/events/4221/scores": {"ars": {"1": "M12T3", "2": "T87888", "3": "987M65T"}},
        f"{BASE_URL}/tournaments/200": tournament_payload(200, "Winter Cup", 5000),
        f"{BASE_URL}/events/5000": {
            "id": 5000,
            "enm": "Winter Cup 18m",
            "etp": "I",
            "dor": 1,
            "cgs": [
                {"nm": "Barebow Senior Men", "dor": 1, "ars": [{"aid": 7}, {"aid": 1}]},
            ],
            "rps": {
                "1": participant(1, "Dan", "Draw", "S-D"),
                "7": participant(7, "Adam", "Archer", "S-A"),
            },
        },
        f"{BASE_URL}/events/5000/scores": {"ars": {"1": "TTT", "7": "999"}},
    }


@pytest.fixture()
def upstream(payloads):
    return FakeSession(payloads)


@pytest.fixture()
def memory_cache():
    from archery.cache import MemoryCache
    return MemoryCache()


@pytest.fixture()
def results_client(memory_cache, upstream):
    from archery.upstream import CachedFetcher, ResultsClient
    return ResultsClient(CachedFetcher(memory_cache, session=upstream), base_url=BASE_URL)


@pytest.fixture(autouse=True)
def _no_database(monkeypatch):
    # Keep the app on the in-memory cache store
    monkeypatch.delenv("DATABASE_URL", raising=False)
    yield


@pytest.fixture()
def app(monkeypatch, memory_cache, upstream):
    from archery import create_app

    monkeypatch.setenv("RESULTS_API_BASE", BASE_URL)
    monkeypatch.setenv("TOURNAMENT_IDS", "100, 200")
    application = create_app(cache=memory_cache, session=upstream)
    application.config.update({"TESTING": True})
    return application


@pytest.fixture()
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture()
def base_url():
    return BASE_URL
