# tests/helpers.py

from urllib.parse import urlsplit


def register(client, name="A", email="a@x.com", password="secret1"):
    resp = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 201, resp.get_data(as_text=True)
    return resp.get_json()["token"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def create(client, headers, title="buy milk", description=None):
    payload = {"title": title}
    if description is not None:
        payload["description"] = description
    resp = client.post("/api/tasks", json=payload, headers=headers)
    assert resp.status_code == 201, resp.get_data(as_text=True)
    return resp.get_json()["task"]


class _Response:
    def __init__(self, resp):
        self.status_code = resp.status_code
        self._resp = resp

    def json(self):
        return self._resp.get_json(silent=True)


class FlaskTransport:
    """Stands in for requests.Session, routing calls to the Flask test client."""

    def __init__(self, test_client):
        self.test_client = test_client
        self.calls = []

    def request(self, method, url, json=None, params=None, headers=None, timeout=None):
        path = urlsplit(url).path
        self.calls.append((method, path))
        resp = self.test_client.open(path, method=method, json=json, query_string=params, headers=headers)
        return _Response(resp)
