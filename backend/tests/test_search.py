"""Tests for keyword search over the caller's events and tasks."""
from tests.conftest import create_event, invite, make_user


def _search(client, headers, **params):
    return client.get("/api/search", params=params, headers=headers)


class TestSearchScope:
    def test_results_limited_to_membership(self, client):
        _, alice_h = make_user(client, "Alice")
        _, bob_h = make_user(client, "Bob")
        _, eve_h = make_user(client, "Eve")
        party = create_event(client, alice_h, title="Launch Party")
        create_event(client, eve_h, title="Secret Party")
        invite(client, alice_h, party["id"], "bob@example.com")

        data = _search(client, bob_h, keyword="party").json()
        assert [e["id"] for e in data["events"]] == [party["id"]]
        assert data["events"][0]["myRole"] == "attendee"
        assert data["events"][0]["myStatus"] == "pending"

    def test_tasks_of_foreign_events_hidden(self, client):
        _, alice_h = make_user(client, "Alice")
        _, eve_h = make_user(client, "Eve")
        mine = create_event(client, alice_h)
        theirs = create_event(client, eve_h)
        client.post(f"/api/events/{mine['id']}/tasks", json={"description": "Order cake"}, headers=alice_h)
        client.post(f"/api/events/{theirs['id']}/tasks", json={"description": "Order balloons"}, headers=eve_h)

        tasks = _search(client, alice_h, keyword="order", type="tasks").json()["tasks"]
        assert [t["description"] for t in tasks] == ["Order cake"]


class TestSearchFilters:
    def test_keyword_is_case_insensitive_over_title_and_description(self, client):
        _, alice_h = make_user(client, "Alice")
        by_title = create_event(client, alice_h, title="Board Meeting", description=None)
        by_desc = create_event(client, alice_h, title="Offsite", description="quarterly BOARD review")
        create_event(client, alice_h, title="Picnic", description="sandwiches")

        ids = {e["id"] for e in _search(client, alice_h, keyword="bOaRd").json()["events"]}
        assert ids == {by_title["id"], by_desc["id"]}

    def test_no_keyword_returns_everything_newest_first(self, client):
        _, alice_h = make_user(client, "Alice")
        first = create_event(client, alice_h, title="First")
        second = create_event(client, alice_h, title="Second")
        events = _search(client, alice_h, type="events").json()["events"]
        assert [e["id"] for e in events] == [second["id"], first["id"]]

    def test_role_filter(self, client):
        _, alice_h = make_user(client, "Alice")
        _, bob_h = make_user(client, "Bob")
        own = create_event(client, bob_h, title="Bob's Party")
        invited = create_event(client, alice_h, title="Alice's Party")
        invite(client, alice_h, invited["id"], "bob@example.com")

        organized = _search(client, bob_h, role="organizer", type="events").json()["events"]
        attending = _search(client, bob_h, role="attendee", type="events").json()["events"]
        assert [e["id"] for e in organized] == [own["id"]]
        assert [e["id"] for e in attending] == [invited["id"]]

    def test_unknown_role_is_ignored(self, client):
        _, alice_h = make_user(client, "Alice")
        create_event(client, alice_h)
        events = _search(client, alice_h, role="guest", type="events").json()["events"]
        assert len(events) == 1

    def test_wildcards_match_literally(self, client):
        _, alice_h = make_user(client, "Alice")
        discount = create_event(client, alice_h, title="50% off sale")
        create_event(client, alice_h, title="500 guests")
        events = _search(client, alice_h, keyword="50%", type="events").json()["events"]
        assert [e["id"] for e in events] == [discount["id"]]

    def test_tasks_ordered_by_due_date(self, client):
        _, alice_h = make_user(client, "Alice")
        event = create_event(client, alice_h)
        url = f"/api/events/{event['id']}/tasks"
        client.post(url, json={"description": "prep: undated"}, headers=alice_h)
        client.post(url, json={"description": "prep: later", "dueDate": "2025-05-25"}, headers=alice_h)
        client.post(url, json={"description": "prep: sooner", "dueDate": "2025-05-10"}, headers=alice_h)

        tasks = _search(client, alice_h, keyword="prep", type="tasks").json()["tasks"]
        assert [t["description"] for t in tasks] == ["prep: sooner", "prep: later", "prep: undated"]


class TestSearchType:
    def test_events_only(self, client):
        _, alice_h = make_user(client, "Alice")
        create_event(client, alice_h)
        data = _search(client, alice_h, type="events").json()
        assert set(data) == {"events"}

    def test_tasks_only(self, client):
        _, alice_h = make_user(client, "Alice")
        data = _search(client, alice_h, type="tasks").json()
        assert data == {"tasks": []}

    def test_default_is_all(self, client):
        _, alice_h = make_user(client, "Alice")
        data = _search(client, alice_h).json()
        assert data == {"events": [], "tasks": []}

    def test_invalid_type(self, client):
        _, alice_h = make_user(client, "Alice")
        resp = _search(client, alice_h, type="people")
        assert resp.status_code == 400
        assert resp.json()["error"] is True

    def test_requires_auth(self, client):
        assert client.get("/api/search").status_code == 401
