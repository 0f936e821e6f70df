"""
Tests for the Flask JSON API.
"""
import pytest

from app import _reminder_events
from tourney.ids import now_iso


def create(client, **overrides):
    body = {'title': 'Spring Cup', 'format': 'roundrobin', 'players_text': 'Alice\nBob\nCarol\nDave'}
    body.update(overrides)
    resp = client.post('/api/tournaments', json=body)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['tournament']


def signup(client, email='bo@test.com'):
    resp = client.post('/api/signup', json={'name': 'Bo', 'email': email, 'password': 'pw'})
    assert resp.status_code == 200
    return resp.get_json()['user']


class TestAccounts:
    """Tests for signup, login and logout."""

    def test_login_sets_session(self, client):
        data = client.get('/api/me').get_json()
        assert data['user']['email'] == 'org@example.com'
        assert data['user']['admin'] is True

    def test_bad_login(self, anon_client):
        resp = anon_client.post('/api/login', json={'email': 'org@example.com', 'password': 'nope'})
        assert resp.status_code == 401
        assert resp.get_json()['error'] == 'Invalid credentials'

    def test_signup_and_duplicate(self, anon_client):
        user = signup(anon_client)
        assert user['admin'] is False
        resp = anon_client.post('/api/signup', json={'name': 'X', 'email': 'bo@test.com', 'password': 'pw'})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Email taken'

    def test_logout(self, client):
        client.post('/api/logout')
        assert client.get('/api/me').get_json()['user'] is None

    def test_missing_body(self, anon_client):
        resp = anon_client.post('/api/login', data='not json', content_type='text/plain')
        assert resp.status_code == 400


class TestTournamentRoutes:
    """Tests for tournament creation and match updates."""

    def test_create_requires_login(self, anon_client):
        resp = anon_client.post('/api/tournaments', json={'format': 'single', 'players_text': 'A,B'})
        assert resp.status_code == 401

    def test_create_from_text(self, client):
        t = create(client)
        assert t['title'] == 'Spring Cup'
        assert len(t['players']) == 4
        assert len(t['matches']) == 6
        assert t['organizer_id'] == 'u_admin'
        assert t['can_admin'] is True

    def test_create_from_list(self, client):
        t = create(client, format='single', players=['A', ' ', 'B', 'C'], players_text=None)
        assert [p['name'] for p in t['players']] == ['A', 'B', 'C']
        assert len(t['meta']['rounds']) == 2

    def test_create_untitled(self, client):
        assert create(client, title='')['title'] == 'Untitled'

    def test_create_bad_format(self, client):
        resp = client.post('/api/tournaments', json={'format': 'swiss', 'players_text': 'A,B'})
        assert resp.status_code == 400
        assert resp.get_json()['success'] is False

    def test_list_and_get(self, client):
        t = create(client)
        listing = client.get('/api/tournaments').get_json()['tournaments']
        assert listing[0]['id'] == t['id']
        assert client.get(f"/api/tournaments/{t['id']}").get_json()['tournament']['id'] == t['id']

    def test_get_unknown(self, client):
        resp = client.get('/api/tournaments/t_missing')
        assert resp.status_code == 404

    def test_score_derives_winner(self, client):
        t = create(client)
        match = t['matches'][0]
        resp = client.post(f"/api/tournaments/{t['id']}/matches/{match['id']}/score", json={'score': [3, 1]})
        assert resp.status_code == 200
        assert resp.get_json()['match']['winner'] == match['players'][0]['id']

        resp = client.post(f"/api/tournaments/{t['id']}/matches/{match['id']}/score", json={'score': [2, 2]})
        assert resp.get_json()['match']['winner'] is None

    def test_score_validation(self, client):
        t = create(client)
        mid = t['matches'][0]['id']
        assert client.post(f"/api/tournaments/{t['id']}/matches/{mid}/score", json={'score': [1]}).status_code == 400
        assert client.post(f"/api/tournaments/{t['id']}/matches/{mid}/score", json={'score': ['x', 1]}).status_code == 400

    def test_partial_update_keeps_views_in_sync(self, client):
        t = create(client)
        mid = t['matches'][1]['id']
        resp = client.post(f"/api/tournaments/{t['id']}/matches/{mid}",
                           json={'scheduled_at': '2026-05-01T10:00:00+00:00'})
        assert resp.status_code == 200
        stored = client.get(f"/api/tournaments/{t['id']}").get_json()['tournament']
        flat = next(m for m in stored['matches'] if m['id'] == mid)
        in_rounds = [m for rnd in stored['meta']['rounds'] for m in rnd if m['id'] == mid]
        assert in_rounds == [flat]
        assert flat['scheduled_at'] == '2026-05-01T10:00:00+00:00'

    def test_update_unknown_match(self, client):
        t = create(client)
        resp = client.post(f"/api/tournaments/{t['id']}/matches/m_missing", json={'score': [1, 0]})
        assert resp.status_code == 404


class TestAdminRoutes:
    """Tests for admin-only actions."""

    def test_reschedule(self, client):
        t = create(client)
        ids = [m['id'] for m in t['matches'][:2]]
        resp = client.post(f"/api/tournaments/{t['id']}/reschedule",
                           json={'match_ids': ids, 'scheduled_at': '2026-06-01T09:00:00+00:00'})
        assert resp.status_code == 200
        matches = resp.get_json()['tournament']['matches']
        assert [m['scheduled_at'] for m in matches[:3]] == ['2026-06-01T09:00:00+00:00'] * 2 + [None]

    def test_reschedule_missing_fields(self, client):
        t = create(client)
        assert client.post(f"/api/tournaments/{t['id']}/reschedule", json={'match_ids': []}).status_code == 400

    def test_disqualify(self, client):
        t = create(client)
        pid = t['players'][0]['id']
        resp = client.post(f"/api/tournaments/{t['id']}/disqualify", json={'player_id': pid})
        assert resp.status_code == 200
        body = resp.get_json()['tournament']
        assert pid not in [p['id'] for p in body['players']]
        assert body['admin_notes'][0].startswith(f'Disqualified {pid} by u_admin')
        assert len(body['matches']) == 6

    def test_non_admin_denied(self, client):
        """Users who are not organizer or admin get 403 and nothing changes."""
        t = create(client)
        client.post('/api/logout')
        signup(client)
        pid = t['players'][0]['id']
        mid = t['matches'][0]['id']
        resp = client.post(f"/api/tournaments/{t['id']}/disqualify", json={'player_id': pid})
        assert resp.status_code == 403
        resp = client.post(f"/api/tournaments/{t['id']}/auto-schedule")
        assert resp.status_code == 403
        resp = client.post(f"/api/tournaments/{t['id']}/matches/{mid}",
                           json={'scheduled_at': '2030-01-01T00:00:00'})
        assert resp.status_code == 403
        resp = client.post(f"/api/tournaments/{t['id']}/matches/{mid}",
                           json={'winner': t['matches'][0]['players'][0]['id']})
        assert resp.status_code == 403
        stored = client.get(f"/api/tournaments/{t['id']}").get_json()['tournament']
        assert len(stored['players']) == 4
        assert stored['can_admin'] is False
        assert all(m['scheduled_at'] is None and m['winner'] is None for m in stored['matches'])

    def test_non_admin_can_enter_scores(self, client):
        """Score entry stays open to any signed-in user."""
        t = create(client)
        client.post('/api/logout')
        signup(client)
        match = t['matches'][0]
        resp = client.post(f"/api/tournaments/{t['id']}/matches/{match['id']}", json={'score': [1, 4]})
        assert resp.status_code == 200
        assert resp.get_json()['match']['winner'] == match['players'][1]['id']

    def test_invalid_fields_rejected(self, client):
        t = create(client)
        mid = t['matches'][0]['id']
        resp = client.post(f"/api/tournaments/{t['id']}/matches/{mid}", json={'winner': {'id': 'x'}})
        assert resp.status_code == 400
        resp = client.post(f"/api/tournaments/{t['id']}/matches/{mid}", json={'scheduled_at': 1700000000})
        assert resp.status_code == 400
        assert client.get('/api/leaderboard').status_code == 200

    def test_organizer_can_admin_own_tournament(self, anon_client):
        signup(anon_client)
        t = create(anon_client)
        assert t['can_admin'] is True
        resp = anon_client.post(f"/api/tournaments/{t['id']}/auto-schedule")
        assert resp.status_code == 200
        assert all(m['scheduled_at'] for m in resp.get_json()['tournament']['matches'])


class TestChatAndLeaderboard:
    """Tests for chat, leaderboard and reminders."""

    def test_chat(self, client):
        t = create(client)
        resp = client.post(f"/api/tournaments/{t['id']}/chat", json={'text': 'good luck'})
        assert resp.get_json()['chat'][0]['text'] == 'good luck'
        resp = client.post(f"/api/tournaments/{t['id']}/chat", json={'text': '  '})
        assert len(resp.get_json()['chat']) == 1

    def test_leaderboard(self, client):
        t = create(client, players_text='Alice, Bob')
        match = t['matches'][0]
        client.post(f"/api/tournaments/{t['id']}/matches/{match['id']}/score", json={'score': [3, 1]})
        board = client.get('/api/leaderboard').get_json()['leaderboard']
        assert board[0]['name'] == match['players'][0]['name']
        assert (board[0]['points'], board[0]['wins'], board[0]['losses']) == (3, 1, 0)
        assert (board[1]['points'], board[1]['wins'], board[1]['losses']) == (0, 0, 1)

    def test_reminder_events(self, client):
        """Only the first auto-scheduled match falls inside the next hour."""
        t = create(client)
        client.post(f"/api/tournaments/{t['id']}/auto-schedule")
        frames = _reminder_events(now_iso())
        assert len(frames) == 1
        assert frames[0].startswith('event: reminder\n')
        assert 'Spring Cup: match between' in frames[0]

    def test_reminder_stream_opens(self, client):
        resp = client.get('/api/reminders/stream')
        assert resp.status_code == 200
        assert resp.mimetype == 'text/event-stream'
        first = next(iter(resp.response))
        assert b'event: connected' in (first if isinstance(first, bytes) else first.encode())
        resp.close()
