"""
Shared pytest fixtures for tournament manager tests.

Running tests:
    pytest tests/
"""
import itertools
import random
import sys
import os

import pytest

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tourney.models import Player, User
from tourney.storage import YamlStore

FIXED_NOW = '2026-03-01T12:00:00+00:00'


@pytest.fixture
def seq_uid():
    """Deterministic id source: m_1, m_2, p_3, ..."""
    counter = itertools.count(1)
    return lambda prefix='id': f"{prefix}_{next(counter)}"


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def rng():
    return random.Random(42)


def make_players(*names):
    return [Player(id=f"p_{name.lower()}", name=name) for name in names]


@pytest.fixture
def four_players():
    return make_players('Alice', 'Bob', 'Carol', 'Dave')


@pytest.fixture
def five_players():
    return make_players('Alice', 'Bob', 'Carol', 'Dave', 'Erin')


@pytest.fixture
def organizer():
    return User(id='u_org', name='Org', email='org@test.com', password_hash='x', admin=False)


@pytest.fixture
def global_admin():
    return User(id='u_root', name='Root', email='root@test.com', password_hash='x', admin=True)


@pytest.fixture
def player_user():
    return User(id='u_player', name='Player', email='player@test.com', password_hash='x', admin=False)


@pytest.fixture
def store(tmp_path):
    return YamlStore(str(tmp_path / 'data'))


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the Flask app at a temporary data directory."""
    import app as app_module

    data_dir = tmp_path / 'data'
    data_dir.mkdir()
    monkeypatch.setattr(app_module, 'DATA_DIR', str(data_dir))
    return str(data_dir)


@pytest.fixture
def client(temp_data_dir):
    """Test client signed in as the seeded demo organizer (global admin)."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        resp = client.post('/api/login', json={'email': 'org@example.com', 'password': 'pass'})
        assert resp.status_code == 200
        yield client


@pytest.fixture
def anon_client(temp_data_dir):
    """Test client with no signed-in user."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def players_named():
    """Factory fixture: players_named('A', 'B') -> [Player(p_a), Player(p_b)]."""
    return make_players
