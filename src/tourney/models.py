"""
Data models for players, matches, tournaments and derived leaderboard rows.

Models serialize to plain dicts (``to_dict``) so the YAML store can persist
them, and rebuild from those dicts (``from_dict``).
"""
import copy
from typing import Dict, List, Optional

FORMATS = ('single', 'double', 'roundrobin', 'league')
SCHEDULE_MODES = ('manual', 'auto')
MATCH_FIELDS = ('score', 'winner', 'scheduled_at')
# Keys of Tournament.meta that hold round-grouped matches
ROUND_KEYS = ('rounds', 'winners', 'losers')


class Player:
    def __init__(self, id, name):
        self.id = id
        self.name = name

    def __eq__(self, other):
        if not isinstance(other, Player):
            return NotImplemented
        return self.id == other.id and self.name == other.name

    def __hash__(self):
        return hash((self.id, self.name))

    def to_dict(self) -> Dict:
        return {'id': self.id, 'name': self.name}

    @classmethod
    def from_dict(cls, data: Dict) -> 'Player':
        return cls(id=data.get('id'), name=data.get('name', ''))

    def __repr__(self):
        return f"Player(id={self.id}, name={self.name})"


class Match:
    """A single pairing. Fewer than two players means a bye or a placeholder."""

    def __init__(self, id, players=None, score=None, winner=None, scheduled_at=None):
        self.id = id
        self.players = list(players) if players else []
        self.score = list(score) if score is not None else [0, 0]
        self.winner = winner
        self.scheduled_at = scheduled_at

    @property
    def is_bye(self) -> bool:
        return len(self.players) == 1

    @property
    def is_placeholder(self) -> bool:
        return not self.players

    def apply(self, update: Dict) -> 'Match':
        """Return a copy with the fields in ``update`` replaced."""
        patched = self.copy()
        for key in MATCH_FIELDS:
            if key in update:
                value = update[key]
                if key == 'score' and value is not None:
                    value = list(value)
                setattr(patched, key, value)
        return patched

    def copy(self) -> 'Match':
        return copy.deepcopy(self)

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'players': [p.to_dict() for p in self.players],
            'score': list(self.score),
            'winner': self.winner,
            'scheduled_at': self.scheduled_at,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Match':
        return cls(
            id=data['id'],
            players=[Player.from_dict(p) for p in data.get('players') or []],
            score=data.get('score'),
            winner=data.get('winner'),
            scheduled_at=data.get('scheduled_at'),
        )

    def __eq__(self, other):
        if not isinstance(other, Match):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        names = ' vs '.join(p.name for p in self.players) or 'TBD'
        return f"Match(id={self.id}, players={names}, score={self.score}, winner={self.winner})"


def rounds_to_dicts(rounds: List[List[Match]]) -> List[List[Dict]]:
    return [[m.to_dict() for m in rnd] for rnd in rounds]


def rounds_from_dicts(rounds: List[List[Dict]]) -> List[List[Match]]:
    return [[Match.from_dict(m) for m in rnd] for rnd in rounds or []]


class Tournament:
    """
    A tournament with two views of its matches.

    ``matches`` is the flat, order-preserving list; ``meta`` holds the
    structural view (``rounds`` or ``winners``/``losers``). Both views carry
    matches with the same ids and the same field values.
    """

    def __init__(self, id, title, format, organizer_id, players=None, created_at=None,
                 schedule_mode='manual', matches=None, meta=None, chat=None, admin_notes=None):
        self.id = id
        self.title = title
        self.format = format
        self.organizer_id = organizer_id
        self.players = list(players) if players else []
        self.created_at = created_at
        self.schedule_mode = schedule_mode
        self.matches = list(matches) if matches else []
        self.meta = meta if meta is not None else {}
        self.chat = list(chat) if chat else []
        self.admin_notes = list(admin_notes) if admin_notes else []

    def copy(self) -> 'Tournament':
        return copy.deepcopy(self)

    def find_match(self, match_id) -> Optional[Match]:
        for match in self.matches:
            if match.id == match_id:
                return match
        return None

    def round_views(self) -> List[List[List[Match]]]:
        """All round-grouped views present in ``meta``."""
        return [self.meta[key] for key in ROUND_KEYS if key in self.meta]

    def to_dict(self) -> Dict:
        meta = {}
        for key, value in self.meta.items():
            meta[key] = rounds_to_dicts(value) if key in ROUND_KEYS else value
        return {
            'id': self.id,
            'title': self.title,
            'format': self.format,
            'organizer_id': self.organizer_id,
            'players': [p.to_dict() for p in self.players],
            'created_at': self.created_at,
            'schedule_mode': self.schedule_mode,
            'matches': [m.to_dict() for m in self.matches],
            'meta': meta,
            'chat': [dict(c) for c in self.chat],
            'admin_notes': list(self.admin_notes),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Tournament':
        meta = {}
        for key, value in (data.get('meta') or {}).items():
            meta[key] = rounds_from_dicts(value) if key in ROUND_KEYS else value
        return cls(
            id=data['id'],
            title=data.get('title', 'Untitled'),
            format=data.get('format', 'single'),
            organizer_id=data.get('organizer_id'),
            players=[Player.from_dict(p) for p in data.get('players') or []],
            created_at=data.get('created_at'),
            schedule_mode=data.get('schedule_mode', 'manual'),
            matches=[Match.from_dict(m) for m in data.get('matches') or []],
            meta=meta,
            chat=data.get('chat') or [],
            admin_notes=data.get('admin_notes') or [],
        )

    def summary(self) -> Dict:
        return {
            'id': self.id,
            'title': self.title,
            'format': self.format,
            'players': len(self.players),
            'created_at': self.created_at,
        }

    def __repr__(self):
        return f"Tournament(id={self.id}, title={self.title}, format={self.format}, players={len(self.players)})"


class User:
    def __init__(self, id, name, email, password_hash, admin=False):
        self.id = id
        self.name = name
        self.email = email
        self.password_hash = password_hash
        self.admin = admin

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'password_hash': self.password_hash,
            'admin': self.admin,
        }

    def public_dict(self) -> Dict:
        return {'id': self.id, 'name': self.name, 'email': self.email, 'admin': self.admin}

    @classmethod
    def from_dict(cls, data: Dict) -> 'User':
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            email=data.get('email', ''),
            password_hash=data.get('password_hash', ''),
            admin=bool(data.get('admin', False)),
        )

    def __repr__(self):
        return f"User(id={self.id}, name={self.name}, admin={self.admin})"


class LeaderboardEntry:
    def __init__(self, player_id, name, wins=0, losses=0, points=0):
        self.player_id = player_id
        self.name = name
        self.wins = wins
        self.losses = losses
        self.points = points

    def to_dict(self) -> Dict:
        return {
            'player_id': self.player_id,
            'name': self.name,
            'wins': self.wins,
            'losses': self.losses,
            'points': self.points,
        }

    def __eq__(self, other):
        if not isinstance(other, LeaderboardEntry):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"LeaderboardEntry(name={self.name}, points={self.points}, "
                f"wins={self.wins}, losses={self.losses})")
