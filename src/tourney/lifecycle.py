"""
Tournament lifecycle: creation, match updates and administrative actions.

Every operation works on a copy of the tournament and returns the new
version; callers replace the stored tournament with the result. Match
updates are applied to the flat match list and to every round view in
``meta`` so the two never disagree.
"""
import logging
import random
import re
from datetime import timedelta
from typing import Callable, Dict, Iterable, List, Optional

from .double_elimination import generate_double_elimination
from .elimination import generate_single_elimination
from .errors import NotFoundError, PermissionDeniedError, ValidationError
from .ids import now_iso, parse_iso, uid as default_uid
from .models import FORMATS, MATCH_FIELDS, ROUND_KEYS, SCHEDULE_MODES, Match, Player, Tournament, User
from .round_robin import generate_league, generate_round_robin

logger = logging.getLogger(__name__)

DEFAULT_TITLE = 'Untitled'
_PLAYER_SEPARATORS = re.compile(r'\n|,|;')


def parse_players(text: str, uid: Callable[[str], str] = default_uid) -> List[Player]:
    """Split free text on newlines, commas or semicolons; blank entries are dropped."""
    names = [name.strip() for name in _PLAYER_SEPARATORS.split(text or '')]
    return [Player(id=uid('p'), name=name) for name in names if name]


def derive_winner(match: Match, a: int, b: int) -> Optional[str]:
    """Winner id for scores (a, b): None on a tie or when that slot is empty."""
    if a == b:
        return None
    index = 0 if a > b else 1
    if index >= len(match.players):
        return None
    return match.players[index].id


def set_score(match: Match, a: int, b: int) -> Dict:
    """Build the partial update recording scores (a, b) and the derived winner."""
    return {'score': [a, b], 'winner': derive_winner(match, a, b)}


def is_admin(user: Optional[User], tournament: Tournament) -> bool:
    """True if the user is a global admin or organizes this tournament."""
    if user is None:
        return False
    return bool(user.admin) or user.id == tournament.organizer_id


def _require_admin(user: Optional[User], tournament: Tournament, action: str):
    if not is_admin(user, tournament):
        raise PermissionDeniedError(f'Only the organizer or an admin can {action}.')


def _unique_players(players: Iterable[Player]) -> List[Player]:
    seen = set()
    unique = []
    for player in players:
        if player.id in seen:
            continue
        seen.add(player.id)
        unique.append(player)
    return unique


def create_tournament(title: str, format: str, organizer_id: str, players: List[Player],
                      schedule_mode: str = 'manual', uid: Callable[[str], str] = default_uid,
                      clock: Callable[[], str] = now_iso,
                      rng: Optional[random.Random] = None) -> Tournament:
    """
    Build a tournament and generate its matches for the given format.

    No minimum player count: zero or one player yields no rounds.
    """
    if format not in FORMATS:
        raise ValidationError(f'Unknown format "{format}". Expected one of: {", ".join(FORMATS)}.')
    if schedule_mode not in SCHEDULE_MODES:
        raise ValidationError(f'Unknown schedule mode "{schedule_mode}".')

    players = _unique_players(players)
    tournament = Tournament(
        id=uid('t'),
        title=(title or '').strip() or DEFAULT_TITLE,
        format=format,
        organizer_id=organizer_id,
        players=players,
        created_at=clock(),
        schedule_mode=schedule_mode,
    )

    if format == 'single':
        structure = generate_single_elimination(players, uid=uid, rng=rng)
        tournament.meta = {'type': structure['type'], 'rounds': structure['rounds']}
        flat = [m for rnd in structure['rounds'] for m in rnd]
    elif format == 'double':
        structure = generate_double_elimination(players, uid=uid, rng=rng)
        tournament.meta = structure
        flat = [m for rnd in structure['winners'] for m in rnd]
        flat += [m for rnd in structure['losers'] for m in rnd]
    else:
        generator = generate_league if format == 'league' else generate_round_robin
        structure = generator(players, uid=uid)
        tournament.meta = {'type': structure['type'], 'rounds': structure['rounds']}
        flat = [m for rnd in structure['rounds'] for m in rnd]

    # The flat view holds its own copies; updates patch both views
    tournament.matches = [m.copy() for m in flat]
    logger.info('Created %s tournament %s with %d players and %d matches',
                format, tournament.id, len(players), len(tournament.matches))
    return tournament


def _patch_matches(tournament: Tournament, updates: Dict[str, Dict]) -> Tournament:
    """Apply per-match updates to the flat list and every round view of a copy."""
    patched = tournament.copy()
    patched.matches = [m.apply(updates[m.id]) if m.id in updates else m for m in patched.matches]
    for key in ROUND_KEYS:
        if key in patched.meta:
            patched.meta[key] = [
                [m.apply(updates[m.id]) if m.id in updates else m for m in rnd]
                for rnd in patched.meta[key]
            ]
    return patched


def _validate_scheduled_at(value):
    if value is None:
        return
    if not isinstance(value, str):
        raise ValidationError('Scheduled time must be an ISO-8601 string.')
    try:
        parse_iso(value)
    except ValueError:
        raise ValidationError(f'Invalid scheduled time "{value}".')


def _validate_update(match: Match, update: Dict):
    if 'score' in update:
        score = update['score']
        if not isinstance(score, (list, tuple)) or len(score) != 2:
            raise ValidationError('Score must be a pair of integers.')
        if not all(isinstance(s, int) and not isinstance(s, bool) for s in score):
            raise ValidationError('Score must be a pair of integers.')
    if 'winner' in update:
        winner = update['winner']
        if winner is not None and winner not in [p.id for p in match.players]:
            raise ValidationError(f'Winner must be a player in match {match.id}.')
    if 'scheduled_at' in update:
        _validate_scheduled_at(update['scheduled_at'])


def _apply_update(tournament: Tournament, match_id: str, update: Dict) -> Tournament:
    match = tournament.find_match(match_id)
    if match is None:
        raise NotFoundError(f'Match {match_id} not found in tournament {tournament.id}.')
    _validate_update(match, update)
    update = {key: update[key] for key in MATCH_FIELDS if key in update}
    # A new score without an explicit winner replaces any stale winner
    if 'score' in update and 'winner' not in update:
        update['winner'] = derive_winner(match, *update['score'])
    return _patch_matches(tournament, {match_id: update})


def update_match(tournament: Tournament, match_id: str, update: Dict,
                 user: Optional[User] = None) -> Tournament:
    """
    Apply a partial update (score, winner, scheduled_at) to one match.

    Setting the winner directly or changing the scheduled time is an admin
    action. A score without a winner re-derives the winner from the score.

    Raises NotFoundError if the match id is not in the tournament.
    """
    if 'winner' in update or 'scheduled_at' in update:
        _require_admin(user, tournament, 'set winners or schedule matches')
    return _apply_update(tournament, match_id, update)


def record_score(tournament: Tournament, match_id: str, a: int, b: int) -> Tournament:
    """Record scores (a, b) on one match; the winner follows from the score."""
    match = tournament.find_match(match_id)
    if match is None:
        raise NotFoundError(f'Match {match_id} not found in tournament {tournament.id}.')
    return _apply_update(tournament, match_id, set_score(match, a, b))


def reschedule_many(tournament: Tournament, user: Optional[User], match_ids: Iterable[str],
                    scheduled_at: str) -> Tournament:
    """Set the same scheduled time on several matches. Unknown ids are ignored."""
    _require_admin(user, tournament, 'reschedule matches')
    _validate_scheduled_at(scheduled_at)
    wanted = set(match_ids)
    updates = {m.id: {'scheduled_at': scheduled_at} for m in tournament.matches if m.id in wanted}
    return _patch_matches(tournament, updates)


def disqualify(tournament: Tournament, user: Optional[User], player_id: str,
               clock: Callable[[], str] = now_iso) -> Tournament:
    """
    Remove a player from the tournament and record an admin note.

    Matches already recorded with the player are left untouched.
    """
    _require_admin(user, tournament, 'disqualify players')
    if not any(p.id == player_id for p in tournament.players):
        raise NotFoundError(f'Player {player_id} not found in tournament {tournament.id}.')
    updated = tournament.copy()
    updated.players = [p for p in updated.players if p.id != player_id]
    updated.admin_notes.append(f'Disqualified {player_id} by {user.id} at {clock()}')
    return updated


def auto_schedule(tournament: Tournament, user: Optional[User], now: Optional[str] = None,
                  spacing_minutes: int = 60) -> Tournament:
    """Space all matches evenly: match i starts (i + 1) * spacing after now."""
    _require_admin(user, tournament, 'auto-schedule matches')
    start = parse_iso(now or now_iso())
    spacing = timedelta(minutes=spacing_minutes)
    updates = {
        m.id: {'scheduled_at': (start + (i + 1) * spacing).isoformat()}
        for i, m in enumerate(tournament.matches)
    }
    return _patch_matches(tournament, updates)


def add_comment(tournament: Tournament, user: Optional[User], text: str,
                uid: Callable[[str], str] = default_uid,
                clock: Callable[[], str] = now_iso) -> Tournament:
    """Append a chat message. Blank messages are skipped."""
    if user is None:
        raise PermissionDeniedError('Log in to chat.')
    if not (text or '').strip():
        return tournament
    updated = tournament.copy()
    updated.chat.append({
        'id': uid('c'),
        'user_id': user.id,
        'text': text,
        'created_at': clock(),
    })
    return updated
