"""
Flask web application for Tournament Manager.

JSON API over the tournament domain: accounts, tournament creation,
score entry, admin actions, chat, leaderboard and a reminder stream.
"""
import os
import time
from datetime import timedelta
from functools import wraps

from flask import Flask, Response, jsonify, request, session, stream_with_context

from tourney.errors import NotFoundError, PermissionDeniedError, TournamentError, ValidationError
from tourney.ids import now_iso
from tourney.lifecycle import is_admin, parse_players
from tourney.manager import TournamentManager
from tourney.models import Player
from tourney.reminders import scan_and_notify
from tourney.settings import load_settings
from tourney.storage import YamlStore
from tourney.users import authenticate_user, create_user, ensure_seed_admin, get_user

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))


def _get_or_create_secret_key() -> bytes:
    """Get SECRET_KEY from env, or generate and persist to file."""
    env_key = os.environ.get('SECRET_KEY')
    if env_key:
        return env_key.encode()
    key_file = os.path.join(DATA_DIR, '.secret_key')
    if os.path.exists(key_file):
        with open(key_file, 'rb') as f:
            return f.read()
    key = os.urandom(24)
    os.makedirs(os.path.dirname(key_file), exist_ok=True)
    with open(key_file, 'wb') as f:
        f.write(key)
    return key


app.secret_key = _get_or_create_secret_key()
app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(days=30)

_ERROR_STATUS = {
    NotFoundError: 404,
    PermissionDeniedError: 403,
    ValidationError: 400,
}


def get_store() -> YamlStore:
    """Store for the configured data directory (seeded with the demo organizer)."""
    store = YamlStore(DATA_DIR)
    ensure_seed_admin(store)
    return store


def get_manager() -> TournamentManager:
    return TournamentManager(get_store())


def current_user():
    return get_user(get_store(), session.get('user'))


def login_required(f):
    """Reject the request with 401 if no user is signed in."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_user() is None:
            return jsonify({'success': False, 'error': 'Login required'}), 401
        return f(*args, **kwargs)
    return decorated_function


@app.errorhandler(TournamentError)
def handle_tournament_error(e):
    status = next((code for cls, code in _ERROR_STATUS.items() if isinstance(e, cls)), 400)
    if status == 403:
        app.logger.info(f'Permission denied for {request.path}: {e}')
    return jsonify({'success': False, 'error': str(e)}), status


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('No data provided')
    return data


def _tournament_payload(tournament, user=None) -> dict:
    payload = tournament.to_dict()
    payload['can_admin'] = is_admin(user, tournament)
    return payload


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

@app.route('/api/signup', methods=['POST'])
def api_signup():
    """Create an account and sign in."""
    data = _json_body()
    ok, msg, user = create_user(get_store(), data.get('name', ''), data.get('email', ''),
                                data.get('password', ''))
    if not ok:
        return jsonify({'success': False, 'error': msg}), 400
    session['user'] = user.id
    session.permanent = True
    return jsonify({'success': True, 'user': user.public_dict()})


@app.route('/api/login', methods=['POST'])
def api_login():
    """Sign in with email and password."""
    data = _json_body()
    user = authenticate_user(get_store(), data.get('email', ''), data.get('password', ''))
    if user is None:
        return jsonify({'success': False, 'error': 'Invalid credentials'}), 401
    session['user'] = user.id
    session.permanent = True
    return jsonify({'success': True, 'user': user.public_dict()})


@app.route('/api/logout', methods=['POST'])
def api_logout():
    """Clear session."""
    session.clear()
    return jsonify({'success': True})


@app.route('/api/me')
def api_me():
    user = current_user()
    return jsonify({'user': user.public_dict() if user else None})


# ---------------------------------------------------------------------------
# Tournaments
# ---------------------------------------------------------------------------

@app.route('/api/tournaments', methods=['GET'])
def api_list_tournaments():
    """List all tournaments, newest first."""
    return jsonify({'tournaments': [t.summary() for t in get_manager().list()]})


@app.route('/api/tournaments', methods=['POST'])
@login_required
def api_create_tournament():
    """
    Create a tournament.

    Body: title, format, schedule_mode and either ``players`` (list of names)
    or ``players_text`` (names separated by newlines, commas or semicolons).
    """
    data = _json_body()
    user = current_user()
    manager = get_manager()

    if isinstance(data.get('players'), list):
        players = [Player(id=manager.uid('p'), name=str(name).strip())
                   for name in data['players'] if str(name).strip()]
    else:
        players = parse_players(data.get('players_text', ''), uid=manager.uid)

    tournament = manager.create(
        title=data.get('title', ''),
        format=data.get('format', 'single'),
        organizer_id=user.id,
        players=players,
        schedule_mode=data.get('schedule_mode', 'manual'),
    )
    return jsonify({'success': True, 'tournament': _tournament_payload(tournament, user)}), 201


@app.route('/api/tournaments/<tournament_id>', methods=['GET'])
def api_get_tournament(tournament_id):
    tournament = get_manager().get(tournament_id)
    return jsonify({'tournament': _tournament_payload(tournament, current_user())})


@app.route('/api/tournaments/<tournament_id>/matches/<match_id>', methods=['POST'])
@login_required
def api_update_match(tournament_id, match_id):
    """Partial match update: any of score, winner, scheduled_at (the last two are admin-only)."""
    data = _json_body()
    update = {key: data[key] for key in ('score', 'winner', 'scheduled_at') if key in data}
    tournament = get_manager().update_match(tournament_id, match_id, update, user=current_user())
    return jsonify({'success': True, 'match': tournament.find_match(match_id).to_dict()})


@app.route('/api/tournaments/<tournament_id>/matches/<match_id>/score', methods=['POST'])
@login_required
def api_set_score(tournament_id, match_id):
    """Record scores [a, b]; the winner is derived from them."""
    data = _json_body()
    score = data.get('score')
    if not isinstance(score, list) or len(score) != 2:
        return jsonify({'success': False, 'error': 'Score must be [a, b]'}), 400
    try:
        a, b = int(score[0] or 0), int(score[1] or 0)
    except (TypeError, ValueError):
        return jsonify({'success': False, 'error': 'Scores must be integers'}), 400
    tournament = get_manager().set_score(tournament_id, match_id, a, b)
    return jsonify({'success': True, 'match': tournament.find_match(match_id).to_dict()})


@app.route('/api/tournaments/<tournament_id>/reschedule', methods=['POST'])
@login_required
def api_reschedule(tournament_id):
    """Admin: move several matches to one time."""
    data = _json_body()
    match_ids = data.get('match_ids') or []
    scheduled_at = data.get('scheduled_at')
    if not isinstance(match_ids, list) or not scheduled_at:
        return jsonify({'success': False, 'error': 'match_ids and scheduled_at are required'}), 400
    tournament = get_manager().reschedule_many(tournament_id, current_user(), match_ids, scheduled_at)
    app.logger.info(f'Rescheduled {len(match_ids)} matches in {tournament_id}')
    return jsonify({'success': True, 'tournament': _tournament_payload(tournament, current_user())})


@app.route('/api/tournaments/<tournament_id>/disqualify', methods=['POST'])
@login_required
def api_disqualify(tournament_id):
    """Admin: remove a player from the tournament."""
    data = _json_body()
    player_id = data.get('player_id')
    if not player_id:
        return jsonify({'success': False, 'error': 'player_id is required'}), 400
    tournament = get_manager().disqualify(tournament_id, current_user(), player_id)
    app.logger.info(f'Disqualified {player_id} from {tournament_id}')
    return jsonify({'success': True, 'tournament': _tournament_payload(tournament, current_user())})


@app.route('/api/tournaments/<tournament_id>/auto-schedule', methods=['POST'])
@login_required
def api_auto_schedule(tournament_id):
    """Admin: space all matches evenly from now."""
    tournament = get_manager().auto_schedule(tournament_id, current_user())
    app.logger.info(f'Auto-scheduled {len(tournament.matches)} matches in {tournament_id}')
    return jsonify({'success': True, 'tournament': _tournament_payload(tournament, current_user())})


@app.route('/api/tournaments/<tournament_id>/chat', methods=['POST'])
@login_required
def api_chat(tournament_id):
    data = _json_body()
    tournament = get_manager().add_comment(tournament_id, current_user(), data.get('text', ''))
    return jsonify({'success': True, 'chat': tournament.chat})


@app.route('/api/leaderboard')
def api_leaderboard():
    return jsonify({'leaderboard': [e.to_dict() for e in get_manager().leaderboard()]})


# ---------------------------------------------------------------------------
# Reminders
# ---------------------------------------------------------------------------

def _reminder_events(now: str) -> list:
    """SSE frames for every match starting within the reminder window."""
    manager = get_manager()
    frames = []

    def notify(title, body):
        frames.append(f"event: reminder\ndata: {title}: {body}\n\n")

    scan_and_notify(manager.list(), notify, now, manager.settings['reminder_window_minutes'])
    return frames


@app.route('/api/reminders/stream')
def api_reminders_stream():
    """Server-Sent Events stream that re-scans for upcoming matches on an interval."""
    interval = load_settings(get_store())['reminder_interval_seconds']

    def generate():
        yield "event: connected\ndata: ok\n\n"
        while True:
            time.sleep(interval)
            frames = _reminder_events(now_iso())
            for frame in frames:
                yield frame
            if not frames:
                yield ": heartbeat\n\n"

    return Response(
        stream_with_context(generate()),
        mimetype='text/event-stream',
        headers={
            'Cache-Control': 'no-cache',
            'X-Accel-Buffering': 'no',
        },
    )


if __name__ == '__main__':
    app.run(debug=True, port=5000)
