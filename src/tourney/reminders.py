"""
Upcoming match reminders.

A scan looks at every scheduled match and reports those starting within the
look-ahead window. Scans do not remember what they reported: a match that
stays inside the window is reported again on the next scan.
"""
import logging
import threading
from datetime import timedelta
from typing import Callable, Iterable, List, Tuple

from .ids import now_iso, parse_iso
from .models import Match, Tournament

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_MINUTES = 60
DEFAULT_INTERVAL_SECONDS = 30


def find_upcoming_matches(tournaments: Iterable[Tournament], now: str,
                          window_minutes: int = DEFAULT_WINDOW_MINUTES) -> List[Tuple[Tournament, Match]]:
    """Matches scheduled after now and no later than now + window."""
    current = parse_iso(now)
    horizon = current + timedelta(minutes=window_minutes)
    upcoming = []
    for tournament in tournaments:
        for match in tournament.matches:
            if not match.scheduled_at or not isinstance(match.scheduled_at, str):
                continue
            try:
                start = parse_iso(match.scheduled_at)
            except ValueError:
                logger.warning('Skipping match %s with unreadable time %r', match.id, match.scheduled_at)
                continue
            if current < start <= horizon:
                upcoming.append((tournament, match))
    return upcoming


def reminder_message(tournament: Tournament, match: Match) -> Tuple[str, str]:
    """Return (title, body) for a reminder."""
    names = ' vs '.join(p.name for p in match.players)
    return 'Upcoming match', f'{tournament.title}: match between {names} at {match.scheduled_at}'


def scan_and_notify(tournaments: Iterable[Tournament], notify: Callable[[str, str], None],
                    now: str, window_minutes: int = DEFAULT_WINDOW_MINUTES) -> int:
    """Request one notification per upcoming match. Returns how many were requested."""
    upcoming = find_upcoming_matches(tournaments, now, window_minutes)
    for tournament, match in upcoming:
        title, body = reminder_message(tournament, match)
        notify(title, body)
    return len(upcoming)


def run_reminder_loop(load_tournaments: Callable[[], Iterable[Tournament]],
                      notify: Callable[[str, str], None],
                      stop_event: threading.Event,
                      interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
                      window_minutes: int = DEFAULT_WINDOW_MINUTES,
                      clock: Callable[[], str] = now_iso):
    """Scan every interval until stop_event is set. The first scan runs after one interval."""
    while not stop_event.wait(interval_seconds):
        count = scan_and_notify(load_tournaments(), notify, clock(), window_minutes)
        if count:
            logger.debug('Reminder scan requested %d notifications', count)
