"""
Application state for the tournament collection.

The manager owns the list of tournaments. Every mutation holds the store
lock while it reloads the list, replaces the affected tournament with the
updated copy returned by the lifecycle functions and saves it back.
"""
import logging
import random
from typing import Callable, Iterable, List, Optional

from . import lifecycle
from .errors import NotFoundError
from .ids import now_iso, uid as default_uid
from .leaderboard import compute_leaderboard
from .models import LeaderboardEntry, Player, Tournament, User
from .settings import load_settings

logger = logging.getLogger(__name__)

TOURNAMENTS_KEY = 'tournaments'


class TournamentManager:
    def __init__(self, store, clock: Callable[[], str] = now_iso,
                 uid: Callable[[str], str] = default_uid, rng: Optional[random.Random] = None):
        self.store = store
        self.clock = clock
        self.uid = uid
        self.rng = rng
        self.settings = load_settings(store)
        self.tournaments: List[Tournament] = self._load()

    def _load(self) -> List[Tournament]:
        data = self.store.get(TOURNAMENTS_KEY, [])
        if not isinstance(data, list):
            logger.warning('Ignoring malformed tournaments data')
            return []
        return [Tournament.from_dict(t) for t in data]

    def _save(self):
        self.store.set(TOURNAMENTS_KEY, [t.to_dict() for t in self.tournaments])

    def _mutate(self, tournament_id: str, change: Callable[[Tournament], Tournament]) -> Tournament:
        """Reload, apply change to one tournament and save, all under the store lock."""
        with self.store.lock:
            self.reload()
            tournament = self.get(tournament_id)
            updated = change(tournament)
            if updated is tournament:
                return tournament
            self.tournaments = [updated if t.id == updated.id else t for t in self.tournaments]
            self._save()
            return updated

    def reload(self):
        self.tournaments = self._load()

    def list(self) -> List[Tournament]:
        return list(self.tournaments)

    def get(self, tournament_id: str) -> Tournament:
        for tournament in self.tournaments:
            if tournament.id == tournament_id:
                return tournament
        raise NotFoundError(f'Tournament {tournament_id} not found.')

    def create(self, title: str, format: str, organizer_id: str, players: List[Player],
               schedule_mode: str = 'manual') -> Tournament:
        tournament = lifecycle.create_tournament(
            title, format, organizer_id, players, schedule_mode,
            uid=self.uid, clock=self.clock, rng=self.rng,
        )
        with self.store.lock:
            self.reload()
            # Newest first
            self.tournaments = [tournament] + self.tournaments
            self._save()
        return tournament

    def update_match(self, tournament_id: str, match_id: str, update: dict,
                     user: Optional[User] = None) -> Tournament:
        return self._mutate(tournament_id,
                            lambda t: lifecycle.update_match(t, match_id, update, user=user))

    def set_score(self, tournament_id: str, match_id: str, a: int, b: int) -> Tournament:
        return self._mutate(tournament_id, lambda t: lifecycle.record_score(t, match_id, a, b))

    def reschedule_many(self, tournament_id: str, user: Optional[User], match_ids: Iterable[str],
                        scheduled_at: str) -> Tournament:
        updated = self._mutate(
            tournament_id,
            lambda t: lifecycle.reschedule_many(t, user, match_ids, scheduled_at),
        )
        logger.info('User %s rescheduled matches in %s to %s', user.id, tournament_id, scheduled_at)
        return updated

    def disqualify(self, tournament_id: str, user: Optional[User], player_id: str) -> Tournament:
        updated = self._mutate(
            tournament_id,
            lambda t: lifecycle.disqualify(t, user, player_id, clock=self.clock),
        )
        logger.info('User %s disqualified %s from %s', user.id, player_id, tournament_id)
        return updated

    def auto_schedule(self, tournament_id: str, user: Optional[User]) -> Tournament:
        updated = self._mutate(tournament_id, lambda t: lifecycle.auto_schedule(
            t, user, now=self.clock(),
            spacing_minutes=self.settings['auto_schedule_spacing_minutes'],
        ))
        logger.info('User %s auto-scheduled %s', user.id, tournament_id)
        return updated

    def add_comment(self, tournament_id: str, user: Optional[User], text: str) -> Tournament:
        return self._mutate(tournament_id, lambda t: lifecycle.add_comment(
            t, user, text, uid=self.uid, clock=self.clock,
        ))

    def leaderboard(self) -> List[LeaderboardEntry]:
        return compute_leaderboard(self.tournaments, win_points=self.settings['win_points'])
