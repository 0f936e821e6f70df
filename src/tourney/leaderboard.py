"""
Leaderboard aggregation across tournaments.
"""
from typing import Dict, Iterable, List

from .models import LeaderboardEntry, Tournament

WIN_POINTS = 3


def compute_leaderboard(tournaments: Iterable[Tournament], win_points: int = WIN_POINTS) -> List[LeaderboardEntry]:
    """
    Aggregate wins, losses and points per player.

    Every player listed in any tournament gets an entry; the first name seen
    for an id is kept. A recorded winner earns a win and ``win_points``; the
    other participant gets a loss. Ties record nothing.

    Ranking: points desc -> wins desc -> first appearance.
    The input tournaments are not modified.
    """
    entries: Dict[str, LeaderboardEntry] = {}

    def entry_for(player) -> LeaderboardEntry:
        if player.id not in entries:
            entries[player.id] = LeaderboardEntry(player_id=player.id, name=player.name)
        return entries[player.id]

    for tournament in tournaments:
        for player in tournament.players:
            entry_for(player)

        for match in tournament.matches:
            if not match.players or not match.winner:
                continue
            winner = next((p for p in match.players if p.id == match.winner), None)
            if winner is not None:
                winner_entry = entry_for(winner)
            elif match.winner in entries:
                winner_entry = entries[match.winner]
            else:
                continue
            winner_entry.wins += 1
            winner_entry.points += win_points

            loser = next((p for p in match.players if p.id != match.winner), None)
            if loser is not None:
                entry_for(loser).losses += 1

    return sorted(entries.values(), key=lambda e: (-e.points, -e.wins))
