"""
Single elimination bracket generation.
"""
import math
import random
from typing import Callable, Dict, List, Optional

from .ids import uid as default_uid
from .models import Match, Player


def get_round_name(teams_in_round: int) -> str:
    """Get the name of a round based on number of players still in it."""
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round in (3, 4):
        return "Semifinal"
    elif teams_in_round in (5, 6, 7, 8):
        return "Quarterfinal"
    else:
        return f"Round of {calculate_bracket_size(teams_in_round)}"


def calculate_bracket_size(num_players: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_players <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_players))


def calculate_total_rounds(num_players: int) -> int:
    """Number of rounds a single elimination bracket needs (0 for one player or fewer)."""
    if num_players <= 1:
        return 0
    return math.ceil(math.log2(num_players))


def generate_single_elimination(players: List[Player], uid: Callable[[str], str] = default_uid,
                                rng: Optional[random.Random] = None) -> Dict:
    """
    Generate the rounds of a single elimination bracket.

    Players are shuffled, then consecutive slots are paired round after round
    until one slot remains. An odd slot out gets a one-player match (a bye).
    Only the first round carries players: later rounds hold empty matches
    that are filled as results come in, byes are not advanced automatically.

    Returns dict with:
    - 'type': 'single'
    - 'rounds': list of rounds, each a list of Match
    """
    shuffled = list(players)
    (rng or random).shuffle(shuffled)

    # Each slot is the player (or None for a winner still to be decided)
    slots: List[Optional[Player]] = list(shuffled)
    rounds = []
    while len(slots) > 1:
        round_matches = []
        for i in range(0, len(slots), 2):
            pair = [slots[i], slots[i + 1] if i + 1 < len(slots) else None]
            round_matches.append(Match(
                id=uid('m'),
                players=[p for p in pair if p is not None],
                score=[0, 0],
            ))
        rounds.append(round_matches)
        slots = [None] * len(round_matches)

    return {'type': 'single', 'rounds': rounds}


def get_bracket_display(rounds: List[List[Match]]) -> Dict:
    """
    Get bracket statistics for display.
    """
    first_round = rounds[0] if rounds else []
    total_players = sum(len(m.players) for m in first_round)
    matches_per_round = {}
    players_in_round = total_players
    for idx, rnd in enumerate(rounds):
        name = get_round_name(players_in_round) if players_in_round > 1 else f"Round {idx + 1}"
        matches_per_round[name] = len([m for m in rnd if not m.is_bye])
        players_in_round = len(rnd)

    return {
        'total_players': total_players,
        'total_rounds': calculate_total_rounds(total_players),
        'byes': sum(1 for rnd in rounds for m in rnd if m.is_bye),
        'matches_per_round': matches_per_round,
    }
