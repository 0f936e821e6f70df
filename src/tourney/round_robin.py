"""
Round robin (and league) schedule generation using the circle method.
"""
from typing import Callable, Dict, List

from .ids import uid as default_uid
from .models import Match, Player

BYE = Player(id=None, name='BYE')


def generate_round_robin(players: List[Player], uid: Callable[[str], str] = default_uid,
                         format: str = 'roundrobin') -> Dict:
    """
    Generate a schedule where every player meets every other player once.

    An odd field is padded with a BYE marker; pairings against it produce
    no match. Position 0 stays fixed while the others rotate one step per
    round (last element moves to position 1).

    Returns dict with:
    - 'type': the format name ('roundrobin' or 'league')
    - 'rounds': list of rounds, each a list of Match
    """
    field = list(players)
    if len(field) % 2 == 1:
        field.append(BYE)
    n = len(field)

    rounds = []
    for _ in range(n - 1):
        round_matches = []
        for i in range(n // 2):
            a = field[i]
            b = field[n - 1 - i]
            if a.id and b.id:
                round_matches.append(Match(id=uid('m'), players=[a, b], score=[0, 0]))
        rounds.append(round_matches)
        field.insert(1, field.pop())

    return {'type': format, 'rounds': rounds}


def generate_league(players: List[Player], uid: Callable[[str], str] = default_uid) -> Dict:
    """A league is a round robin; only the points interpretation differs."""
    return generate_round_robin(players, uid=uid, format='league')
