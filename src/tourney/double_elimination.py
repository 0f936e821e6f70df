"""
Double elimination bracket generation (simplified).

The winners bracket is a regular single elimination bracket. The losers
bracket copies its round shape with fresh match ids; losers of the winners
bracket are not fed into it. This is a placeholder structure, not a full
double elimination draw.
"""
import random
from typing import Callable, Dict, List, Optional

from .elimination import generate_single_elimination
from .ids import uid as default_uid
from .models import Match, Player


def clone_losers_bracket(winners: List[List[Match]], uid: Callable[[str], str] = default_uid) -> List[List[Match]]:
    """Copy every winners round with new 'l_' match ids."""
    losers = []
    for rnd in winners:
        cloned_round = []
        for match in rnd:
            cloned = match.copy()
            cloned.id = uid('l')
            cloned_round.append(cloned)
        losers.append(cloned_round)
    return losers


def generate_double_elimination(players: List[Player], uid: Callable[[str], str] = default_uid,
                                rng: Optional[random.Random] = None) -> Dict:
    """
    Generate the simplified double elimination structure.

    Returns dict with:
    - 'type': 'double'
    - 'winners': winners bracket rounds
    - 'losers': losers bracket rounds, same shape as winners
    """
    single = generate_single_elimination(players, uid=uid, rng=rng)
    winners = single['rounds']
    return {
        'type': 'double',
        'winners': winners,
        'losers': clone_losers_bracket(winners, uid=uid),
    }
