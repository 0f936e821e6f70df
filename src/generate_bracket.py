import argparse
import sys

import yaml

from tourney.double_elimination import generate_double_elimination
from tourney.elimination import generate_single_elimination, get_bracket_display
from tourney.lifecycle import parse_players
from tourney.models import FORMATS
from tourney.round_robin import generate_league, generate_round_robin


def load_players(file_path):
    """Read player names from a YAML list, or a mapping with a 'players' list."""
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file)
    if isinstance(data, dict):
        data = data.get('players', [])
    if not isinstance(data, list):
        return []
    return parse_players('\n'.join(str(name) for name in data if name is not None))


def build_structure(players, format):
    if format == 'single':
        return generate_single_elimination(players)
    if format == 'double':
        return generate_double_elimination(players)
    if format == 'league':
        return generate_league(players)
    return generate_round_robin(players)


def format_match(match):
    if match.is_placeholder:
        return "TBD vs TBD"
    if match.is_bye:
        return f"{match.players[0].name} (bye)"
    return f"{match.players[0].name} vs {match.players[1].name}"


def format_rounds(rounds):
    lines = []
    for idx, rnd in enumerate(rounds):
        if idx > 0:
            lines.append("")  # Blank line between rounds
        lines.append(f"# Round {idx + 1}")
        for match in rnd:
            lines.append(format_match(match))
    return lines


def format_structure(structure):
    if structure['type'] == 'double':
        lines = ["# Winners"] + format_rounds(structure['winners'])
        lines += ["", "# Losers"] + format_rounds(structure['losers'])
        return lines
    return format_rounds(structure['rounds'])


def main(argv=None):
    parser = argparse.ArgumentParser(description='Generate a tournament bracket or schedule.')
    parser.add_argument('players_file', help='YAML file with a list of player names')
    parser.add_argument('--format', choices=FORMATS, default='single')
    args = parser.parse_args(argv)

    players = load_players(args.players_file)
    if len(players) < 2:
        print(f"Warning: {args.players_file} has fewer than 2 players ({len(players)} found). "
              "Nothing to schedule.", file=sys.stderr)
        return 1

    structure = build_structure(players, args.format)
    for line in format_structure(structure):
        print(line)

    if args.format == 'single':
        stats = get_bracket_display(structure['rounds'])
        print()
        print(f"# {stats['total_players']} players, {stats['total_rounds']} rounds, {stats['byes']} byes")
    return 0


if __name__ == '__main__':
    sys.exit(main())
