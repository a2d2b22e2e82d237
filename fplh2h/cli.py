#!/usr/bin/env python3
"""
Command line entry point for the scoring and luck engine.

Usage:
    fplh2h score --round 12 --entry 1234 --live live.json --picks picks.json \\
        --fixtures fixtures.json --bootstrap bootstrap.json --verify
    fplh2h luck --history league_history.json --output luck.json
"""

import argparse
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from .adapters import (
    chips_from_history,
    entry_ids_from_history,
    manager_round_from_picks,
    matches_from_history,
    positions_from_bootstrap,
    round_data_from_payloads,
    round_scores_from_history,
    round_scores_from_matches,
)
from .constants import RoundStatus
from .exceptions import EngineError, ScoreMismatchError
from .logging_config import get_logger, setup_logging
from .luck import decompose_league, format_luck, format_season_luck
from .reconciler import score_team_round
from .schemas import Bootstrap, FixturesResponse, LeagueHistoryFile, LiveEvent, PicksResponse
from .team_score import verify_official_total
from .utils import load_json, save_json
from .validators import check_team_score_invariants, validate_squad_picks

logger = get_logger('fplh2h.cli')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='FPL head-to-head scoring and luck engine')
    parser.add_argument('--debug', action='store_true', help='Log per-player bonus and substitution decisions')
    parser.add_argument('--log-dir', default=None, help='Write a log file to this directory')
    subparsers = parser.add_subparsers(dest='command', required=True)

    score = subparsers.add_parser('score', help="Score one manager's round from JSON dumps")
    score.add_argument('--round', '-r', type=int, required=True, help='Gameweek to score')
    score.add_argument('--entry', '-e', type=int, required=True, help='Manager entry id')
    score.add_argument('--live', required=True, help='event/{gw}/live/ payload')
    score.add_argument('--picks', required=True, help='entry/{id}/event/{gw}/picks/ payload')
    score.add_argument('--fixtures', required=True, help='fixtures/?event={gw} payload')
    score.add_argument('--bootstrap', required=True, help='bootstrap-static/ payload')
    score.add_argument(
        '--status',
        choices=['auto'] + [s.value for s in RoundStatus],
        default='auto',
        help='Round status (default: determined from fixtures)',
    )
    score.add_argument('--verify', action='store_true', help='Compare with the official round points')
    score.add_argument('--output', '-o', default=None, help='Write the score breakdown as JSON')

    luck = subparsers.add_parser('luck', help='Decompose luck for a league')
    luck.add_argument('--history', required=True, help='League history JSON (matches, round scores, chips)')
    luck.add_argument('--output', '-o', default=None, help='Write the decomposition as JSON')
    luck.add_argument(
        '--lenient',
        action='store_true',
        help='Report zero-sum violations instead of failing',
    )

    return parser


def run_score(args: argparse.Namespace) -> int:
    live = load_json(args.live, schema=LiveEvent)
    picks = load_json(args.picks, schema=PicksResponse)
    fixtures = load_json(args.fixtures, schema=FixturesResponse)
    bootstrap = load_json(args.bootstrap, schema=Bootstrap)

    round_data = round_data_from_payloads(args.round, live, fixtures, bootstrap)
    if args.status != 'auto':
        round_data.status = RoundStatus(args.status)

    manager = manager_round_from_picks(args.entry, args.round, picks, positions_from_bootstrap(bootstrap))
    for message in validate_squad_picks(manager.picks):
        logger.warning(message)

    score = score_team_round(manager, round_data)

    print(f'Entry {score.entry_id} GW{score.round} ({score.round_status.value})')
    print(f'  Starting XI:   {score.starting_xi_total}')
    print(f'  Captain bonus: {score.captain_bonus} (player {score.captain_id}, x{score.captain_multiplier})')
    print(f'  Bench boost:   {score.bench_boost_total}')
    print(f'  Auto-subs:     {score.auto_sub_total:+d}')
    for sub in score.auto_subs:
        print(f'    {sub.player_out} -> {sub.player_in} ({sub.points_gained:+d})')
    print(f'  Transfer cost: -{score.transfer_cost}')
    print(f'  Net total:     {score.net_total}')
    if score.missing_players:
        print(f'  Missing data:  {score.missing_players}')

    errors = check_team_score_invariants(score)
    for message in errors:
        logger.error(message)

    if args.output:
        save_json(args.output, asdict(score))
        print(f'Score written: {args.output}')

    if args.verify:
        if score.round_status != RoundStatus.COMPLETED:
            logger.warning(f'GW{score.round} is {score.round_status.value}; official total may still change')
        if manager.official_points is None:
            logger.error('Picks payload has no official round points to verify against')
            return 1
        try:
            verify_official_total(score, manager.official_points, gross=True)
        except ScoreMismatchError:
            return 1
        print(f'Verified against official total ({manager.official_points} before transfer cost)')

    return 1 if errors else 0


def run_luck(args: argparse.Namespace) -> int:
    history = load_json(args.history, schema=LeagueHistoryFile)

    matches = matches_from_history(history)
    round_scores = round_scores_from_history(history) or round_scores_from_matches(matches)

    league = decompose_league(
        entry_ids_from_history(history),
        matches,
        round_scores,
        chips_from_history(history),
        strict=not args.lenient,
    )

    print('\n' + '=' * 60)
    print('SEASON LUCK')
    print('=' * 60)
    for rank, components in enumerate(league.ranked(), 1):
        display = format_season_luck(components)
        print(
            f'  {rank:2}. {components.entry_id}: {format_luck(display["total"])} '
            f'(var {format_luck(display["variance"])}, rank {format_luck(display["rank"])}, '
            f'sched {format_luck(display["schedule"])}, chip {format_luck(display["chip"])})'
        )

    for message in league.violations:
        print(f'  Zero-sum violation: {message}')

    if args.output:
        save_json(args.output, asdict(league))
        print(f'Luck written: {args.output}')

    return 1 if league.violations else 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        log_dir=Path(args.log_dir) if args.log_dir else None,
        level=logging.DEBUG if args.debug else logging.INFO,
        log_to_file=args.log_dir is not None,
        engine_debug=args.debug,
    )

    try:
        if args.command == 'score':
            return run_score(args)
        return run_luck(args)
    except (FileNotFoundError, ValueError) as e:
        print(f'Invalid input: {e}')
        return 2
    except EngineError as e:
        print(f'Engine error: {e}')
        return 1


if __name__ == '__main__':
    sys.exit(main())
