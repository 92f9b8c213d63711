# scorejudge/cli.py
from __future__ import annotations

import argparse
import asyncio
import logging
import random
from typing import List, Optional

from .config import EngineConfig, load_config
from .agents import RandomTableAgent
from .audit_log import ActionAuditLog
from .charts import plot_score_progression
from .errors import ScoreJudgeError
from .game_log import CsvScoreSink
from .leaderboard import build_leaderboard, load_score_history
from .outbox import Outbox, OutboxWorker
from .paths import ensure_results_dir, resolve_results_path
from .plan import MIN_PLAYERS, max_cards_per_player
from .service import GameService
from .simulate import TableSimulator
from .store import InMemoryGameStore


def parse_args(
    argv: List[str] | None = None, config: Optional[EngineConfig] = None
) -> argparse.Namespace:
    config = config or EngineConfig()
    parser = argparse.ArgumentParser(
        description="Score Judgement / Oh Hell games and analyse the results."
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=config.log_level,
        help="Logging level (DEBUG, INFO, WARNING, ...). Default: %(default)s.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sim = sub.add_parser(
        "simulate",
        help="Play random games through the scoring engine and log scores.",
    )
    sim.add_argument(
        "--players",
        type=int,
        default=4,
        help="Players per game (default: 4).",
    )
    sim.add_argument(
        "--games",
        type=int,
        default=1,
        help="Number of full games to play (default: 1).",
    )
    sim.add_argument(
        "--deck-size",
        type=int,
        default=config.deck_size,
        help="Cards in the deck (default: %(default)s).",
    )
    sim.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Base random seed for trick deals and agents.",
    )
    sim.add_argument(
        "--csv",
        type=str,
        default="scorejudge_scores.csv",
        help="Score history CSV, relative to the results dir "
        "(default: %(default)s).",
    )
    sim.add_argument(
        "--audit-log",
        type=str,
        default=None,
        help="Optional path for a committed-action audit trail.",
    )
    sim.add_argument(
        "--parallel-games",
        type=int,
        default=1,
        help="Max number of games to play concurrently (default: 1).",
    )

    board = sub.add_parser(
        "leaderboard", help="Aggregate wins and points from a score CSV."
    )
    board.add_argument("--csv", type=str, required=True)

    chart = sub.add_parser(
        "chart", help="Plot running totals for one game from a score CSV."
    )
    chart.add_argument("--csv", type=str, required=True)
    chart.add_argument("--game-id", type=str, default=None)
    chart.add_argument("--out", type=str, default="score_progression.png")

    return parser.parse_args(argv)


def _check_table(args: argparse.Namespace, config: EngineConfig) -> None:
    if args.players < MIN_PLAYERS or args.players > config.max_players:
        raise SystemExit(
            f"A table needs between {MIN_PLAYERS} and {config.max_players} "
            f"players; got {args.players}."
        )
    # Raises InvalidConfiguration when the deck cannot be dealt.
    max_cards_per_player(args.players, args.deck_size)


async def _simulate(args: argparse.Namespace, config: EngineConfig) -> None:
    ensure_results_dir()
    csv_path = resolve_results_path(args.csv)

    outbox = Outbox()
    worker = OutboxWorker(outbox, [CsvScoreSink(csv_path)])
    audit_log = None
    if args.audit_log:
        audit_log = ActionAuditLog(resolve_results_path(args.audit_log))
        worker.add_sink(audit_log)

    service = GameService(InMemoryGameStore(), config=config, outbox=outbox)
    if audit_log is not None:
        service.on_rejection(audit_log.log_rejection)

    def _play(game_index: int) -> None:
        game_id = f"game-{game_index}"
        agents = [
            RandomTableAgent(rng=random.Random(args.seed + game_index * 1000 + i))
            for i in range(args.players)
        ]
        simulator = TableSimulator(service, agents, rng_seed=args.seed + game_index)
        game = simulator.play_game(game_id, deck_size=args.deck_size)
        standings = sorted(game.players, key=lambda p: p.score, reverse=True)
        logging.info(
            "%s final standings: %s",
            game_id,
            ", ".join(f"{p.name}={p.score}" for p in standings),
        )

    stop = asyncio.Event()
    drain_task = asyncio.create_task(worker.run(stop))

    parallel = max(1, min(args.parallel_games, args.games))
    logging.info("Running up to %d game(s) concurrently", parallel)
    for batch_start in range(0, args.games, parallel):
        batch = range(batch_start, min(batch_start + parallel, args.games))
        results = await asyncio.gather(
            *(asyncio.to_thread(_play, i) for i in batch),
            return_exceptions=True,
        )
        for game_index, result in zip(batch, results):
            if isinstance(result, Exception):
                logging.error("Game %d failed: %s", game_index, result)

    stop.set()
    await drain_task
    if audit_log is not None:
        audit_log.flush()
    logging.info(
        "Finished %d games; delivered %d events (%d dropped) to %s",
        args.games,
        worker.delivered,
        worker.dropped,
        csv_path,
    )


def _leaderboard(args: argparse.Namespace) -> None:
    board = build_leaderboard(load_score_history(resolve_results_path(args.csv)))
    if board.empty:
        print("No scored games found.")
        return
    print(board.to_string(index=False))


def _chart(args: argparse.Namespace) -> None:
    history = load_score_history(resolve_results_path(args.csv))
    out = plot_score_progression(
        history, resolve_results_path(args.out), game_id=args.game_id
    )
    print(f"Wrote {out}")


def main(argv: List[str] | None = None) -> None:
    config = load_config()
    args = parse_args(argv, config)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        if args.command == "simulate":
            _check_table(args, config)
            asyncio.run(_simulate(args, config))
        elif args.command == "leaderboard":
            _leaderboard(args)
        elif args.command == "chart":
            _chart(args)
    except ScoreJudgeError as exc:
        raise SystemExit(str(exc)) from exc


if __name__ == "__main__":
    main()

'''
python3 -m scorejudge.cli simulate \
  --players 4 \
  --games 20 \
  --parallel-games 4 \
  --csv scores_20_games.csv \
  --audit-log scores_20_games_audit.log \
  --seed 1

python3 -m scorejudge.cli leaderboard --csv scores_20_games.csv
python3 -m scorejudge.cli chart --csv scores_20_games.csv --game-id game-0
'''
