from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Dict, List, Optional

from block_blast.game import AIPlayer, GameConfig, GameSession, Phase, format_board


logger = logging.getLogger(__name__)


async def play_game(seed: Optional[int] = None, delay: float = 0.0, max_moves: int = 10000) -> Dict[str, float]:
    """Play one game with the heuristic AI and return the session stats."""
    session = GameSession(GameConfig(random_seed=seed, ai_delay=delay))
    player = AIPlayer(session).attach()
    session.start()
    session.set_ai_enabled(True)
    while player.running and player.moves_made < max_moves:
        await asyncio.sleep(0)
    if player.running:
        session.set_ai_enabled(False)
        await player.wait()
    stats = session.get_game_stats()
    stats["game_over"] = session.phase == Phase.GAME_OVER
    logger.debug("final board:\n%s", format_board(session.board.grid))
    return stats


def _print_progress(ep_idx: int, total: int, score: int, pieces: int) -> None:
    width = 30
    filled = int(width * (ep_idx + 1) / max(1, total))
    bar = "=" * filled + "." * (width - filled)
    msg = f"\r[{bar}] {ep_idx + 1}/{total}  score={score}  pieces={pieces}"
    print(msg, end="", file=sys.stdout, flush=True)


def run(games: int, seed: int, delay: float, max_moves: int, progress: bool = True) -> List[Dict[str, float]]:
    results: List[Dict[str, float]] = []
    for ep in range(games):
        stats = asyncio.run(play_game(seed + ep, delay, max_moves))
        results.append(stats)
        if progress:
            _print_progress(ep, games, int(stats["final_score"]), int(stats["pieces_placed"]))
        else:
            logger.info("game %d/%d score=%d pieces=%d", ep + 1, games, stats["final_score"], stats["pieces_placed"])
    if progress:
        print()
    return results


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Run headless games with the heuristic AI.")
    p.add_argument("--games", type=int, default=10)
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--delay", type=float, default=0.0, help="AI pacing delay in seconds")
    p.add_argument("--max-moves", type=int, default=10000)
    p.add_argument("--no-progress", action="store_true")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def main() -> None:
    args = build_parser().parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    results = run(args.games, args.seed, args.delay, args.max_moves, progress=not args.no_progress)
    scores = [r["final_score"] for r in results]
    lines = [r["lines_cleared"] for r in results]
    print(f"games={len(results)}  mean score={sum(scores) / max(1, len(scores)):.1f}  "
          f"best={max(scores, default=0)}  mean lines={sum(lines) / max(1, len(lines)):.1f}")


if __name__ == "__main__":  # pragma: no cover
    main()
