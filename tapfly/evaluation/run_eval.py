"""
Evaluation Harness
==================

Runs an autopilot agent against the fixed seed bank and summarizes scores,
coins and XP. Every seed is played as one session through FlightEnv and can
be saved as a verifiable replay.

Usage:
    python -m tapfly.evaluation.run_eval --agent agents/baseline_gap
    python -m tapfly.evaluation.run_eval --agent agents/baseline_gap --level 3 --replays replays/
"""

from __future__ import annotations

import argparse
import importlib.util
import json
import os
import sys
import time
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

import numpy as np

from tapfly.flight_core.config_loader import GameConfig, load_config
from tapfly.flight_core.env_gym import FlightEnv
from tapfly.flight_core.replay_recorder import (
    ReplayRecorder,
    compute_config_hash,
    generate_replay_filename,
)

DEFAULT_SEED_BANK = os.path.join(os.path.dirname(__file__), "seed_bank.json")

# Reported for sessions cut off by caps.max_ticks
TRUNCATED = "truncated"


@dataclass
class EvalResult:
    """Result for a single seed."""
    seed: int
    final_score: int
    coins: float
    xp: int
    ticks: int
    termination_reason: str
    elapsed_time: float
    actions: Optional[List[int]] = None


@dataclass
class EvalSummary:
    """Summary of evaluation across all seeds."""
    mean_score: float
    std_score: float
    min_score: int
    max_score: int
    median_score: float
    mean_ticks: float
    mean_coins: float
    mean_xp: float
    total_time: float
    player_level: int = 1
    endings: Dict[str, int] = field(default_factory=dict)
    results: List[EvalResult] = field(default_factory=list)


def load_seed_bank(path: Optional[str] = None) -> List[int]:
    """
    Read the seed list from a seed bank file.

    Raises:
        ValueError: If the file holds no seeds or a seed is not an integer.
    """
    with open(path or DEFAULT_SEED_BANK, "r") as f:
        seeds = json.load(f).get("seeds", [])

    if not seeds:
        raise ValueError(f"Seed bank {path or DEFAULT_SEED_BANK} contains no seeds")
    if not all(isinstance(s, int) and not isinstance(s, bool) for s in seeds):
        raise ValueError("Seed bank entries must be integers")
    return seeds


def load_agent(agent_path: str) -> Callable[[Dict], int]:
    """
    Import an agent and return its act function.

    The agent is an ``agent.py`` file, or a directory containing one. It may
    expose a ``create_agent()`` factory, a ``FlightAgent`` class, or a bare
    ``act(observation)`` function; they are tried in that order.

    Raises:
        FileNotFoundError: If no agent.py exists at the path.
        ImportError: If the file cannot be imported.
        AttributeError: If the module exposes none of the entry points.
    """
    path = Path(agent_path)
    agent_file = path / "agent.py" if path.is_dir() else path
    if not agent_file.exists():
        raise FileNotFoundError(f"Agent file not found: {agent_file}")

    # One module per agent directory, so two agents can be loaded side by side
    module_name = f"tapfly_agent_{agent_file.resolve().parent.name}"
    spec = importlib.util.spec_from_file_location(module_name, agent_file)
    if spec is None or spec.loader is None:
        raise ImportError(f"Failed to load agent module from {agent_file}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)

    if hasattr(module, "create_agent"):
        agent = module.create_agent()
    elif hasattr(module, "FlightAgent"):
        agent = module.FlightAgent()
    elif callable(getattr(module, "act", None)):
        return module.act
    else:
        raise AttributeError(
            f"{agent_file} must define create_agent(), a FlightAgent class or an act() function"
        )

    if not callable(getattr(agent, "act", None)):
        raise AttributeError(f"Agent from {agent_file} has no act(observation) method")
    return agent.act


def evaluate_single_seed(
    agent_fn: Callable,
    seed: int,
    config: Optional[GameConfig] = None,
    record_actions: bool = False,
    replay_dir: Optional[str] = None,
    verbose: bool = False,
    player_level: int = 1
) -> EvalResult:
    """
    Play one session on a single seed.

    Args:
        agent_fn: Agent's act function (obs) -> 0 or 1.
        seed: Obstacle seed.
        config: Game configuration. Loads default if None.
        record_actions: If True, keep all actions in the result.
        replay_dir: If set, save a replay file per seed into this directory.
        verbose: If True, print the session outcome.
        player_level: Level used for coin rewards.

    Returns:
        EvalResult for this seed.
    """
    env = FlightEnv(config=config if config is not None else load_config(), player_level=player_level)
    recorder = ReplayRecorder(env, agent_name="eval")

    obs, info = recorder.reset(seed=seed)
    start_time = time.time()

    terminated = truncated = False
    while not (terminated or truncated):
        obs, _, terminated, truncated, info = recorder.step(agent_fn(obs))

    elapsed = time.time() - start_time

    if replay_dir:
        recorder.save(generate_replay_filename("eval", seed=seed, directory=replay_dir))
    recorder.close()

    result = EvalResult(
        seed=seed,
        final_score=info["score"],
        coins=info["coins"],
        xp=info["xp"],
        ticks=info["ticks"],
        termination_reason=info["terminated_reason"] if terminated else TRUNCATED,
        elapsed_time=elapsed,
        actions=recorder.actions if record_actions else None
    )

    if verbose:
        print(f"  seed {seed:>5}: score={result.final_score:<4} coins={result.coins:<7.2f} "
              f"xp={result.xp:<5} ticks={result.ticks:<6} end={result.termination_reason}")

    return result


def summarize(results: List[EvalResult], total_time: float, player_level: int = 1) -> EvalSummary:
    """Aggregate per-seed results."""
    scores = np.array([r.final_score for r in results], dtype=np.int64)

    return EvalSummary(
        mean_score=float(scores.mean()),
        std_score=float(scores.std()),
        min_score=int(scores.min()),
        max_score=int(scores.max()),
        median_score=float(np.median(scores)),
        mean_ticks=float(np.mean([r.ticks for r in results])),
        mean_coins=float(np.mean([r.coins for r in results])),
        mean_xp=float(np.mean([r.xp for r in results])),
        total_time=total_time,
        player_level=player_level,
        endings=dict(Counter(r.termination_reason for r in results)),
        results=results
    )


def evaluate_agent(
    agent_fn: Callable,
    seeds: Optional[List[int]] = None,
    config: Optional[GameConfig] = None,
    record_actions: bool = False,
    replay_dir: Optional[str] = None,
    verbose: bool = True,
    player_level: int = 1
) -> EvalSummary:
    """
    Evaluate agent on all seeds in the seed bank.

    Args:
        agent_fn: Agent's act function (obs) -> 0 or 1.
        seeds: List of seeds. Uses seed_bank.json if None.
        config: Game configuration. Loads default if None.
        record_actions: If True, record actions in each result.
        replay_dir: If set, save replays into this directory.
        verbose: If True, print per-seed lines and a summary table.
        player_level: Level used for coin rewards in every session.

    Returns:
        EvalSummary with aggregate statistics.
    """
    seeds = seeds if seeds is not None else load_seed_bank()
    config = config if config is not None else load_config()

    if verbose:
        print(f"Evaluating on {len(seeds)} seeds at level {player_level}...")

    total_start = time.time()
    results = [
        evaluate_single_seed(
            agent_fn,
            seed,
            config=config,
            record_actions=record_actions,
            replay_dir=replay_dir,
            verbose=verbose,
            player_level=player_level
        )
        for seed in seeds
    ]
    summary = summarize(results, time.time() - total_start, player_level)

    if verbose:
        print_summary(summary)

    return summary


def print_summary(summary: EvalSummary) -> None:
    endings = ", ".join(f"{reason}={count}" for reason, count in sorted(summary.endings.items()))
    print()
    print("=" * 50)
    print("EVALUATION SUMMARY")
    print("=" * 50)
    print(f"Seeds evaluated: {len(summary.results)}")
    print(f"Score:           {summary.mean_score:.2f} +/- {summary.std_score:.2f} "
          f"(min {summary.min_score}, median {summary.median_score:.1f}, max {summary.max_score})")
    print(f"Coins / session: {summary.mean_coins:.2f} (level {summary.player_level})")
    print(f"XP / session:    {summary.mean_xp:.1f}")
    print(f"Mean ticks:      {summary.mean_ticks:.1f}")
    print(f"Endings:         {endings}")
    print(f"Total time:      {summary.total_time:.2f}s")
    print("=" * 50)


def save_results(
    summary: EvalSummary,
    agent_name: str,
    output_path: str,
    config: Optional[GameConfig] = None
) -> None:
    """Write the summary and per-seed results to JSON, tagged with the config hash."""
    data = {
        "agent": agent_name,
        "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
        "config_hash": compute_config_hash(config),
        "player_level": summary.player_level,
        "score": {
            "mean": summary.mean_score,
            "std": summary.std_score,
            "min": summary.min_score,
            "max": summary.max_score,
            "median": summary.median_score,
        },
        "mean_coins": summary.mean_coins,
        "mean_xp": summary.mean_xp,
        "mean_ticks": summary.mean_ticks,
        "endings": summary.endings,
        "total_time": summary.total_time,
        "results": [
            {
                "seed": r.seed,
                "score": r.final_score,
                "coins": r.coins,
                "xp": r.xp,
                "ticks": r.ticks,
                "end": r.termination_reason,
            }
            for r in summary.results
        ]
    }

    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(data, f, indent=2)

    print(f"Results saved to {output_path}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Evaluate a tap-to-fly autopilot on the seed bank")
    parser.add_argument("--agent", required=True, help="Agent directory or agent.py file")
    parser.add_argument("--seeds", default=None, help="Seed bank JSON (default: bundled bank)")
    parser.add_argument("--config", default=None, help="game_config.yaml to play with")
    parser.add_argument("--level", type=int, default=1, help="Player level for coin rewards")
    parser.add_argument("--output", default=None, help="Write results JSON here")
    parser.add_argument("--replays", default=None, help="Directory for one replay per seed")
    parser.add_argument("--quiet", action="store_true", help="Only print the summary")
    args = parser.parse_args()

    try:
        agent_fn = load_agent(args.agent)
        seeds = load_seed_bank(args.seeds)
        config = load_config(args.config)
    except (FileNotFoundError, ImportError, AttributeError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    summary = evaluate_agent(
        agent_fn,
        seeds=seeds,
        config=config,
        replay_dir=args.replays,
        verbose=not args.quiet,
        player_level=args.level
    )
    if args.quiet:
        print_summary(summary)

    if args.output:
        save_results(summary, Path(args.agent).name, args.output, config)

    return 0


if __name__ == "__main__":
    sys.exit(main())
