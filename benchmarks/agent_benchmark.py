"""
Benchmark suite for Sokoban RL.

Trains the flat and backoff agents side by side on levels of increasing
difficulty, then evaluates each greedily on the training level and on a
held-out level of the next size up, measuring:
- Training win rate over the final block of episodes
- Greedy win rate and path length on the training level
- Transfer to an unseen, larger level
- Table size and wall-clock time
"""

import time
from dataclasses import dataclass

from sokoban_rl.agents import AgentConfig, BackoffAgent, BackoffConfig, QLearningAgent
from sokoban_rl.curriculum.generator import Corridor, Difficulty, LevelGenerator, MultiBox, Room


@dataclass
class BenchmarkProblem:
    """Train on one difficulty, test transfer on another."""
    name: str
    train: Difficulty
    held_out: Difficulty
    episodes: int = 500
    difficulty: str = "easy"  # easy, medium, hard


# ---------------------------------------------------------------------------
# Benchmark problems — ordered by difficulty
# ---------------------------------------------------------------------------

BENCHMARKS = [
    BenchmarkProblem("corridor_short", Corridor(3), Corridor(4),
                     episodes=200, difficulty="easy"),
    BenchmarkProblem("corridor_long", Corridor(5), Corridor(7),
                     episodes=300, difficulty="easy"),
    BenchmarkProblem("room_small", Room(5, 5), Room(6, 5),
                     episodes=800, difficulty="medium"),
    BenchmarkProblem("room_large", Room(7, 6), Room(7, 7),
                     episodes=1500, difficulty="medium"),
    BenchmarkProblem("two_boxes", MultiBox(2), MultiBox(2),
                     episodes=2000, difficulty="hard"),
]

AGENTS = {
    "flat": lambda seed: QLearningAgent(AgentConfig(seed=seed)),
    "backoff": lambda seed: BackoffAgent(BackoffConfig(seed=seed)),
}


def run_benchmark(problem: BenchmarkProblem, agent_name: str,
                  seed: int = 42, eval_episodes: int = 10) -> dict:
    """Run a single benchmark problem with one agent."""
    generator = LevelGenerator(seed=seed)
    level = generator.generate(problem.train)
    held_out = generator.generate(problem.held_out)
    agent = AGENTS[agent_name](seed)

    t0 = time.time()
    avg_reward, win_rate = agent.train(level, problem.episodes)
    elapsed = time.time() - t0

    eval_win, eval_steps = agent.evaluate(level, eval_episodes)
    transfer_win, _ = agent.evaluate(held_out, eval_episodes)

    return {
        "name": problem.name,
        "agent": agent_name,
        "difficulty": problem.difficulty,
        "train_win_rate": win_rate,
        "avg_reward": avg_reward,
        "eval_win_rate": eval_win,
        "eval_steps": eval_steps,
        "transfer_win_rate": transfer_win,
        "entries": agent.num_entries,
        "time_sec": elapsed,
    }


def run_all_benchmarks(seed: int = 42, verbose: bool = True):
    """Run every problem with both agents and print a summary table."""
    print("=" * 90)
    print("  Sokoban RL — Agent Benchmark")
    print("=" * 90)
    print()

    results = []
    for problem in BENCHMARKS:
        if verbose:
            print(f"  [{problem.difficulty:6s}] {problem.name:15s} "
                  f"{problem.train} → {problem.held_out}")
        for agent_name in AGENTS:
            r = run_benchmark(problem, agent_name, seed=seed)
            results.append(r)
            if verbose:
                status = "✓" if r["eval_win_rate"] == 1.0 else "✗"
                print(f"           {status} {agent_name:8s} "
                      f"train={r['train_win_rate']:6.1%}  "
                      f"eval={r['eval_win_rate']:6.1%}  "
                      f"steps={r['eval_steps']:6.1f}  "
                      f"transfer={r['transfer_win_rate']:6.1%}  "
                      f"entries={r['entries']:6d}  "
                      f"time={r['time_sec']:.1f}s")
        if verbose:
            print()

    # Summary
    print("=" * 90)
    for agent_name in AGENTS:
        mine = [r for r in results if r["agent"] == agent_name]
        solved = sum(1 for r in mine if r["eval_win_rate"] == 1.0)
        transferred = sum(1 for r in mine if r["transfer_win_rate"] > 0.0)
        print(f"  {agent_name:8s}: solved {solved}/{len(mine)}  "
              f"transferred {transferred}/{len(mine)}")
    print("=" * 90)

    return results


if __name__ == "__main__":
    run_all_benchmarks()
