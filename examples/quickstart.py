"""
Quick start example for Sokoban RL.

Demonstrates the core workflow:
1. Parse a level from its text form
2. Train a flat Q-learning agent on it
3. Replay the greedy policy and inspect each board
"""

from sokoban_rl import AgentConfig, QLearningAgent, parse, serialize


LEVEL = """\
#######
#     #
# $.@ #
#     #
#######"""


def main():
    print("Sokoban RL — Quick Start")
    print("=" * 50)
    state = parse(LEVEL)
    print(serialize(state))
    print()

    agent = QLearningAgent(AgentConfig(seed=42, report_every=250))

    print("Training...")
    avg_reward, win_rate = agent.train(state, 1000, verbose=True)
    print()
    print(f"  Final block: avg_reward={avg_reward:.2f}  win_rate={win_rate:.1%}")
    print(f"  Q-table entries: {agent.num_entries}")

    # --- Replay the learned policy ---
    result = agent.play_episode(state)
    print(f"\n  Greedy rollout: {'won' if result.won else 'lost'} "
          f"in {result.steps} steps\n")
    for i, board in enumerate(result.history):
        print(f"Step {i}:")
        print(serialize(board))
        print()


if __name__ == "__main__":
    main()
