"""Tests for the flat tabular Q-learning agent."""

import unittest

from sokoban_rl.agents.tabular import (
    AgentConfig, QLearningAgent, TrainingProgress, compute_reward,
)
from sokoban_rl.grid import Action, apply_action, check_win, parse, serialize


SIMPLE_ROOM = "#######\n#     #\n# $.@ #\n#     #\n#######"
OPEN_ROOM = "#####\n#   #\n# @ #\n#   #\n#####"
CORRIDOR = "#####\n#@  #\n#####"


def greedy_config(**kwargs) -> AgentConfig:
    return AgentConfig(epsilon_start=0.0, epsilon_end=0.0, **kwargs)


class TestAgentConfig(unittest.TestCase):
    """Test hyperparameter validation."""

    def test_defaults(self):
        config = AgentConfig()
        self.assertEqual(config.learning_rate, 0.1)
        self.assertEqual(config.discount_factor, 0.95)
        self.assertEqual(config.max_steps, 500)

    def test_rejects_bad_values(self):
        with self.assertRaises(ValueError):
            AgentConfig(learning_rate=0.0)
        with self.assertRaises(ValueError):
            AgentConfig(discount_factor=1.5)
        with self.assertRaises(ValueError):
            AgentConfig(epsilon_start=0.1, epsilon_end=0.5)
        with self.assertRaises(ValueError):
            AgentConfig(max_steps=0)


class TestReward(unittest.TestCase):
    """Test reward shaping."""

    def test_plain_step(self):
        state = parse(CORRIDOR)
        nxt = apply_action(state, Action.RIGHT)
        self.assertAlmostEqual(compute_reward(state, nxt, False), -0.01)

    def test_winning_step(self):
        state = parse("#####\n#@$.#\n#####")
        nxt = apply_action(state, Action.RIGHT)
        self.assertTrue(check_win(nxt))
        self.assertAlmostEqual(compute_reward(state, nxt, True), 9.99)

    def test_box_onto_target_without_win(self):
        state = parse("########\n#@$. $.#\n########")
        nxt = apply_action(state, Action.RIGHT)
        self.assertFalse(check_win(nxt))
        self.assertAlmostEqual(compute_reward(state, nxt, False), 0.99)

    def test_box_off_target(self):
        state = parse("######\n#@*  #\n######")
        nxt = apply_action(state, Action.RIGHT)
        self.assertAlmostEqual(compute_reward(state, nxt, False), -1.01)

    def test_penalty_keyed_on_pre_move_cell(self):
        old = parse("#####\n#@$ #\n#####")
        new = parse("#####\n# @$#\n#####")
        self.assertAlmostEqual(compute_reward(old, new, False), -0.01)
        old.player = (2, 1)
        self.assertAlmostEqual(compute_reward(old, new, False), -0.03)


class TestPolicy(unittest.TestCase):
    """Test greedy and epsilon-greedy selection."""

    def test_ties_go_to_first_action(self):
        agent = QLearningAgent(greedy_config())
        self.assertEqual(agent.best_action(parse(OPEN_ROOM)), Action.UP)
        self.assertEqual(agent.best_action(parse(CORRIDOR)), Action.RIGHT)

    def test_best_action_uses_table(self):
        agent = QLearningAgent(greedy_config())
        state = parse(OPEN_ROOM)
        agent.q_table[(serialize(state), int(Action.LEFT))] = 1.0
        agent.q_table[(serialize(state), int(Action.DOWN))] = 0.5
        self.assertEqual(agent.best_action(state), Action.LEFT)
        self.assertEqual(agent.select_action(state), Action.LEFT)

    def test_trapped_state_has_no_action(self):
        agent = QLearningAgent(AgentConfig(seed=0))
        state = parse("###\n#@#\n###")
        self.assertIsNone(agent.best_action(state))
        self.assertIsNone(agent.select_action(state))
        self.assertEqual(agent.max_q(state), 0.0)

    def test_full_exploration_picks_valid_actions(self):
        agent = QLearningAgent(AgentConfig(seed=3))
        state = parse(CORRIDOR)
        for _ in range(20):
            self.assertEqual(agent.select_action(state), Action.RIGHT)

    def test_seeded_exploration_is_reproducible(self):
        state = parse(OPEN_ROOM)
        a = QLearningAgent(AgentConfig(seed=7))
        b = QLearningAgent(AgentConfig(seed=7))
        self.assertEqual([a.select_action(state) for _ in range(30)],
                         [b.select_action(state) for _ in range(30)])


class TestUpdate(unittest.TestCase):
    """Test the one-step Q-learning rule."""

    def test_update_from_empty_table(self):
        agent = QLearningAgent(greedy_config())
        state = parse(CORRIDOR)
        nxt = apply_action(state, Action.RIGHT)
        new_q = agent.update(state, Action.RIGHT, nxt, 1.0)
        self.assertAlmostEqual(new_q, 0.1)
        self.assertAlmostEqual(agent.q_value(state, Action.RIGHT), 0.1)
        self.assertEqual(agent.num_entries, 1)

    def test_update_bootstraps_from_next_state(self):
        agent = QLearningAgent(greedy_config())
        state = parse(CORRIDOR)
        nxt = apply_action(state, Action.RIGHT)
        agent.q_table[(serialize(nxt), int(Action.RIGHT))] = 2.0
        agent.update(state, Action.RIGHT, nxt, 0.5)
        # 0.1 * (0.5 + 0.95 * 2.0)
        self.assertAlmostEqual(agent.q_value(state, Action.RIGHT), 0.24)

    def test_unseen_entries_not_materialized(self):
        agent = QLearningAgent()
        agent.q_value(parse(OPEN_ROOM), Action.UP)
        self.assertEqual(agent.num_entries, 0)


class TestTraining(unittest.TestCase):
    """Test episodes, epsilon decay and training loops."""

    def test_epsilon_decays_to_floor(self):
        agent = QLearningAgent(AgentConfig(
            epsilon_start=1.0, epsilon_end=0.1, epsilon_decay=0.5, seed=0,
        ))
        level = parse("#####\n#@$.#\n#####")
        agent.train_episode(level)
        self.assertAlmostEqual(agent.epsilon, 0.5)
        for _ in range(4):
            agent.train_episode(level)
        self.assertAlmostEqual(agent.epsilon, 0.1)
        self.assertEqual(agent.episodes, 5)

    def test_single_push_episode(self):
        agent = QLearningAgent(AgentConfig(seed=0))
        result = agent.train_episode(parse("#####\n#@$.#\n#####"))
        self.assertTrue(result.won)
        self.assertEqual(result.steps, 1)
        self.assertAlmostEqual(result.total_reward, 9.99)

    def test_already_won_start(self):
        agent = QLearningAgent(AgentConfig(seed=0))
        result = agent.train_episode(parse("####\n#@*#\n####"))
        self.assertTrue(result.won)
        self.assertEqual(result.steps, 0)

    def test_trapped_start_is_a_loss(self):
        agent = QLearningAgent(AgentConfig(seed=0))
        result = agent.train_episode(parse("#####\n#@#$.\n#####"))
        self.assertFalse(result.won)
        self.assertEqual(result.steps, 0)

    def test_step_cap(self):
        agent = QLearningAgent(AgentConfig(max_steps=10, seed=0))
        result = agent.train_episode(parse("#####\n#@ .#\n#####"))
        self.assertFalse(result.won)
        self.assertEqual(result.steps, 10)

    def test_train_reports_progress(self):
        agent = QLearningAgent(AgentConfig(report_every=10, seed=0))
        reports = []
        avg_reward, win_rate = agent.train(
            parse("#####\n#@$.#\n#####"), 30, callback=reports.append,
        )
        self.assertEqual([p.episode for p in reports], [10, 20, 30])
        self.assertIsInstance(reports[0], TrainingProgress)
        self.assertEqual(win_rate, 1.0)
        self.assertAlmostEqual(avg_reward, 9.99)

    def test_train_rejects_zero_episodes(self):
        with self.assertRaises(ValueError):
            QLearningAgent().train(parse(CORRIDOR), 0)

    def test_converges_on_simple_room(self):
        """After 2000 episodes the last 100 should be won > 90% of the time."""
        agent = QLearningAgent(AgentConfig(seed=0))
        level = parse(SIMPLE_ROOM)
        agent.train(level, 1900)
        _, win_rate = agent.train(level, 100)
        self.assertGreater(win_rate, 0.9)


class TestEvaluation(unittest.TestCase):
    """Test greedy rollouts."""

    def test_play_episode_records_history(self):
        agent = QLearningAgent(AgentConfig(seed=0))
        level = parse("#####\n#@$.#\n#####")
        result = agent.play_episode(level)
        self.assertTrue(result.won)
        self.assertEqual(result.steps, 1)
        self.assertEqual(len(result.history), 2)
        self.assertIs(result.history[0], level)

    def test_evaluate_does_not_learn(self):
        agent = QLearningAgent(AgentConfig(seed=0))
        level = parse(SIMPLE_ROOM)
        epsilon = agent.epsilon
        win_rate, avg_steps = agent.evaluate(level, 3)
        self.assertEqual(agent.num_entries, 0)
        self.assertEqual(agent.epsilon, epsilon)
        self.assertEqual(win_rate, 0.0)
        self.assertEqual(avg_steps, agent.config.max_steps)


if __name__ == "__main__":
    unittest.main()
