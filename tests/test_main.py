"""
Tests for the command line entry point.

These tests verify:
    - Argument parsing and mode exclusivity
    - Config overrides
    - Building learners from the config or a saved network
    - Replaying a saved network
"""

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config
from deep2048.ai import (
    ApproximateQLearner, DeepQLearner, LeakyReLU, NeuralNet, NoActivation, ReLUWithSlopes, save_network,
)
from main import apply_overrides, build_approximate_learner, build_deep_learner, make_agent, main, parse_args


@pytest.fixture
def saved_net(tmp_path):
    """Small network that fits the 4x4 agent, saved to disk."""
    net = NeuralNet(256, 4, 4, 1, ReLUWithSlopes(0.1, 0.001),
                    output_activator=NoActivation(), rng=np.random.default_rng(0))
    path = str(tmp_path / 'net.txt')
    save_network(net, path)
    return path


class TestParseArgs:
    """Test argument parsing."""

    def test_defaults(self):
        """No arguments means deep Q-learning with config values."""
        args = parse_args([])
        assert not (args.human or args.gui or args.approx)
        assert args.play is None
        assert args.episodes is None

    def test_modes_are_exclusive(self):
        with pytest.raises(SystemExit):
            parse_args(['--human', '--approx'])

    def test_log_level_choices(self):
        assert parse_args(['--log-level', 'DEBUG']).log_level == 'DEBUG'
        with pytest.raises(SystemExit):
            parse_args(['--log-level', 'LOUD'])


class TestOverrides:
    """Test apply_overrides."""

    def test_training_options(self):
        args = parse_args(['--episodes', '7', '--hidden-nodes', '8', '--hidden-layers', '1',
                           '--lr', '0.05', '--epsilon', '0.3', '--target-update', '20', '--seed', '4'])
        cfg = apply_overrides(Config(), args)
        assert cfg.MAX_EPISODES == 7
        assert (cfg.HIDDEN_NODES, cfg.HIDDEN_LAYERS) == (8, 1)
        assert cfg.LEARNING_RATE == 0.05
        assert cfg.EPSILON_START == 0.3
        assert cfg.TARGET_UPDATE == 20
        assert cfg.SEED == 4

    def test_lr_goes_to_linear_learner_with_approx(self):
        cfg = apply_overrides(Config(), parse_args(['--approx', '--lr', '0.2']))
        assert cfg.APPROX_LEARNING_RATE == 0.2
        assert cfg.LEARNING_RATE == Config().LEARNING_RATE

    def test_invalid_override_rejected(self):
        """Overrides are validated like the config itself."""
        with pytest.raises(AssertionError):
            apply_overrides(Config(), parse_args(['--epsilon', '1.5']))


class TestBuildLearners:
    """Test learner construction from the config."""

    def test_deep_learner(self):
        cfg = Config(HIDDEN_NODES=6, HIDDEN_LAYERS=1, LEARNING_RATE=0.02, TARGET_UPDATE=7,
                     EPSILON_START=0.5, EPSILON_DECAY=0.95, SEED=1)
        learner = build_deep_learner(cfg, make_agent(cfg))
        assert learner.target_net.num_input_nodes == 256
        assert learner.target_net.num_middle_nodes == 6
        assert learner.alpha == 0.02
        assert learner.iterations_before_net_transfer == 7
        assert learner.epsilon == 0.5
        assert learner.epsilon_decay == 0.95

    def test_seeded_learners_match(self):
        """The same seed builds the same starting network."""
        cfg = Config(HIDDEN_NODES=3, HIDDEN_LAYERS=1, SEED=11)
        a = build_deep_learner(cfg, make_agent(cfg))
        b = build_deep_learner(cfg, make_agent(cfg))
        np.testing.assert_array_equal(a.target_net.get_weights()[0], b.target_net.get_weights()[0])

    def test_deep_learner_from_file(self, saved_net):
        """A loaded network keeps its stored activations."""
        cfg = Config(ACTIVATION='sigmoid')
        learner = build_deep_learner(cfg, make_agent(cfg), saved_net)
        assert isinstance(learner, DeepQLearner)
        assert learner.target_net.layer_transforms[0].activator == ReLUWithSlopes(0.1, 0.001)

    def test_older_file_uses_config_activations(self, saved_net):
        """A file without activation lines gets the configured activations."""
        with open(saved_net) as f:
            lines = f.read().splitlines()
        with open(saved_net, 'w') as f:
            f.write("\n".join(lines[:-2]) + "\n")

        cfg = Config(ACTIVATION='leaky_relu', OUTPUT_ACTIVATION='none')
        learner = build_deep_learner(cfg, make_agent(cfg), saved_net)
        assert isinstance(learner.target_net.layer_transforms[0].activator, LeakyReLU)
        assert isinstance(learner.target_net.layer_transforms[-1].activator, NoActivation)

    def test_approximate_learner(self):
        cfg = Config(APPROX_LEARNING_RATE=0.01)
        learner = build_approximate_learner(cfg, make_agent(cfg))
        assert isinstance(learner, ApproximateQLearner)
        assert learner.alpha == 0.01


class TestMain:
    """Test main() end to end."""

    def test_play_mode(self, saved_net, capsys):
        """Replaying a network prints the test averages."""
        main(['--play', saved_net, '--episodes', '1', '--seed', '0'])
        output = capsys.readouterr().out
        assert "Test score:" in output
        assert "Test rewards:" in output

    @pytest.mark.slow
    def test_approximate_training(self, tmp_path, monkeypatch, capsys):
        """A short approximate run completes."""
        monkeypatch.chdir(tmp_path)
        main(['--approx', '--episodes', '2', '--seed', '0'])
        assert "Training Complete!" in capsys.readouterr().out
