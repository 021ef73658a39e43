"""
Tests for telemetry formatting, history collection, HUD controls and plots.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pygame
import pytest

from agents.rewards import BehaviorType
from training.config import TrainingConfig
from training.training_loop import TrainingLoop
from utils.hud_renderer import HUDRenderer, ParameterControls
from utils.telemetry import ConsoleTelemetry, TelemetryHistory, format_q_values, format_snapshot
from utils.visualization import generate_all_plots


class StaticWorld:
    """Agents stay where they are unless moved one unit per action."""

    MOVES = [(0.0, 1.0), (0.0, -1.0), (-1.0, 0.0), (1.0, 0.0), (0.0, 0.0)]

    def __init__(self):
        self.positions = {"chaser": (0.0, 0.0), "fleer": (4.0, 4.0)}

    def agent_position(self, agent_id):
        return self.positions[agent_id]

    def target_position(self):
        return (10.0, 0.0)

    def move(self, agent_id, action):
        dx, dy = self.MOVES[action]
        x, y = self.positions[agent_id]
        self.positions[agent_id] = (x + dx, y + dy)

    def respawn(self, agent_id):
        self.positions[agent_id] = (0.0, 0.0)
        return self.positions[agent_id]


def make_loop(telemetry=None):
    world = StaticWorld()
    loop = TrainingLoop(TrainingConfig(exploration_rate=0.0), world, world, world, telemetry=telemetry)
    loop.register_agent("chaser", BehaviorType.CHASE)
    loop.register_agent("fleer", BehaviorType.FLEE)
    return loop


def test_format_q_values():
    assert format_q_values(np.array([0.0, 1.0, 2.0, 3.0, 4.5])) == "Q(U):0.00 D:1.00 L:2.00 R:3.00 S:4.50"


def test_format_snapshot_lists_both_behaviors():
    loop = make_loop()
    lines = format_snapshot(loop.snapshot())

    assert lines[0] == "Exploration Rate: 0.0000"
    assert "-- CHASER --" in lines
    assert "-- FLEER --" in lines
    assert "State: 0_0_0" in lines
    assert lines.index("-- CHASER --") < lines.index("-- FLEER --")
    assert "States visited: 0" in lines


def test_history_collects_one_row_per_agent_per_tick():
    history = TelemetryHistory()
    loop = make_loop(telemetry=history)
    for _ in range(4):
        loop.tick(dt=0.02)

    frame = history.to_dataframe()
    assert list(frame.columns) == [
        "tick", "exploration_rate", "agent_id", "behavior", "state",
        "action", "reward", "q_value", "distance",
    ]
    assert len(frame) == 8
    assert list(frame["tick"]) == [1, 1, 2, 2, 3, 3, 4, 4]
    assert set(frame["behavior"]) == {"chase", "flee"}
    first = frame.iloc[0]
    assert first["state"] == "0_1_0"
    assert first["reward"] == pytest.approx(-0.6)
    assert first["q_value"] == pytest.approx(-0.06)


def test_history_collisions_and_forwarding():
    forwarded = TelemetryHistory()
    history = TelemetryHistory(next_sink=forwarded)
    loop = make_loop(telemetry=history)
    loop.tick(dt=0.02)

    history.record_collision(1, "chaser", BehaviorType.CHASE, "target", 10.0)
    collisions = history.collisions_dataframe()

    assert list(collisions.columns) == ["tick", "agent_id", "behavior", "tag", "reward"]
    assert collisions.iloc[0]["behavior"] == "chase"
    assert len(forwarded.to_dataframe()) == 2
    assert forwarded.collisions_dataframe().empty


def test_console_telemetry_prints_every_n_ticks(capsys):
    loop = make_loop(telemetry=ConsoleTelemetry(every=2))

    loop.tick(dt=0.02)
    assert capsys.readouterr().out == ""

    loop.tick(dt=0.02)
    out = capsys.readouterr().out
    assert "--- Tick 2 ---" in out
    assert "Exploration Rate: 0.0000" in out
    assert "-- FLEER --" in out


def test_console_telemetry_disabled(capsys):
    loop = make_loop(telemetry=ConsoleTelemetry(every=0))
    loop.tick(dt=0.02)
    assert capsys.readouterr().out == ""


def test_parameter_controls_change_live_config():
    loop = make_loop()
    controls = ParameterControls(loop)

    assert controls.handle_key(pygame.K_2)
    assert loop.config.learning_rate == pytest.approx(0.15)
    assert controls.handle_key(pygame.K_3)
    assert loop.config.discount_factor == pytest.approx(0.98)
    assert controls.handle_key(pygame.K_6)
    assert loop.config.exploration_decay == pytest.approx(0.002)
    assert not controls.handle_key(pygame.K_z)


def test_parameter_controls_clamp():
    loop = make_loop()
    controls = ParameterControls(loop)

    for _ in range(30):
        controls.handle_key(pygame.K_2)
        controls.handle_key(pygame.K_4)
        controls.handle_key(pygame.K_5)

    assert loop.config.learning_rate == 1.0
    assert loop.config.discount_factor == 1.0
    assert loop.config.exploration_decay == 0.0


def test_reward_keys_change_next_tick_reward():
    loop = make_loop()
    controls = ParameterControls(loop)

    assert controls.handle_key(pygame.K_F5)
    assert controls.handle_key(pygame.K_F3)
    assert loop.config.time_penalty == pytest.approx(-0.11)
    assert loop.config.move_away_reward == pytest.approx(-0.6)

    # Chaser moves up and away from the target on an empty table
    chaser, _ = loop.tick(dt=0.02)
    assert chaser.reward == pytest.approx(-0.71)


def test_reward_keys_are_not_clamped():
    loop = make_loop()
    controls = ParameterControls(loop)

    for _ in range(20):
        controls.handle_key(pygame.K_8)
        controls.handle_key(pygame.K_9)
        controls.handle_key(pygame.K_F1)
    for _ in range(200):
        controls.handle_key(pygame.K_F5)

    assert loop.config.touch_target_reward == pytest.approx(30.0)
    assert loop.config.wall_collision_reward == pytest.approx(-25.0)
    assert loop.config.move_closer_reward == pytest.approx(-1.0)
    assert loop.config.time_penalty == pytest.approx(-2.1)
    assert controls.panel_lines()[-1] == "Time Penalty: -2.10  [F5/F6]"


def test_parameter_controls_handle_keydown_events():
    loop = make_loop()
    controls = ParameterControls(loop)
    events = [
        pygame.event.Event(pygame.KEYDOWN, key=pygame.K_1),
        pygame.event.Event(pygame.KEYUP, key=pygame.K_1),
        pygame.event.Event(pygame.KEYDOWN, key=pygame.K_q),
    ]

    assert controls.handle_events(events) == 1
    assert loop.config.learning_rate == pytest.approx(0.05)


def test_hud_panel_lines():
    loop = make_loop()
    hud = HUDRenderer(loop)
    hud.count_collision("target")
    hud.count_collision("target")
    hud.count_collision("obstacle")

    lines = hud.panel_lines()

    assert lines[0] == "Tick: 0"
    assert "Contacts (target): 2" in lines
    assert "Contacts (obstacle): 1" in lines
    assert "Learning Rate: 0.10  [1/2]" in lines
    assert lines[-1] == "Time Penalty: -0.10  [F5/F6]"


def test_generate_all_plots(tmp_path):
    history = TelemetryHistory()
    loop = make_loop(telemetry=history)
    for _ in range(20):
        loop.tick(dt=0.02)
    history.record_collision(5, "chaser", BehaviorType.CHASE, "target", 10.0)
    history.record_collision(9, "fleer", BehaviorType.FLEE, "obstacle", -5.0)

    output_dir = tmp_path / "figures"
    generate_all_plots(history.to_dataframe(), history.collisions_dataframe(), output_dir=str(output_dir))

    for name in ("exploration_rate.png", "reward_curves.png", "distance.png", "collisions.png"):
        assert (output_dir / name).exists()


def test_generate_all_plots_without_data(tmp_path):
    history = TelemetryHistory()
    generate_all_plots(history.to_dataframe(), history.collisions_dataframe(), output_dir=str(tmp_path))
    assert (tmp_path / "collisions.png").exists()
    assert not (tmp_path / "reward_curves.png").exists()
