from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from block_blast.game import GameConfig, GameSession, Phase
from block_blast.game.ai import count_gaps


def _compute_action_mask(session: GameSession) -> np.ndarray:
    size = session.config.grid_size
    k = session.config.pieces_per_set
    mask = np.zeros((k, size, size), dtype=np.bool_)
    if session.phase != Phase.PLAYING:
        return mask
    board = session.board
    for slot, shape in enumerate(session.batch[:k]):
        for row, col in board.valid_positions(shape.matrix):
            mask[slot, row, col] = True
    return mask


def _valid_actions(mask: np.ndarray) -> List[Tuple[int, int, int]]:
    return [tuple(int(i) for i in idx) for idx in np.argwhere(mask)]


class BlockBlastEnv(gym.Env):
    """Gymnasium view of a :class:`GameSession`.

    Action is ``(slot, row, col)``: place the shape in batch slot `slot` with
    its top-left corner at (row, col). Shapes arrive pre-rotated, so there is
    no rotation component.
    """

    metadata = {"render_modes": ["rgb_array"], "render_fps": 30}

    def __init__(self, config: Optional[GameConfig] = None, render_mode: Optional[str] = None,
                 reward_weights: Optional[Dict[str, float]] = None,
                 invalid_action_penalty: float = -0.1,
                 step_penalty: float = 0.0,
                 terminal_penalty: float = 0.0,
                 max_episode_steps: int = 10000) -> None:
        super().__init__()
        self.session = GameSession(config)
        self.render_mode = render_mode

        self.invalid_action_penalty = float(invalid_action_penalty)
        self.step_penalty = float(step_penalty)
        self.terminal_penalty = float(terminal_penalty)
        self.max_episode_steps = int(max_episode_steps)
        self.reward_weights: Dict[str, float] = {
            "cells": 0.05,     # per cell placed
            "lines": 10.0,     # per line cleared
            "lines_sq": 5.0,   # extra for multiple lines at once
            "gaps": 0.1,       # per gap created
        }
        if reward_weights:
            self.reward_weights.update({k: float(v) for k, v in reward_weights.items()})

        size = self.session.config.grid_size
        k = self.session.config.pieces_per_set
        kinds = len(self.session.catalog)

        self.observation_space = spaces.Dict(
            {
                "grid": spaces.Box(low=0, high=1, shape=(size, size), dtype=np.int8),
                "pieces": spaces.Box(low=-1, high=kinds - 1, shape=(k,), dtype=np.int8),
                "pieces_remaining": spaces.Discrete(k + 1),
            }
        )
        self.action_space = spaces.MultiDiscrete((k, size, size))

        self._steps = 0

    @property
    def game(self) -> GameSession:
        return self.session

    def _get_obs(self) -> Dict[str, Any]:
        k = self.session.config.pieces_per_set
        grid = self.session.board.filled_mask().astype(np.int8)
        pieces = np.full((k,), -1, dtype=np.int8)
        for i, shape in enumerate(self.session.batch[:k]):
            pieces[i] = int(shape.kind)
        return {
            "grid": grid,
            "pieces": pieces,
            "pieces_remaining": len(self.session.batch),
        }

    def _get_info(self) -> Dict[str, Any]:
        mask = _compute_action_mask(self.session)
        return {
            "action_mask": mask,
            "valid_actions": _valid_actions(mask),
            "score": self.session.score,
            "steps": self._steps,
        }

    def get_action_mask(self) -> np.ndarray:
        return _compute_action_mask(self.session)

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        self.session.restart(seed)
        self._steps = 0
        obs = self._get_obs()
        return obs, self._get_info()

    def step(self, action):
        slot, row, col = map(int, action)

        reward_components: Dict[str, float] = {}
        gaps_before = count_gaps(self.session.board.filled_mask())

        result = None
        batch = self.session.batch
        if 0 <= slot < len(batch):
            shape = batch[slot]
            result = self.session.place(shape.shape_id, row, col)

        if result is not None and result.accepted:
            lines = int(result.detail["lines"])
            gaps_after = count_gaps(self.session.board.filled_mask())
            reward_components["cells"] = self.reward_weights["cells"] * float(np.count_nonzero(shape.matrix))
            reward_components["lines"] = self.reward_weights["lines"] * float(lines)
            reward_components["lines_sq"] = self.reward_weights["lines_sq"] * float(lines * lines)
            reward_components["gaps"] = -self.reward_weights["gaps"] * float(max(0, gaps_after - gaps_before))
            score_delta = float(result.detail["score_delta"])
        else:
            reward_components["invalid"] = self.invalid_action_penalty
            score_delta = 0.0

        reward_components["step"] = self.step_penalty
        terminated = self.session.phase == Phase.GAME_OVER
        self._steps += 1
        truncated = self._steps >= self.max_episode_steps
        if terminated:
            reward_components["terminal"] = self.terminal_penalty

        reward = float(sum(reward_components.values()))
        obs = self._get_obs()
        info = self._get_info()
        info["reward_components"] = reward_components
        info["engine_score_delta"] = score_delta
        return obs, reward, terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array":
            return None
        grid = self.session.board.grid
        palette = self.session.config.palette
        cell = 12
        h, w = grid.shape
        img = np.zeros((h * cell, w * cell, 3), dtype=np.uint8)
        for y in range(h):
            for x in range(w):
                value = int(grid[y, x])
                if value:
                    rgb = palette[value - 1]
                    color = ((rgb >> 16) & 0xFF, (rgb >> 8) & 0xFF, rgb & 0xFF)
                else:
                    color = (30, 30, 36)
                img[y * cell : (y + 1) * cell, x * cell : (x + 1) * cell, :] = color
        return img

    def close(self) -> None:
        pass
