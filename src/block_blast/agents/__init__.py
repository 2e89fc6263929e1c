"""Headless players: the paced heuristic AI and a random Gymnasium rollout."""
