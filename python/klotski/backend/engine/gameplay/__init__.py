from klotski.backend.engine.gameplay.game import GamePlay
from klotski.backend.engine.gameplay.player import ReplayPlayer

__all__ = ["GamePlay", "ReplayPlayer"]
