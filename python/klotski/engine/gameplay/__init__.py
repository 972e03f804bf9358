from klotski.engine.gameplay.game import GamePlay, ReplayOutcome

__all__ = ["GamePlay", "ReplayOutcome"]
