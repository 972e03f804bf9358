from klotski.engine.gamestate.props import PropInventory, PropType
from klotski.engine.gamestate.state import GameState, Snapshot

__all__ = ["GameState", "PropInventory", "PropType", "Snapshot"]
