from habitlens.state.checkpoint import Checkpointer
from habitlens.state.store import JsonFileStateStore, MemoryStateStore, StateStore

__all__ = ["Checkpointer", "JsonFileStateStore", "MemoryStateStore", "StateStore"]
