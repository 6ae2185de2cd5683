from habitlens.config.loader import get_log_dir, get_state_dir, load_config
from habitlens.config.schema import HabitLensConfig

__all__ = ["HabitLensConfig", "get_log_dir", "get_state_dir", "load_config"]
