"""Training package: configuration and the tick-driven learning loop."""

from training.config import TrainingConfig, get_config, load_config
from training.training_loop import TrainingLoop, UnknownAgentError

__all__ = ["TrainingConfig", "get_config", "load_config", "TrainingLoop", "UnknownAgentError"]
