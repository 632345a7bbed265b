from .model_config import ModelConfig, load_config

__all__ = ['ModelConfig', 'load_config']
