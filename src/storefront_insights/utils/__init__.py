from .logger import log, setup_logger

__all__ = ["log", "setup_logger"]
