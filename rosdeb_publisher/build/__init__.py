"""Source builders producing install trees for packaging."""

from .colcon import ColconBuilder

__all__ = ["ColconBuilder"]
