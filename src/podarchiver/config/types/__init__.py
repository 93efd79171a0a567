from .publish_shift import PublishShift

__all__ = [
    "PublishShift",
]
