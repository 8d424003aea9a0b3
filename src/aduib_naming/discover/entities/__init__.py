from .instance import Instance, Registration

__all__ = [
    "Instance",
    "Registration",
]
