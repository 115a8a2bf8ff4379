from .register import RegisterValidator

__all__ = ["RegisterValidator"]
