from .factory import get_intake

__all__ = ['get_intake']
