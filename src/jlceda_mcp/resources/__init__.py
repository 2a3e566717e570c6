from .silkscreen import register_silkscreen_resources

__all__ = ["register_silkscreen_resources"]
