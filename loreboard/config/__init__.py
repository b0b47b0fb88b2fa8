from loreboard.config.settings import settings

__all__ = ["settings"]
