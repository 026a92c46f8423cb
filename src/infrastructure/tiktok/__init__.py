from .oembed_client import OEmbedClient

__all__ = ["OEmbedClient"]
