from dcexport.api_clients.digital_collections.client import DigitalCollectionsClient

__all__ = ["DigitalCollectionsClient"]
