from .http_client import ContestClient
from .http_server import ContestHTTPServer

__all__ = ["ContestClient", "ContestHTTPServer"]
