from .app import create_app, read_post_body, to_response
from .server import run, serve

__all__ = ["create_app", "read_post_body", "run", "serve", "to_response"]
