"""Browser front end for the storefront admin client."""

from .app import create_app

__all__ = ["create_app"]
