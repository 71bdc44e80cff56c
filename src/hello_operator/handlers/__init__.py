"""Handler modules for hello-operator."""

# Import handlers so their kopf decorators register
from . import helloworld_handler

__all__ = ["helloworld_handler"]
