"""NestLink: social network and property listing backend."""

__version__ = "1.0.0"
