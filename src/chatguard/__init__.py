"""chatguard: detecção de abuso e rate limiting adaptativo para endpoints de chat."""

__version__ = "0.1.0"
