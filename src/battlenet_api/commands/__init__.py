"""Built-in CLI sub-command groups (``config`` and ``cache``)."""
