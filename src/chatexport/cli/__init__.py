"""chatexport command-line interface."""
