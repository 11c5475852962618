"""devspace command-line interface."""
