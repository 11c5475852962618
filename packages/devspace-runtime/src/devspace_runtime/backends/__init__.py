"""Backends for the devspace runtime protocols."""
