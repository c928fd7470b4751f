"""Micromamba environment provisioning."""
