"""Invocation defaults and fixed strings."""

DEFAULT_ENVIRONMENT_NAME = "langchain"
DEFAULT_LANGUAGE_VERSION = "3.11"
DEFAULT_MODEL_NAME = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.0
DEFAULT_MAX_RETRIES = 3

# Returned in place of a result when the script prints nothing
FALLBACK_MESSAGE = "Failed to retrieve result from the Python script."

# micromamba release endpoint and channel
MICROMAMBA_URL = "https://micro.mamba.pm/api/micromamba/{platform}/{version}"
MICROMAMBA_CHANNEL = "conda-forge"
BINARY_NAME = "micromamba"
