"""Business logic services: identity resolution, grant management and order lifecycle."""
