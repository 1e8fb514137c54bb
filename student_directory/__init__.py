"""Student directory: tenant-scoped student accounts on Auth0."""
