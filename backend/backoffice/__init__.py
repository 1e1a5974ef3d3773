"""Multi-tenant backoffice: users, authentication and organization ownership."""
