"""External collaborator clients (CRM data store, messaging gateway)."""
