"""Resource list client for the Gestion business-management API."""
