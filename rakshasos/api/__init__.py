"""api — Client for the remote contacts/settings service."""
