"""Consumer-facing views bound to one user profile."""
