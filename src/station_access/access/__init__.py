"""Role and permission normalization plus capability projection."""
