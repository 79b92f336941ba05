"""Table backends used by the station directory and module registry."""
