"""External collaborators: voice SDK relay, report generation, session lookup."""
