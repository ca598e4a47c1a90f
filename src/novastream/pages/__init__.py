"""Session-guarded HTML pages."""
