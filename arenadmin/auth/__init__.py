"""Session-based access control for the admin dashboard."""
