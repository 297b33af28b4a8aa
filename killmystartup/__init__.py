"""Kill My Startup intelligence service."""
