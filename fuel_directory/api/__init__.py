"""HTTP routers for the fuel station directory."""
