"""SetupForMe: unattended Windows installation scripts from a per-user app list."""

__version__ = "1.0.0"
