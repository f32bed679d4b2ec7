"""userlayout — per-user portal layout tree manager."""

__version__ = "0.1.0"
