"""
romforge Command-Line Tools
===========================

- **rfrom**: inspect, compress, repoint and wipe ROM data
"""

__all__ = ["rfrom"]
