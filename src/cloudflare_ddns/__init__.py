"""
Cloudflare DDNS Updater - keep DNS "A" records pointed at a changing public IP.

This package provides a long-running daemon that polls the host's public IP
address and updates Cloudflare DNS records whenever the address changes.
"""

__version__ = "0.1.0"
__author__ = "Cloudflare DDNS Updater Contributors"
