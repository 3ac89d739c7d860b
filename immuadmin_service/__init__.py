"""
immuadmin-service - install and control immudb services on a host.

Registers immudb and immugw as OS-level daemons (systemd or launchd) and
drives their lifecycle, including delayed restarts and detached launches.
"""

__version__ = "0.1.0"
