"""Hardcore Minecraft server supervisor.

Runs a Minecraft server, watches for player deaths over RCON and, when
one happens, archives the world, erases it and starts a fresh one.
"""

__version__ = "0.1.0"
