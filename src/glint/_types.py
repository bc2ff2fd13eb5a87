"""Shared type definitions for glint."""

from typing import Literal, TypeAlias

# Absolute, web-rooted URL path (e.g., "/", "/about/", "/styles/app.css")
WebPath: TypeAlias = str

# Request tail as received from the router, attacker controlled
RequestTail: TypeAlias = str

# Wire tag of a live message
MessageType: TypeAlias = Literal["reload", "diff"]
