"""Shared type definitions for mew."""

from typing import Literal, TypeAlias

# Mode of operation
Mode: TypeAlias = Literal["dev", "serve", "build"]

# SSE client identifier
ClientID: TypeAlias = str

# One encoded SSE frame, terminated by a blank line
Frame: TypeAlias = str
