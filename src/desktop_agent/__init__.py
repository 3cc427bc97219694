"""Desktop-Agent - local LLM agent with desktop automation tools."""

from importlib.metadata import version

__version__ = version("desktop-agent")
