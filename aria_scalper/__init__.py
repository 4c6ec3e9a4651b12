"""Indicators, order-flow signals, market feeds, learning policy, LLM context prompts and monitoring for a crypto scalping bot."""

__version__ = "0.1.0"