#!/usr/bin/env python3
"""
PH Corruption Feed

Aggregates Philippine corruption and accountability news from generative
search, web search, RSS and legacy news APIs behind one fallback chain.
"""

__version__ = "1.0.0"
