"""Earthquake monitor for Bangladesh and surroundings.

Polls the USGS feed, stores each earthquake in the region once, labels it
with the nearest city and e-mails subscribers about significant ones.
"""

__version__ = "1.0.0"
