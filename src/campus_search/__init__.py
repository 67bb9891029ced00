"""
campus-search: Multi-source campus autocomplete and search resolution.

Fans a free-text query out to geocoders, feature layers, a static filter
table and a device-location capability, merges the answers into a single
suggestion list, and resolves a chosen suggestion into a search result.
"""

__version__ = "0.1.0"
