"""
Protocol implementations for Bluroom.

This package contains the network protocol handlers:
- bluos: Decoders for the BluOS XML status payloads
- discovery: mDNS browsing for `_musc._tcp` announcements
"""
