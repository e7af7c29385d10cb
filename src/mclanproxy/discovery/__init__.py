"""
The discovery package listens for LAN world announcements and decodes the server endpoint
each one names.
"""
