"""
The connector package accepts remote clients and opens the matching connection to the LAN server.
"""
