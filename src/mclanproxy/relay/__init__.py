"""
The relay package splices accepted connections to the LAN server, one background thread per connection.
"""
