"""udpdup packet routing — fans each received datagram out to all destinations.

The FanOutDispatcher issues one independent UDP send per configured
destination.  Sends run concurrently on a bounded pool so that a slow or
unreachable destination cannot delay the healthy ones or the receive loop.
"""
