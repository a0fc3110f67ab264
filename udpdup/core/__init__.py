"""udpdup core — configuration loading, destination table, and the fan-out engine."""
