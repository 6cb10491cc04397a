"""
Sensor Gateway - bridge between a browser control panel and one sensor node.

This module runs on the server machine and:
- Holds the last-known sensor readings and relay/fan states
- Accepts a single WebSocket connection from the embedded device
- Serves the readings over HTTP and relays toggle commands to the device
"""

__version__ = "1.0.0"
