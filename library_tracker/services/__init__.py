"""Library Tracker - Services Package

This package contains the realtime side of the application:
- Event broadcaster (presence and pub/sub)
- Dashboard statistics
- Socket.IO gateway
"""
