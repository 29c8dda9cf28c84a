"""LiveCast: record or stream from a local capture device to a video platform.

The HTTP surface in :mod:`src.livecast.main` proxies platform calls that need
the account token; the transports in ``upload`` and ``live`` drive the local
capture device.
"""
