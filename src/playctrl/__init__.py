"""playctrl - client for the playback service control protocol."""

__version__ = "0.1.0"
