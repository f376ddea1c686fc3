"""InboxTrack - job application tracking from a Gmail change stream."""

__version__ = "0.1.0"
