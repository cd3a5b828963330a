"""SaniTrack - sanitation violation reporting and enforcement workflow."""

__version__ = "0.1.0"
