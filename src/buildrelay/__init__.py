"""buildrelay: trigger and track Jenkins builds for named projects."""

__version__ = "0.1.0"
