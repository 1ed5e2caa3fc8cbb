"""TrafficWarden: request interception and traffic accounting for browser sessions."""

__version__ = "0.1.0"
