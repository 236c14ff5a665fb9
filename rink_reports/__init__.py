"""Event-sourced game analytics and weekly rink reports for a recreational hockey league."""

__version__ = "0.1.0"
