"""Flutter Sandbox — provision a Web/Linux-Desktop-only Flutter SDK."""

__version__ = "0.1.0"
