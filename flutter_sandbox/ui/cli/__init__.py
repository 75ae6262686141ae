"""CLI sub-command groups registered by ``flutter_sandbox.main``."""
