"""External audio source providers."""
