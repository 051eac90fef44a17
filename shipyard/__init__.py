"""shipyard: publish a built revision's artifacts to configured targets."""

__version__ = "0.1.0"
