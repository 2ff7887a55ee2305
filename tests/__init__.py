"""FlareBank test suite."""
