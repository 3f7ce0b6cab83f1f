"""chainrunner -- conformance-test harness for multi-stage toolchains."""

__version__ = "0.1.0"
