"""fullbuild - multi-repository checkout orchestration for CI builds."""

__version__ = "0.1.0"
