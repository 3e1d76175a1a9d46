"""
Exception types raised by the benchmark core and its collaborators.
"""


class BenchmarkError(Exception):
    """Base class for benchmark failures."""


class ModelLoadError(BenchmarkError):
    """A model artifact could not be loaded. Fatal to a session."""


class InferenceError(BenchmarkError):
    """A single inference call failed. The phase loop keeps going."""


class SchemaError(BenchmarkError):
    """A model's declared input schema could not be decoded."""
