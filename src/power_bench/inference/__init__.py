"""
Model discovery, input synthesis and inference engines.
"""

from .catalog import ModelCatalog
from .engine import InferenceEngine, ModelHandle, TorchScriptEngine
from .schema import parse_input_schema
from .synthesizer import InputSynthesizer

__all__ = [
    "InferenceEngine",
    "InputSynthesizer",
    "ModelCatalog",
    "ModelHandle",
    "TorchScriptEngine",
    "parse_input_schema",
]
