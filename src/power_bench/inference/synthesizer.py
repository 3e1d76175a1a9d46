"""
Placeholder inputs for benchmarking models whose real data is irrelevant.
"""

import logging
from typing import Any, Dict, List, Optional

import torch

from .schema import (
    DoubleField,
    ImageField,
    InputField,
    Int64Field,
    MultiArrayField,
    StringField,
    UnsupportedField,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_STRING = "test"


class InputSynthesizer:
    """Build dummy model inputs with the declared shapes and random content."""

    def __init__(self, seed: Optional[int] = None):
        """Initialize input synthesizer.

        Args:
            seed: Seed for reproducible content, or None for a random seed
        """
        self._generator = torch.Generator()
        if seed is None:
            self._generator.seed()
        else:
            self._generator.manual_seed(seed)
        self._warned: set = set()

    def synthesize(self, schema: List[InputField]) -> Dict[str, Any]:
        """Create one input batch for the given schema.

        Args:
            schema: Fields in the model's positional order

        Returns:
            Mapping of field name to value, in schema order; unsupported
            fields are left out
        """
        inputs = {}
        for field in schema:
            value = self._synthesize_field(field)
            if value is not None:
                inputs[field.name] = value
        return inputs

    def _synthesize_field(self, field: InputField) -> Any:
        if isinstance(field, ImageField):
            return torch.rand(
                (1, field.channels, field.height, field.width),
                generator=self._generator,
            )

        if isinstance(field, MultiArrayField):
            dtype = getattr(torch, field.dtype)
            if dtype.is_floating_point:
                return torch.rand(field.shape, generator=self._generator).to(dtype)
            return torch.randint(
                0, 101, field.shape, generator=self._generator, dtype=dtype
            )

        if isinstance(field, DoubleField):
            return torch.rand((), generator=self._generator, dtype=torch.float64).item()

        if isinstance(field, Int64Field):
            return int(torch.randint(0, 101, (), generator=self._generator).item())

        if isinstance(field, StringField):
            return PLACEHOLDER_STRING

        kind = field.kind if isinstance(field, UnsupportedField) else type(field).__name__
        # warn once per field, this runs for every inference call
        if field.name not in self._warned:
            self._warned.add(field.name)
            logger.warning("Unsupported input type for %s: %s", field.name, kind)
        return None
