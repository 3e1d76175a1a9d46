"""
Inference engines the benchmark controller drives.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import torch

from ..core.device_info import DeviceInfo
from ..core.errors import InferenceError, ModelLoadError, SchemaError
from .schema import InputField, parse_input_schema

logger = logging.getLogger(__name__)

SCHEMA_FILE = "input_schema.json"


@dataclass
class ModelHandle:
    """A loaded model ready for inference."""

    name: str
    module: Any
    device: torch.device = field(default_factory=lambda: torch.device("cpu"))
    input_schema: List[InputField] = field(default_factory=list)


class InferenceEngine(ABC):
    """Loads models and runs single inferences on them."""

    @abstractmethod
    async def load(self, locator: Union[str, Path]) -> ModelHandle:
        """Load a model artifact.

        Raises:
            ModelLoadError: if the artifact cannot be loaded
        """

    @abstractmethod
    async def infer(self, handle: ModelHandle, inputs: Dict[str, Any]) -> Any:
        """Run one inference.

        Raises:
            InferenceError: if the call fails
        """

    def release(self, handle: ModelHandle) -> None:
        """Free resources held by a handle. The handle is unusable afterwards."""
        handle.module = None


class TorchScriptEngine(InferenceEngine):
    """Run TorchScript archives with PyTorch.

    The positional inputs of ``forward`` are described by a JSON schema saved
    in the archive as the ``input_schema.json`` extra file.
    """

    def __init__(self, device: str = "auto", device_info: Optional[DeviceInfo] = None):
        """Initialize TorchScript engine.

        Args:
            device: Device preference ("auto", "cpu", "cuda", "cuda:N")
            device_info: Device helper, created on demand when omitted
        """
        self.device_info = device_info or DeviceInfo()
        self.device = self.device_info.resolve_device(device)

    async def load(self, locator: Union[str, Path]) -> ModelHandle:
        path = Path(locator)
        logger.info("Loading model %s on %s", path, self.device)
        return await asyncio.to_thread(self._load, path)

    def _load(self, path: Path) -> ModelHandle:
        extra_files = {SCHEMA_FILE: ""}
        try:
            module = torch.jit.load(
                str(path), map_location=self.device, _extra_files=extra_files
            )
        except Exception as e:
            raise ModelLoadError(f"{path}: {e}") from e

        try:
            schema = parse_input_schema(extra_files[SCHEMA_FILE])
        except SchemaError as e:
            raise ModelLoadError(f"{path}: {e}") from e

        if not schema:
            logger.warning("Model %s declares no inputs", path.stem)

        module.eval()
        return ModelHandle(
            name=path.stem, module=module, device=self.device, input_schema=schema
        )

    async def infer(self, handle: ModelHandle, inputs: Dict[str, Any]) -> Any:
        if handle.module is None:
            raise InferenceError(f"Model {handle.name} has been released")
        return await asyncio.to_thread(self._infer, handle, inputs)

    def _infer(self, handle: ModelHandle, inputs: Dict[str, Any]) -> Any:
        # forward takes the schema fields positionally
        args = [
            value.to(handle.device) if isinstance(value, torch.Tensor) else value
            for value in inputs.values()
        ]
        try:
            with torch.inference_mode():
                output = handle.module(*args)
            if handle.device.type == "cuda":
                torch.cuda.synchronize(handle.device)
        except Exception as e:
            raise InferenceError(str(e)) from e
        return output

    def release(self, handle: ModelHandle) -> None:
        super().release(handle)
        if handle.device.type == "cuda":
            torch.cuda.empty_cache()
