"""
Compute device selection and device/power introspection.
"""

import logging
import platform
from typing import Any, Dict, Optional

import pynvml
import torch
from rich.console import Console
from rich.table import Table

logger = logging.getLogger(__name__)


class DeviceInfo:
    """Resolve the inference device and report its characteristics."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize device info collector.

        Args:
            console: Rich console used by the print helpers
        """
        self.console = console or Console()
        self._cuda_available = torch.cuda.is_available()
        self._nvml_ready = False
        if self._cuda_available:
            try:
                pynvml.nvmlInit()
                self._nvml_ready = True
            except pynvml.NVMLError as e:
                logger.warning("NVML unavailable, power readings disabled: %s", e)

    @property
    def cuda_available(self) -> bool:
        return self._cuda_available

    @property
    def device_count(self) -> int:
        if not self._cuda_available:
            return 0
        return torch.cuda.device_count()

    def resolve_device(self, preference: str = "auto") -> torch.device:
        """Turn a device preference into a torch device.

        Args:
            preference: "auto", "cpu", "cuda" or an explicit "cuda:N"

        Returns:
            The device inference should run on
        """
        if preference == "auto":
            return torch.device("cuda:0" if self._cuda_available else "cpu")

        device = torch.device(preference)
        if device.type == "cuda":
            if not self._cuda_available:
                raise RuntimeError("CUDA is not available")
            index = device.index or 0
            if index >= self.device_count:
                raise ValueError(f"Invalid device ID {index}")
        return device

    def get_power_usage(self, device_id: int = 0) -> Optional[float]:
        """Current board power draw in watts, None when NVML cannot tell."""
        if not self._nvml_ready:
            return None
        try:
            handle = pynvml.nvmlDeviceGetHandleByIndex(device_id)
            return pynvml.nvmlDeviceGetPowerUsage(handle) / 1000.0
        except pynvml.NVMLError:
            return None

    def get_device_info(self, device_id: int = 0) -> Dict[str, Any]:
        """Get GPU device information.

        Args:
            device_id: GPU device ID

        Returns:
            Dictionary containing device information
        """
        if not self._cuda_available:
            raise RuntimeError("CUDA is not available")

        if device_id >= self.device_count:
            raise ValueError(f"Invalid device ID {device_id}")

        device_props = torch.cuda.get_device_properties(device_id)
        info = {
            "device_id": device_id,
            "name": device_props.name,
            "compute_capability": f"{device_props.major}.{device_props.minor}",
            "total_memory": device_props.total_memory,
            "multi_processor_count": device_props.multi_processor_count,
        }

        if not self._nvml_ready:
            return info

        handle = pynvml.nvmlDeviceGetHandleByIndex(device_id)

        try:
            info["temperature"] = pynvml.nvmlDeviceGetTemperature(
                handle, pynvml.NVML_TEMPERATURE_GPU
            )
        except pynvml.NVMLError:
            pass

        # power consumption
        try:
            info["power_draw"] = pynvml.nvmlDeviceGetPowerUsage(handle) / 1000.0
            info["power_limit"] = (
                pynvml.nvmlDeviceGetPowerManagementLimitConstraints(handle)[1] / 1000.0
            )
        except pynvml.NVMLError:
            pass

        return info

    def get_system_info(self) -> Dict[str, str]:
        """Get host and library versions."""
        info = {
            "platform": platform.platform(),
            "python_version": platform.python_version(),
            "pytorch_version": torch.__version__,
            "cpu_threads": str(torch.get_num_threads()),
        }

        if self._cuda_available:
            info["cuda_version"] = torch.version.cuda
            info["cudnn_version"] = str(torch.backends.cudnn.version())

        return info

    def print_device_info(self, device_id: int = 0) -> None:
        """Print a table describing the host and, if present, the GPU."""
        table = Table(title="Device Information")
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="green")

        for key, value in self.get_system_info().items():
            table.add_row(key.replace("_", " ").title(), str(value))

        if self._cuda_available:
            info = self.get_device_info(device_id)
            table.add_row("Device Name", info["name"])
            table.add_row("Compute Capability", info["compute_capability"])
            table.add_row("Total Memory", f"{info['total_memory'] / 1024**3:.2f} GB")
            if "temperature" in info:
                table.add_row("Temperature", f"{info['temperature']}°C")
            if "power_draw" in info:
                table.add_row(
                    "Power Draw",
                    f"{info['power_draw']:.1f}W / {info['power_limit']:.1f}W",
                )
        else:
            table.add_row("Device Name", "cpu")

        self.console.print(table)
