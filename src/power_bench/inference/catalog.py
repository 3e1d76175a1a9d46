"""
Model discovery by directory scan.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from ..core.state import ModelInfo

logger = logging.getLogger(__name__)

MODEL_EXTENSIONS = (".ts", ".pt")


class ModelCatalog:
    """Find model artifacts below a root directory."""

    def __init__(
        self,
        root: Union[str, Path],
        extensions: Iterable[str] = MODEL_EXTENSIONS,
    ):
        """Initialize model catalog.

        Args:
            root: Directory to scan recursively
            extensions: File suffixes to collect, highest priority first
        """
        self.root = Path(root)
        self.extensions = tuple(extensions)

    def _scan(self, extension: str) -> List[Path]:
        found = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            for filename in sorted(filenames):
                if not filename.startswith(".") and filename.endswith(extension):
                    found.append(Path(dirpath) / filename)
        return found

    def discover(self) -> List[ModelInfo]:
        """Scan the root for models.

        A name seen under a higher-priority extension hides later ones.

        Returns:
            Models sorted by name (case-sensitive)
        """
        if not self.root.is_dir():
            logger.warning("Model directory %s does not exist", self.root)
            return []

        models: Dict[str, ModelInfo] = {}
        for extension in self.extensions:
            for path in self._scan(extension):
                name = path.name[: -len(extension)]
                if name not in models:
                    models[name] = ModelInfo(name=name, locator=path)

        available = sorted(models.values(), key=lambda model: model.name)

        if not available:
            logger.warning(
                "No models found in %s. Expected files ending in %s",
                self.root,
                ", ".join(self.extensions),
            )
        else:
            logger.info(
                "Found %d model(s): %s",
                len(available),
                ", ".join(model.name for model in available),
            )
        return available

    def find(self, name: str) -> Optional[ModelInfo]:
        """Look up a discovered model by exact name."""
        for model in self.discover():
            if model.name == name:
                return model
        return None
