"""evoport: genetic-algorithm portfolio optimisation.

O código-fonte vive em `src/evoport/` e é consumido principalmente via:

- CLI: `evoport optimize --config configs/ga_example.yaml`
- Biblioteca: `from evoport.optimization.ga import run_genetic_algorithm`
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:  # pragma: no cover - depende de instalação do pacote
    __version__ = version("evoport")
except PackageNotFoundError:  # pragma: no cover - fallback para ambiente sem install
    __version__ = "0.0.0"

__all__ = ["__version__"]
