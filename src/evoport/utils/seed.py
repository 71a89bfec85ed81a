"""Deterministic seed management.

O GA nunca usa o estado global de ``numpy.random``: um único
``numpy.random.Generator`` é criado aqui e repassado explicitamente para
inicialização, seleção, crossover e mutação.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Mapping, Optional

import numpy as np

__all__ = ["MAX_SEED_VALUE", "rng_factory", "hash_seed_from_config", "register_seed_logging"]

# Constante para normalização da seed
MAX_SEED_VALUE = 2**32


def rng_factory(seed: Optional[int] = None) -> np.random.Generator:
    """
    Cria e retorna uma instância do gerador de números aleatórios moderno do NumPy.

    Args:
        seed (Optional[int]): A seed para o gerador. Se None, a inicialização
                              será não-determinística. Seeds negativas ou
                              maiores que 2**32-1 são normalizadas.

    Returns:
        np.random.Generator: Gerador isolado (PCG64).
    """
    if seed is None:
        return np.random.default_rng()
    return np.random.default_rng(abs(int(seed)) % MAX_SEED_VALUE)


def hash_seed_from_config(config: Mapping[str, Any]) -> int:
    """
    Gera uma seed determinística a partir de um dicionário de configuração.

    O dicionário é convertido para JSON com chaves ordenadas para que a mesma
    configuração sempre gere a mesma seed.
    """
    config_str = json.dumps(config, sort_keys=True, default=str)
    hasher = hashlib.sha256(config_str.encode("utf-8"))
    return int(hasher.hexdigest(), 16) % MAX_SEED_VALUE


def register_seed_logging(logger: logging.Logger, seed: int) -> None:
    """Loga a seed utilizada para fins de auditoria e reprodutibilidade."""
    logger.info("Execução utilizando a seed: %s", seed, extra={"seed": seed})
