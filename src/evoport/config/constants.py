"""Constantes centrais utilizadas em múltiplos módulos.

O arquivo consolida valores numéricos (dias úteis, penalidade de
factibilidade) e nomes de colunas recorrentes. A centralização evita a
propagação de literais mágicos espalhados pelo projeto.
"""

from __future__ import annotations

import math
import sys
from typing import Final

__all__ = [
    "COLUMN_ASSET",
    "COLUMN_GENERATION",
    "COLUMN_WEIGHT",
    "DEFAULT_RISK_FREE_RATE",
    "LARGE_CONSTANT",
    "TRADING_DAYS_IN_YEAR",
]


# Numeric constants ---------------------------------------------------------

TRADING_DAYS_IN_YEAR: Final[int] = 252
"""Número típico de pregões em um ano; usado para anualizar média e risco."""

LARGE_CONSTANT: Final[float] = math.sqrt(sys.float_info.max)
"""Escala da penalidade de factibilidade (~1.34e154).

Muitas ordens de grandeza acima de qualquer fitness factível, mas ainda
finita quando multiplicada por excessos de peso moderados.
"""

DEFAULT_RISK_FREE_RATE: Final[float] = 0.0
"""Taxa livre de risco anualizada usada no Sharpe dos relatórios."""


# Column naming ------------------------------------------------------------

COLUMN_ASSET: Final[str] = "asset"
COLUMN_WEIGHT: Final[str] = "weight"
COLUMN_GENERATION: Final[str] = "generation"
