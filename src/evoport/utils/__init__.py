"""Shared utilities: validations, parallelism, seeds, tabular IO.

Componentes expostos
--------------------
- `checks` → validação de entradas (NaNs, simetria, PSD, shapes).
- `data_loading` → leitura flexível de CSV/Parquet/Pickle de retornos.
- `parallel` → execução paralela da avaliação de fitness.
- `seed` → geradores aleatórios determinísticos.

Importe via ``from evoport.utils import ...`` para manter acoplamento baixo.
"""
