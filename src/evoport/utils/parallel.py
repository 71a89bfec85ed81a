"""Helpers de execução paralela.

Abstrai a avaliação paralela de tarefas independentes (fitness de uma
geração do GA, amostragem de baselines) de forma reprodutível: os resultados
voltam sempre na ordem de entrada, independentemente do backend.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor, TimeoutError, as_completed
from typing import Any, Callable, Iterable, List, Optional, Sequence

from joblib import Parallel, delayed

__all__ = ["BACKENDS", "parallel_map", "collect_exceptions"]

logger = logging.getLogger(__name__)

BACKENDS = ("sequential", "thread", "process", "joblib")


def parallel_map(
    func: Callable,
    iterable: Iterable,
    backend: str = "sequential",
    max_workers: Optional[int] = None,
    timeout: Optional[float] = None,
) -> List[Any]:
    """
    Interface genérica semelhante a `map` para execução paralela de tarefas.

    Args:
        func (Callable): A função a ser aplicada a cada item do iterável. Para o
                         backend 'process' deve ser serializável (pickle).
        iterable (Iterable): O conjunto de dados a ser processado.
        backend (str): 'sequential' (padrão), 'thread', 'process' ou 'joblib'.
        max_workers (Optional[int]): Número máximo de workers. Se None, usa o
                                     padrão do backend.
        timeout (Optional[float]): Tempo máximo em segundos para o job inteiro
                                   (apenas 'thread'/'process').

    Returns:
        List[Any]: Resultados na mesma ordem do iterável de entrada. Exceções
                   levantadas por workers dos backends 'thread'/'process' são
                   devolvidas no lugar do resultado (ver `collect_exceptions`).

    Raises:
        TimeoutError: Se o job exceder o tempo limite especificado.
        ValueError: Se o backend não for reconhecido.
    """
    if backend not in BACKENDS:
        raise ValueError(
            f"Backend '{backend}' não reconhecido. Use um de: {', '.join(BACKENDS)}."
        )

    items: Sequence[Any] = list(iterable)
    job_name = getattr(func, "__name__", type(func).__name__)
    start_time = time.perf_counter()

    # Fallback para execução sequencial (ótimo para debugging)
    if backend == "sequential" or max_workers == 1 or len(items) <= 1:
        results = [func(item) for item in items]
    elif backend == "joblib":
        tasks = [delayed(func)(item) for item in items]
        results = Parallel(n_jobs=max_workers or -1, backend="loky")(tasks)
    else:
        executor_cls = ThreadPoolExecutor if backend == "thread" else ProcessPoolExecutor
        ordered: list[Any] = [None] * len(items)
        # Indexa por posição: itens podem ser não-hasheáveis (ex.: ndarrays)
        with executor_cls(max_workers=max_workers) as executor:
            future_to_index = {
                executor.submit(func, item): idx for idx, item in enumerate(items)
            }
            try:
                for future in as_completed(future_to_index, timeout=timeout):
                    idx = future_to_index[future]
                    try:
                        ordered[idx] = future.result()
                    except Exception as exc:
                        logger.error("Worker para o item %d gerou uma exceção: %s", idx, exc)
                        ordered[idx] = exc
            except TimeoutError:
                logger.error("Job '%s' excedeu o timeout global de %ss.", job_name, timeout)
                raise
        results = ordered

    logger.debug(
        "Job '%s' (%d itens, backend=%s) concluído em %.3fs.",
        job_name,
        len(items),
        backend,
        time.perf_counter() - start_time,
    )
    return results


def collect_exceptions(results: List[Any], re_raise: bool = True):
    """
    Coleta exceções de uma lista de resultados de workers e opcionalmente as levanta.

    Args:
        results (List[Any]): Lista de resultados, que pode conter objetos Exception.
        re_raise (bool): Se True, levanta a primeira exceção encontrada,
                         encadeando as demais na mensagem.

    Returns:
        tuple[list, list]: Uma tupla contendo (resultados_validos, excecoes).
    """
    exceptions = [res for res in results if isinstance(res, BaseException)]
    valid_results = [res for res in results if not isinstance(res, BaseException)]

    if exceptions and re_raise:
        if len(exceptions) == 1:
            raise exceptions[0]
        error_messages = "\n".join(f"  - {type(e).__name__}: {e}" for e in exceptions)
        raise RuntimeError(
            f"{len(exceptions)} worker(s) falharam com as seguintes exceções:\n{error_messages}"
        ) from exceptions[0]

    return valid_results, exceptions
