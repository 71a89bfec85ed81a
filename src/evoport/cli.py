"""Command line interface for the project.

Commands:
- show-settings: Settings resolvidas (defaults, .env, variáveis EVOPORT_*)
- optimize: otimização de pesos via GA real para a janela de treino
- select: seleção de ativos via GA binário a partir dos pesos otimizados
- run-full-pipeline: dados → GA → avaliação/baselines → seleção, com artefatos
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Iterable

from evoport.config import ConfigError, RunConfig, Settings, configure_logging, get_settings, load_config
from evoport.config.schemas import OBJECTIVE_NAMES
from evoport.pipeline.asset_selection import run_asset_selection
from evoport.pipeline.optimization import run_weight_optimization
from evoport.pipeline.orchestrator import (
    PipelineError,
    apply_default_seed,
    build_window_snapshot,
    load_universe_returns,
    run_full_pipeline,
    run_windows,
)
from evoport.utils.data_loading import read_vector

__all__ = ["build_parser", "main"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="evoport CLI")
    parser.add_argument(
        "--structured-logs",
        dest="structured_logs",
        action="store_true",
        help="força logs estruturados em JSON",
    )
    parser.add_argument(
        "--plain-logs",
        dest="structured_logs",
        action="store_false",
        help="força logs texto simples",
    )
    parser.set_defaults(structured_logs=None)

    subparsers = parser.add_subparsers(dest="command", required=True)

    show = subparsers.add_parser("show-settings", help="Exibe as Settings resolvidas")
    show.add_argument("--json", action="store_true", help="Formato JSON")

    opt = subparsers.add_parser("optimize", help="Otimiza os pesos com o GA real")
    opt.add_argument("--config", required=True, help="Arquivo de configuração YAML")
    opt.add_argument(
        "--objective",
        choices=OBJECTIVE_NAMES,
        help="Sobrescreve o objetivo definido na configuração",
    )
    opt.add_argument(
        "--skip-download",
        action="store_true",
        help="Usa retornos em cache",
    )
    opt.add_argument("--json", action="store_true", help="Mostra resultado em JSON")

    select = subparsers.add_parser("select", help="Seleciona ativos com o GA binário")
    select.add_argument("--config", required=True, help="Arquivo de configuração YAML")
    select.add_argument(
        "--weights",
        help="Arquivo com pesos já otimizados (senão otimiza a janela de treino)",
    )
    select.add_argument(
        "--skip-download",
        action="store_true",
        help="Usa retornos em cache",
    )
    select.add_argument("--json", action="store_true", help="Mostra resultado em JSON")

    pipeline = subparsers.add_parser(
        "run-full-pipeline",
        help="Executa pipeline completo: dados → GA → avaliação → seleção",
    )
    pipeline.add_argument("--config", required=True, help="Arquivo YAML de configuração")
    pipeline.add_argument(
        "--skip-download",
        action="store_true",
        help="Usa dados cached (mais rápido para testes)",
    )
    pipeline.add_argument(
        "--output-dir", default=None, help="Diretório para salvar resultados"
    )
    pipeline.add_argument("--json", action="store_true", help="Output em formato JSON")

    return parser


def _configure_logging(structured: bool | None, settings: Settings, command: str) -> None:
    configure_logging(settings=settings, structured=structured, context={"command": command})


def _print_payload(payload: dict[str, Any], *, as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, indent=2, sort_keys=True, default=str))
    else:
        for key, value in payload.items():
            print(f"{key}: {value}")


def _load_run_config(path: str, settings: Settings) -> RunConfig:
    config = load_config(path, RunConfig, project_root=settings.project_root)
    return config.model_copy(update={"ga": apply_default_seed(config.ga, settings)})


def _optimize(config: RunConfig, settings: Settings, *, objective: str | None, skip_download: bool):
    returns = load_universe_returns(
        config.universe,
        config.returns_path,
        run_windows(config),
        settings=settings,
        skip_download=skip_download,
    )
    snapshot = build_window_snapshot(returns, config.universe, config.train, "Train")
    return run_weight_optimization(snapshot, config.ga, objective or config.objective)


def _select(args: argparse.Namespace, settings: Settings) -> dict[str, Any]:
    config = _load_run_config(args.config, settings)
    selection_cfg = config.asset_selection
    if selection_cfg is None:
        raise ConfigError(f"{args.config} has no 'asset_selection' section")

    if args.weights:
        weights = read_vector(args.weights)
    else:
        weights = _optimize(
            config, settings, objective=None, skip_download=args.skip_download
        ).weights

    returns = load_universe_returns(
        selection_cfg.universe,
        selection_cfg.returns_path,
        [selection_cfg.window],
        settings=settings,
        skip_download=args.skip_download,
    )
    snapshot = build_window_snapshot(returns, selection_cfg.universe, selection_cfg.window, "Selection")
    result = run_asset_selection(
        weights, snapshot, apply_default_seed(selection_cfg.ga, settings), selection_cfg.top_k
    )
    return result.to_dict()


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    settings = get_settings()
    _configure_logging(args.structured_logs, settings, args.command)

    try:
        if args.command == "show-settings":
            _print_payload(settings.to_dict(), as_json=args.json)
        elif args.command == "optimize":
            config = _load_run_config(args.config, settings)
            result = _optimize(
                config, settings, objective=args.objective, skip_download=args.skip_download
            )
            _print_payload(result.to_dict(), as_json=args.json)
        elif args.command == "select":
            _print_payload(_select(args, settings), as_json=args.json)
        elif args.command == "run-full-pipeline":
            result = run_full_pipeline(
                config_path=args.config,
                settings=settings,
                skip_download=args.skip_download,
                output_dir=args.output_dir,
            )
            _print_payload(result, as_json=args.json)
        else:  # pragma: no cover
            parser.error(f"Unknown command: {args.command}")

    except (ConfigError, PipelineError, FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
