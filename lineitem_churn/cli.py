#!filepath: lineitem_churn/cli.py
from __future__ import annotations

from typing import Optional

import typer
from pydantic import ValidationError
from rich import print
from rich.markup import escape

from lineitem_churn import __version__, logs
from lineitem_churn.config.app_config import AppConfig
from lineitem_churn.config.store_config import StoreBackend
from lineitem_churn.utils.errors import UserInputError

app = typer.Typer(help="TPC-H lineitem insert / read-modify-write load generator")


def _load_config(config: Optional[str]) -> AppConfig:
    try:
        return AppConfig.load(config)
    except (FileNotFoundError, ValidationError) as e:
        print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def run(
    config: Optional[str] = typer.Option(None, help="YAML config, default: packaged base.yml"),
    data_path: Optional[str] = typer.Option(None, help="'|' separated lineitem file to insert"),
    window: Optional[int] = typer.Option(None, help="Trailing window size, in order numbers"),
    starting_point: Optional[int] = typer.Option(None, help="Order number the window starts at"),
    updater_threads: Optional[int] = typer.Option(None, help="Update threads, can be 0"),
    inserter_threads: Optional[int] = typer.Option(None, help="Insert threads, 0 or 1"),
    master_address: Optional[str] = typer.Option(None, help="Tablet server host[:port]"),
    max_batch_size: Optional[int] = typer.Option(None, help="Max inserts/updates per batch"),
    store: Optional[StoreBackend] = typer.Option(None, help="Store backend"),
    seed: Optional[int] = typer.Option(None, help="Seed for the updaters' RNGs"),
):
    """
    Drive inserts and trailing-window updates until killed or a worker fails.
    """
    from lineitem_churn.dao.factory import build_dao_factory
    from lineitem_churn.workload.coordinator import Coordinator

    try:
        cfg = _load_config(config).with_overrides(
            workload={
                "data_path": data_path,
                "window": window,
                "starting_point": starting_point,
                "updater_threads": updater_threads,
                "inserter_threads": inserter_threads,
                "seed": seed,
            },
            store={
                "master_address": master_address,
                "max_batch_size": max_batch_size,
                "backend": store,
            },
        )
    except ValidationError as e:
        print(f"[red]Invalid option:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    logs.setup(cfg.log)
    print(
        f"[green]lineitem-churn[/green] store={cfg.store.backend.value} "
        f"tablet={cfg.store.tablet_id} window={cfg.workload.window} "
        f"updaters={cfg.workload.updater_threads} inserters={cfg.workload.inserter_threads}"
    )

    coordinator = Coordinator(cfg.workload, build_dao_factory(cfg.store))
    try:
        failure = coordinator.run_forever()
    except UserInputError as e:
        logs.error(f"[CLI] {e}")
        raise typer.Exit(code=1)

    logs.error(f"[CLI] {failure}, exiting")
    raise typer.Exit(code=1)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(8050, help="Bind port"),
    config: Optional[str] = typer.Option(None, help="YAML config (log section)"),
):
    """
    Run the in-memory development tablet server.
    """
    from lineitem_churn.store.server import serve as serve_http

    cfg = _load_config(config)
    logs.setup(cfg.log)
    print(f"[blue]Tablet server on {host}:{port}[/blue]")
    serve_http(host=host, port=port)


if __name__ == "__main__":
    app()

# python -m lineitem_churn.cli run --store memory --inserter-threads 1 --data-path lineitem.tbl
