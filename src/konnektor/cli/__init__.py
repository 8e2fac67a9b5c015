import asyncio
from typing import Optional

import typer
from typing_extensions import Annotated

from dotenv import load_dotenv, find_dotenv

load_dotenv(find_dotenv())

app = typer.Typer(
    help="Konnektor: Kubernetes operator for Kafka Connect clusters and connectors",
    add_completion=False,
)


@app.command("operator")
def run_operator():
    """Run the Kubernetes operator (connects to cluster)."""
    from konnektor.main import main

    main()


@app.command("connectors")
def list_connectors(
    cluster: Annotated[str, typer.Argument(help="Name of the KafkaConnect cluster")],
    namespace: Annotated[
        str, typer.Option("-n", "--namespace", help="Namespace of the cluster")
    ] = "default",
    host: Annotated[
        Optional[str],
        typer.Option("--host", help="REST API host (defaults to the cluster's service)"),
    ] = None,
    port: Annotated[Optional[int], typer.Option("--port", help="REST API port")] = None,
):
    """Show the connectors a Connect cluster runs and their state."""
    from konnektor.exceptions import ConnectRestException
    from konnektor.models.connect import REST_API_PORT, service_host
    from konnektor.services.connect_api import ConnectApiClient

    api = ConnectApiClient()
    host = host or service_host(cluster, namespace)
    port = port or REST_API_PORT

    async def fetch():
        names = await api.list(host, port)
        return [await api.status(host, port, name) for name in sorted(names)]

    try:
        snapshots = asyncio.run(fetch())
    except ConnectRestException as e:
        typer.echo(f"Failed to query {host}:{port}: {e}")
        raise typer.Exit(1)

    if not snapshots:
        typer.echo(f"No connectors running on {host}:{port}")
        return

    for snapshot in snapshots:
        typer.echo(f"{snapshot.name}: {snapshot.state}")
        for task in snapshot.tasks:
            typer.echo(f"  - task {task.id}: {task.state} on {task.worker_id}")
