"""CLI entry point for ScopeSync.

Provides commands for initializing the object store, applying
ScopeTemplate/ScopeInstance manifests, and running reconciliation.
"""

import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from scopesync import __version__

if TYPE_CHECKING:
    from scopesync.config.models import Config

config_option = click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)


def _load_config(config_path: Path | None) -> "Config":
    """Load configuration, reporting invalid files as CLI errors."""
    from scopesync.config.loader import load_config
    from scopesync.errors import ConfigurationError

    try:
        return load_config(config_path)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """ScopeSync: ScopeTemplate reconciliation engine.

    Keeps the ClusterRoles declared by ScopeTemplates in sync with
    the object store, creating, updating and removing them as
    templates change.
    """
    pass


@cli.command()
@config_option
def init(config: Path | None) -> None:
    """Initialize the configured object store."""
    from scopesync.storage.factory import create_object_store

    cfg = _load_config(config)

    async def main() -> None:
        store = create_object_store(cfg)
        await store.initialize()
        await store.close()
        if cfg.storage.backend == "memory":
            click.echo("Memory backend selected, nothing is persisted")
        else:
            click.echo(f"Database initialized at {cfg.storage.db_path}")

    asyncio.run(main())


@cli.command()
@click.argument("manifest", type=click.Path(exists=True, path_type=Path))
@config_option
def apply(manifest: Path, config: Path | None) -> None:
    """Create or replace the objects in a YAML manifest file."""
    from scopesync.errors import ManifestError
    from scopesync.manifests import apply_manifests, load_manifests
    from scopesync.storage.factory import create_object_store
    from scopesync.utils.logging import configure_logging

    cfg = _load_config(config)
    configure_logging(cfg.logging)

    try:
        objects = load_manifests(manifest)
    except ManifestError as e:
        raise click.ClickException(str(e)) from e

    async def main() -> None:
        store = create_object_store(cfg)
        await store.initialize()
        try:
            applied = await apply_manifests(store, objects)
        finally:
            await store.close()

        for obj in applied:
            click.echo(f"{obj.kind}/{obj.metadata.namespace}/{obj.metadata.name} applied")

    asyncio.run(main())


@cli.command()
@click.argument("name")
@click.option("--namespace", "-n", default="default", help="Namespace of the ScopeTemplate")
@click.option(
    "--manifests",
    "-f",
    type=click.Path(exists=True, path_type=Path),
    help="Apply this manifest file before reconciling",
)
@click.option("--max-tries", type=click.IntRange(min=1), help="Override requeue attempts")
@config_option
def reconcile(
    name: str,
    namespace: str,
    manifests: Path | None,
    max_tries: int | None,
    config: Path | None,
) -> None:
    """Run one reconciliation pass for a ScopeTemplate.

    NAME is a template name or NAMESPACE/NAME.
    Retryable store failures are requeued with exponential backoff.
    """
    from scopesync.errors import ManifestError, ScopeSyncError
    from scopesync.manifests import apply_manifests, load_manifests
    from scopesync.models import NamespacedName
    from scopesync.services.reconciler import ReconcileResult, ScopeTemplateReconciler
    from scopesync.storage.factory import create_object_store
    from scopesync.utils.logging import configure_logging
    from scopesync.utils.retry import with_requeue

    cfg = _load_config(config)
    configure_logging(cfg.logging)
    try:
        key = NamespacedName.parse(name, default_namespace=namespace)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="NAME") from e

    try:
        objects = load_manifests(manifests) if manifests else []
    except ManifestError as e:
        raise click.ClickException(str(e)) from e

    async def main() -> ReconcileResult:
        store = create_object_store(cfg)
        await store.initialize()
        try:
            await apply_manifests(store, objects)
            reconciler = ScopeTemplateReconciler(store)
            run = with_requeue(
                reconciler.reconcile,
                max_tries=max_tries or cfg.reconciler.max_tries,
                max_time=cfg.reconciler.max_time_seconds,
            )
            return await run(key)
        finally:
            await store.close()

    try:
        result = asyncio.run(main())
    except ScopeSyncError as e:
        click.echo(f"Reconcile failed for {key}: {e}", err=True)
        sys.exit(1)

    if not result.found:
        click.echo(f"ScopeTemplate {key} not found")
        return

    if result.sync.suppressed:
        click.echo(f"ScopeTemplate {key}: no ScopeInstance references it")

    click.echo(f"ScopeTemplate {key} reconciled (hash {result.template_hash})")
    for role in result.sync.created:
        click.echo(f"  created   {role}")
    for role in result.sync.updated:
        click.echo(f"  updated   {role}")
    for role in result.sync.unchanged:
        click.echo(f"  unchanged {role}")
    for role in result.reap.deleted:
        click.echo(f"  deleted   {role}")


@cli.command()
@config_option
def status(config: Path | None) -> None:
    """List ClusterRoles with their ownership labels."""
    from scopesync.models import LabelSelector
    from scopesync.services.ownership import (
        GENERATE_NAME_KEY,
        SCOPE_TEMPLATE_HASH_KEY,
        SCOPE_TEMPLATE_UID_KEY,
    )
    from scopesync.storage.factory import create_object_store

    cfg = _load_config(config)

    async def main() -> None:
        if cfg.storage.backend == "sqlite" and not cfg.storage.db_path.exists():
            click.echo("Database not initialized. Run 'scopesync init' first.")
            return

        store = create_object_store(cfg)
        await store.initialize()
        try:
            templates = await store.list_scope_templates()
            roles = await store.list_cluster_roles(LabelSelector())
        finally:
            await store.close()

        click.echo(f"ScopeTemplates: {len(templates)}")
        for template in templates:
            click.echo(f"  {template.key} uid={template.metadata.uid}")

        if not roles:
            click.echo("No ClusterRoles found.")
            return

        click.echo("\nClusterRoles:")
        click.echo("-" * 60)
        for role in roles:
            labels = role.metadata.labels
            click.echo(f"\n{role.name}:")
            click.echo(f"  Owner UID: {labels.get(SCOPE_TEMPLATE_UID_KEY, '-')}")
            click.echo(f"  Hash: {labels.get(SCOPE_TEMPLATE_HASH_KEY, '-')}")
            click.echo(f"  Generate name: {labels.get(GENERATE_NAME_KEY, '-')}")
            click.echo(f"  Rules: {len(role.rules)}")

    asyncio.run(main())


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
