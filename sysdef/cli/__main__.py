"""sysdef CLI - Main Entry Point.

Commands:
    list    - List registered systems
    show    - Show one system and its component tree
    load    - Load a system after its dependencies
    build   - Build one system, or every system
    graph   - Print the dependency graph, optionally checking for cycles
    clean   - Remove a system's build directory
    info    - Show toolchain signature and cache locations
"""

import logging
import sys
from typing import Optional

import click

from . import __cli_name__
from .. import __version__
from ..config import ConfigLoader, configure_logging
from ..errors import SysdefError
from ..pipeline import Pipeline
from ..registry import SystemRegistry
from ..toolchain import toolchain_signature
from .utils.colors import (
    success, error, warning, info, dim, bold, section, kv, tree_item, table,
    _CHECK, _CROSS, _ARROW,
)

logger = logging.getLogger("sysdef.cli")


class Session:
    """Lazily built registry and pipeline shared by one invocation."""

    def __init__(self, config):
        self.config = config
        self._registry: Optional[SystemRegistry] = None
        self._pipeline: Optional[Pipeline] = None

    @property
    def registry(self) -> SystemRegistry:
        if self._registry is None:
            self._registry = SystemRegistry()
            self._registry.initialize(self.config.roots)
        return self._registry

    @property
    def pipeline(self) -> Pipeline:
        if self._pipeline is None:
            self._pipeline = Pipeline.from_config(self.config)
        return self._pipeline


def _fail(exc: SysdefError) -> None:
    logger.debug("Command failed", exc_info=exc)
    error(f"  {_CROSS} {exc.format_error()}")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name=__cli_name__)
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.option('--quiet', '-q', is_flag=True, help='Minimal output')
@click.option('--root', '-r', 'roots', multiple=True, type=click.Path(), help='Directory to search for manifests (repeatable)')
@click.option('--cache-dir', type=click.Path(), help='Build cache directory')
@click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False), help='Config file (YAML or JSON)')
@click.pass_context
def cli(ctx, verbose: bool, quiet: bool, roots: tuple, cache_dir: Optional[str], config_file: Optional[str]):
    """System definitions and build orchestration.

    \b
    Quick start:
      sysdef list
      sysdef show demo
      sysdef load demo
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet

    try:
        config = ConfigLoader.load(
            paths=[config_file] if config_file else None,
            env_file=".env",
            overrides={
                "roots": list(roots) or None,
                "cache_dir": cache_dir,
                "log_level": "DEBUG" if verbose else None,
            },
        )
    except SysdefError as e:
        _fail(e)

    configure_logging(config.log_level)
    ctx.obj['session'] = Session(config)


# ============================================================================
# Commands
# ============================================================================

@cli.command('list')
@click.pass_context
def list_cmd(ctx):
    """List registered systems."""
    session = ctx.obj['session']
    try:
        systems = session.registry.list_systems()
    except SysdefError as e:
        _fail(e)

    if not systems:
        dim("  No systems found.")
        return

    table(
        ["System", "Version", "Depends on", "Directory"],
        [
            [
                s.name,
                str(s.version) if s.version is not None else "-",
                ", ".join(s.depends_on) or "-",
                str(s.directory),
            ]
            for s in systems
        ],
    )


def _print_tree(components, depth: int = 0) -> None:
    for i, component in enumerate(components):
        label = f"{component.name}  {component.kind}"
        if component.generator is not None:
            label += f"  {_ARROW} {component.generator}"
        tree_item(label, last=i == len(components) - 1, depth=depth)
        _print_tree(component.children, depth + 1)


@cli.command('show')
@click.argument('name')
@click.pass_context
def show(ctx, name: str):
    """
    Show a system's metadata and components.

    Examples:
      sysdef show demo
    """
    session = ctx.obj['session']
    try:
        system = session.registry.find_system(name)
    except SysdefError as e:
        _fail(e)

    section(system.name)
    kv("Version", str(system.version) if system.version is not None else "-")
    if system.description:
        kv("Description", system.description)
    if system.authors:
        kv("Authors", ", ".join(system.authors))
    if system.licenses:
        kv("Licenses", ", ".join(system.licenses))
    if system.homepage:
        kv("Homepage", system.homepage)
    kv("Depends on", ", ".join(system.depends_on) or "-")
    kv("Directory", str(system.directory))
    if system.source:
        kv("Manifest", system.source)
    click.echo()
    _print_tree(system.components)


@cli.command('load')
@click.argument('name')
@click.option('--memoize', is_flag=True, help='Process each system at most once')
@click.pass_context
def load(ctx, name: str, memoize: bool):
    """
    Load a system after its dependencies.

    Examples:
      sysdef load demo
      sysdef load demo --memoize
    """
    session = ctx.obj['session']
    try:
        system = session.pipeline.load_system(name, session.registry, memoize=memoize)
    except SysdefError as e:
        _fail(e)

    if not ctx.obj['quiet']:
        success(f"  {_CHECK} Loaded {system.name}")


@cli.command('build')
@click.argument('name', required=False)
@click.pass_context
def build(ctx, name: Optional[str]):
    """
    Build one system (with its dependencies) or every system.

    Examples:
      sysdef build
      sysdef build demo
    """
    session = ctx.obj['session']
    try:
        if name:
            systems = [session.pipeline.build_system(name, session.registry)]
        else:
            systems = session.pipeline.build_all(session.registry)
    except SysdefError as e:
        _fail(e)

    if not systems:
        warning("  No systems to build.")
        return

    if not ctx.obj['quiet']:
        for system in systems:
            success(f"  {_CHECK} Built {system.name}")
        dim(f"    {_ARROW} {session.pipeline.build_root}")


@cli.command('graph')
@click.option('--check', is_flag=True, help='Fail if the graph has a cycle')
@click.option('--dot', is_flag=True, help='Print Graphviz DOT output')
@click.pass_context
def graph(ctx, check: bool, dot: bool):
    """Print the system dependency graph."""
    session = ctx.obj['session']
    try:
        dep_graph = session.registry.dependency_graph()
    except SysdefError as e:
        _fail(e)

    if dot:
        click.echo(dep_graph.to_dot())
    else:
        for name, deps in dep_graph.to_dict().items():
            click.echo(f"  {bold(name)} {_ARROW} {', '.join(deps) or '-'}")

    if check:
        valid, cycle = dep_graph.validate()
        if not valid:
            error(f"  {_CROSS} Cycle: {' → '.join(cycle + cycle[:1])}")
            sys.exit(1)
        if not ctx.obj['quiet']:
            success(f"  {_CHECK} No cycles")


@cli.command('clean')
@click.argument('name')
@click.pass_context
def clean(ctx, name: str):
    """Remove a system's build directory."""
    session = ctx.obj['session']
    try:
        system = session.registry.find_system(name)
    except SysdefError as e:
        _fail(e)

    removed = session.pipeline.clean(system)
    if not ctx.obj['quiet']:
        if removed:
            success(f"  {_CHECK} Cleaned {system.name}")
        else:
            dim(f"  Nothing to clean for {system.name}")


@cli.command('info')
@click.pass_context
def info_cmd(ctx):
    """Show toolchain signature and cache locations."""
    config = ctx.obj['session'].config
    info(f"  sysdef {__version__}")
    kv("Signature", toolchain_signature())
    kv("Cache dir", str(config.cache_dir))
    kv("Build root", str(config.build_root))
    kv("Roots", ", ".join(str(r) for r in config.roots))


def main():
    """Entry point for `sysdef` command."""
    cli(obj={})


if __name__ == '__main__':
    main()
