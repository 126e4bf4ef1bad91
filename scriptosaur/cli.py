import click
from pathlib import Path
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import Config
from .prompt_store import PromptStore
from .prompts import PromptKey
from .utils.logger import setup_logger

PROMPT_KEYS = [k.value for k in PromptKey]

@click.group()
@click.option('--config', '-c', type=click.Path(), default='config.yaml',
              help='Path to configuration file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx: click.Context, config: str, verbose: bool):
    """Scriptosaur - write video scripts in the style of a chosen author."""
    ctx.ensure_object(dict)

    config_path = Path(config)
    if config_path.exists():
        try:
            ctx.obj['config'] = Config.from_yaml(config_path)
        except Exception as e:
            raise click.ClickException(f"Invalid config {config_path}: {e}")
    else:
        ctx.obj['config'] = Config()

    log_level = "DEBUG" if verbose else ctx.obj['config'].log_level
    logger = setup_logger(log_level, ctx.obj['config'].log_file)
    ctx.obj['logger'] = logger

    logger.debug(f"Scriptosaur v{__version__}")
    if config_path.exists():
        logger.info(f"Config loaded from: {config_path}")

def _store(ctx: click.Context) -> PromptStore:
    return PromptStore(ctx.obj['config'].storage.prompts_path)

@cli.command()
@click.option('--host', help='Override server host')
@click.option('--port', '-p', type=int, help='Override server port')
@click.option('--share', is_flag=True, help='Create a public Gradio link')
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, share: bool):
    """Launch the web UI."""
    config = ctx.obj['config']
    logger = ctx.obj['logger']

    if host:
        config.ui.host = host
    if port:
        config.ui.port = port
    if share:
        config.ui.share = True

    logger.info(f"Starting UI on {config.ui.host}:{config.ui.port}")
    from .app import launch
    launch(config)

@cli.command('init-config')
@click.argument('path', type=click.Path(), default='config.yaml')
@click.option('--force', is_flag=True, help='Overwrite an existing file')
@click.pass_context
def init_config(ctx: click.Context, path: str, force: bool):
    """Write the default configuration to PATH."""
    target = Path(path)
    if target.exists() and not force:
        raise click.ClickException(f"{target} already exists (use --force to overwrite)")
    Config().to_yaml(target)
    ctx.obj['logger'].success(f"Default config written to {target}")

@cli.group()
def prompts():
    """Inspect and edit the stored prompt templates."""

@prompts.command('list')
@click.pass_context
def prompts_list(ctx: click.Context):
    """Show every prompt and whether it is overridden."""
    store = _store(ctx)
    table = Table(title="Prompts")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Description")
    table.add_column("Source", no_wrap=True)
    table.add_column("Chars", justify="right", no_wrap=True)
    for key, text in store.items():
        source = "custom" if store.is_overridden(key) else "default"
        table.add_row(key.value, key.label, source, str(len(text)))
    Console().print(table)

@prompts.command('show')
@click.argument('key', type=click.Choice(PROMPT_KEYS))
@click.pass_context
def prompts_show(ctx: click.Context, key: str):
    """Print the current text of KEY."""
    click.echo(_store(ctx).get(key))

@prompts.command('set')
@click.argument('key', type=click.Choice(PROMPT_KEYS))
@click.option('--file', '-f', 'source', type=click.Path(exists=True, dir_okay=False), required=True,
              help='File with the new prompt text')
@click.pass_context
def prompts_set(ctx: click.Context, key: str, source: str):
    """Override KEY with the contents of a file."""
    text = Path(source).read_text(encoding='utf-8')
    _store(ctx).set(key, text)
    ctx.obj['logger'].success(f"Prompt '{key}' updated")

@prompts.command('reset')
@click.argument('key', type=click.Choice(PROMPT_KEYS), required=False)
@click.option('--all', 'reset_all', is_flag=True, help='Reset every prompt')
@click.pass_context
def prompts_reset(ctx: click.Context, key: str, reset_all: bool):
    """Restore the built-in text of KEY (or of all prompts)."""
    if not key and not reset_all:
        raise click.UsageError("Give a KEY or --all")
    store = _store(ctx)
    if reset_all:
        store.reset_all()
    else:
        store.reset(key)
    ctx.obj['logger'].success("Prompts reset")

def main():
    cli()

if __name__ == '__main__':
    main()
